"""Response envelope shared by every route: ``{success, data | error, message, timestamp}``."""
from __future__ import annotations

import time
from typing import Any, Dict


def now_ms() -> int:
    return int(time.time() * 1000)


def success_envelope(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data, "timestamp": now_ms()}


def error_envelope(error: str, message: str, details: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error, "message": message, "timestamp": now_ms()}
    if details is not None:
        body["details"] = details
    return body
