from __future__ import annotations

from typing import Optional

from defi_pulse.service import DefiService


_service_singleton: Optional[DefiService] = None


def get_service() -> DefiService:
    global _service_singleton
    if _service_singleton is None:
        _service_singleton = DefiService()
    return _service_singleton
