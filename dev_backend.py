from pathlib import Path
import os
import uvicorn


if __name__ == "__main__":
    # Minimal dev runner with safe reload scope
    root = Path(__file__).resolve().parent
    os.environ.setdefault("DEFI_PULSE_CONFIG", str(root / "config.yaml"))
    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        app_dir=str(root),
        reload_dirs=[str(root / "backend"), str(root / "defi_pulse")],
        log_level="info",
    )
