import os

HOST = os.getenv("VITA_HOST", "0.0.0.0")
PORT = int(os.getenv("VITA_PORT", "5000"))
RELOAD = os.getenv("VITA_RELOAD", "0").lower() in {"1", "true", "yes"}
LOG_LEVEL = os.getenv("VITA_LOG_LEVEL", "INFO").upper()

_raw_origins = os.getenv("VITA_ALLOWED_ORIGINS", "*")
ALLOWED_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]
