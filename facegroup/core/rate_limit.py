from slowapi import Limiter
from slowapi.util import get_remote_address
from facegroup.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200/minute"],
    enabled=(settings.APP_ENV or "").strip().lower() != "test",
)
