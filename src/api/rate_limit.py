"""Rate limiting configuration."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings

settings = get_settings()
limiter = Limiter(key_func=get_remote_address, default_limits=[settings.rate_limit])

# Detection runs are expensive upstream calls; keep them on a tighter budget
RUN_LIMIT = "10/minute"
