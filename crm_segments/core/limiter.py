# crm_segments/core/limiter.py
"""
Shared slowapi limiter. Lives outside main.py so endpoint modules can
decorate routes without importing the app.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from crm_segments.core.config import settings

# Keyed by client IP; disabled entirely when RATE_LIMIT_ENABLED is false.
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
