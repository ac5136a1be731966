"""Per-IP request limits (slowapi).

Kept out of main.py so routers can decorate endpoints without a circular
import. Per-user action budgets live in services.rate_limit_service.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from models.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

REGISTER_LIMIT = "3/minute"
LOGIN_LIMIT = "5/minute"
REFRESH_LIMIT = "10/minute"
