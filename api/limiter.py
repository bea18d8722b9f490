"""
api/limiter.py -- The rate limiter shared by the app and the users router.

api/main.py mounts it through SlowAPIMiddleware; api/routes/v1/users.py
decorates POST /users/authenticate with @limiter.limit(). Both must use this
one instance or the login counter is never consulted.

Counters are keyed by client IP and kept in Settings.rate_limit_storage_uri
("memory://" by default, which is per-process; point it at redis:// when
running several workers).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(key_func=get_remote_address, storage_uri=get_settings().rate_limit_storage_uri)
