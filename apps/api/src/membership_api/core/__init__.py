"""
Core module - Configuration, database, security, storage and utilities.
"""

from membership_api.core.config import get_settings, settings
from membership_api.core.database import Base, close_db, get_db, init_db, ping_db
from membership_api.core.errors import ServiceError
from membership_api.core.redis import close_redis, init_redis, ping_redis
from membership_api.core.security import create_access_token, decode_token

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "ping_db",
    "close_db",
    # Errors
    "ServiceError",
    # Redis
    "init_redis",
    "ping_redis",
    "close_redis",
    # Security
    "create_access_token",
    "decode_token",
]
