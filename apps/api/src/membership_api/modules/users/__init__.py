"""
Users module - member and admin accounts.
"""

from membership_api.modules.users.models import User, UserRole
from membership_api.modules.users.repository import UserRepository

__all__ = ["User", "UserRole", "UserRepository"]
