"""
Domain layer: account entities and the ports the identity services depend on.
"""

from .entities import AccountState, User
from .repositories import UserRepository
from .services import SecurityMetrics

__all__ = ["AccountState", "User", "UserRepository", "SecurityMetrics"]
