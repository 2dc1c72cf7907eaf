from codely.repositories.refresh_token import RefreshTokenRepository
from codely.repositories.user import UserRepository

__all__ = [
    "RefreshTokenRepository",
    "UserRepository",
]
