from codely.models.refresh_token import RefreshToken
from codely.models.user import User

__all__ = [
    "RefreshToken",
    "User",
]
