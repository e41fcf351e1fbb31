from .base import Base
from .memo import Memo
from .user import UserPreference

__all__ = ["Base", "Memo", "UserPreference"]
