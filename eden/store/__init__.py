"""Account / role / permission store."""

from .models import Account, Permission, Role
from .protocols import AccountStore
from .sqlite import SqliteAccountStore

__all__ = ["Account", "AccountStore", "Permission", "Role", "SqliteAccountStore"]
