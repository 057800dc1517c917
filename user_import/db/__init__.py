from .base import AccountExistsError, AccountStore, AccountStoreError, RoleStore
from .memory import DEFAULT_ROLES, InMemoryAccountStore, InMemoryRoleStore

__all__ = [
    "AccountExistsError",
    "AccountStore",
    "AccountStoreError",
    "RoleStore",
    "DEFAULT_ROLES",
    "InMemoryAccountStore",
    "InMemoryRoleStore",
]
