from .permissions import Permission
from .models import AdminAccount, Role


def has_permission(account: AdminAccount, permission) -> bool:
    """Owners hold every capability, admins only the flags they were granted."""
    if account.role == Role.OWNER:
        return True
    return bool(account.permissions[Permission(permission)])


def can_manage_admins(account: AdminAccount) -> bool:
    return account.role == Role.OWNER
