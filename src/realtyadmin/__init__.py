from .errors import (
    AdminError,
    ValidationError,
    DuplicatePhoneError,
    NotFoundError,
    OwnerProtectedError,
    AuthError,
    TransportError,
)
from .permissions import Permission, PermissionSet, PERMISSION_LABELS
from .models import AdminAccount, Credential, Role
from .storage import SQLite
from .backend import AdminBackend
from .store import AdminStore
from .controller import (
    AdminLifecycleController,
    PendingAction,
    ActionKind,
    ActionState,
)
from .passwords import password_problems, password_strength
from .transport import HttpAdminClient
from .token import Token
from .config import Settings, get_settings
from .log import configure_logging

__all__ = [
    "AdminError",
    "ValidationError",
    "DuplicatePhoneError",
    "NotFoundError",
    "OwnerProtectedError",
    "AuthError",
    "TransportError",
    "Permission",
    "PermissionSet",
    "PERMISSION_LABELS",
    "AdminAccount",
    "Credential",
    "Role",
    "SQLite",
    "AdminBackend",
    "AdminStore",
    "AdminLifecycleController",
    "PendingAction",
    "ActionKind",
    "ActionState",
    "password_problems",
    "password_strength",
    "HttpAdminClient",
    "Token",
    "Settings",
    "get_settings",
    "configure_logging",
]
