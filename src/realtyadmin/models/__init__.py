from .model import Model, MissingDefault, CurrentTimeStamp
from .admin import AdminAccount, Role
from .credential import Credential

__all__ = [
    "Model",
    "AdminAccount",
    "Role",
    "Credential",
    "MissingDefault",
    "CurrentTimeStamp",
]
