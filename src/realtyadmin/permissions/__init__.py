from .permissions import Permission, PermissionSet, InvalidPermissionSet
from .labels import PERMISSION_LABELS, label, labels

__all__ = [
    "Permission",
    "PermissionSet",
    "InvalidPermissionSet",
    "PERMISSION_LABELS",
    "label",
    "labels",
]
