from .permissions import Permission

# display names used by the admin panel
PERMISSION_LABELS: dict[Permission, str] = {
    Permission.ADD_PROPERTY: "Add Property",
    Permission.EDIT_PROPERTY: "Edit Property",
    Permission.DELETE_PROPERTY: "Delete Property",
    Permission.WRITE_REVIEW: "Write Review",
    Permission.DELETE_REVIEW: "Delete Review",
    Permission.WRITE_BLOG: "Write Blog",
    Permission.DELETE_BLOG: "Delete Blog",
    Permission.DELETE_USER: "Delete User",
    Permission.VIEW_INQUIRIES: "View Inquiries",
    Permission.VIEW_MESSAGES: "View Messages",
    Permission.DELETE_MESSAGES: "Delete Messages",
}


def label(permission) -> str:
    return PERMISSION_LABELS[Permission(permission)]


def labels(permissions) -> list[str]:
    return [label(p) for p in permissions]
