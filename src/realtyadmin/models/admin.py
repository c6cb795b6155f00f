from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from . import Model
from ..permissions.permissions import PermissionSet


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"


@dataclass
class AdminAccount(Model):
    """An administrator of the listing platform. Credentials live in `Credential`."""

    name: str
    phone_number: str = field(metadata={"index": True, "unique": True})
    role: Role = Role.ADMIN
    permissions: PermissionSet = field(
        default_factory=PermissionSet.none, metadata={"json": True}
    )
    created_at: datetime = field(default_factory=datetime.now)
    active: bool = True

    def __post_init__(self):
        self.role = Role(self.role)
        self.permissions = PermissionSet.parse(self.permissions)

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "role": self.role.value,
            "permissions": self.permissions.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "active": self.active,
        }

    @classmethod
    def from_public_dict(cls, data: dict) -> "AdminAccount":
        account = cls(
            name=data["name"],
            phone_number=data["phoneNumber"],
            role=data.get("role", Role.ADMIN),
            permissions=data["permissions"],
            created_at=datetime.fromisoformat(data["createdAt"]),
            active=data.get("active", True),
        )
        account.id = data["id"]
        return account
