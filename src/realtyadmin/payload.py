import re
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import ValidationError
from .passwords import password_problems
from .permissions import PermissionSet

PHONE_PATTERN = re.compile(r"^[0-9]{10,15}$")
NAME_MIN, NAME_MAX = 3, 60


def check_name(name, errors: dict) -> Optional[str]:
    if not isinstance(name, str) or not name.strip():
        errors["name"] = "Name is required"
        return None
    name = name.strip()
    if not NAME_MIN <= len(name) <= NAME_MAX:
        errors["name"] = f"Name must be between {NAME_MIN} and {NAME_MAX} characters"
    return name


def check_phone(phone, errors: dict) -> None:
    if not isinstance(phone, str) or not PHONE_PATTERN.match(phone):
        errors["phoneNumber"] = "Phone number must be between 10 to 15 digits."


def check_password(password, errors: dict, key: str = "password") -> None:
    if not isinstance(password, str):
        errors[key] = "Password is required"
        return
    problems = password_problems(password)
    if problems:
        errors[key] = ", ".join(problems)


@dataclass
class CreateAdminPayload:
    name: str
    phone_number: str
    password: str
    permissions: Any = field(default_factory=PermissionSet.none)

    def validate(self) -> "CreateAdminPayload":
        errors = {}
        self.name = check_name(self.name, errors) or self.name
        check_phone(self.phone_number, errors)
        check_password(self.password, errors)
        try:
            self.permissions = PermissionSet.parse(self.permissions)
        except ValidationError as e:
            errors["permissions"] = e.message
        if errors:
            raise ValidationError(errors=errors)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "CreateAdminPayload":
        return cls(
            name=data.get("name"),
            phone_number=data.get("phoneNumber"),
            password=data.get("password"),
            permissions=data.get("permissions"),
        )

    def to_dict(self, exclude: Optional[list[str]] = None) -> dict:
        exclude = exclude or []
        data = {
            "name": self.name,
            "phoneNumber": self.phone_number,
            "password": self.password,
            "permissions": PermissionSet.parse(self.permissions).to_dict(),
        }
        return {k: v for k, v in data.items() if k not in exclude}


@dataclass
class ResetPasswordPayload:
    new_password: str

    def validate(self) -> "ResetPasswordPayload":
        errors = {}
        check_password(self.new_password, errors, key="newPassword")
        if errors:
            raise ValidationError(errors=errors)
        return self

    def to_dict(self) -> dict:
        return {"newPassword": self.new_password}
