from collections.abc import Mapping
from enum import Enum
from typing import Iterator

from ..errors import ValidationError


class Permission(str, Enum):
    """
    Capabilities a sub-admin can be granted. Each one gates a family of
    REST endpoints of the listing platform, e.g. ADD_PROPERTY guards
    property creation and VIEW_INQUIRIES the contact inbox.
    """

    ADD_PROPERTY = "addProperty"
    EDIT_PROPERTY = "editProperty"
    DELETE_PROPERTY = "deleteProperty"
    WRITE_REVIEW = "writeReview"
    DELETE_REVIEW = "deleteReview"
    WRITE_BLOG = "writeBlog"
    DELETE_BLOG = "deleteBlog"
    DELETE_USER = "deleteUser"
    VIEW_INQUIRIES = "viewInquiries"
    VIEW_MESSAGES = "viewMessages"
    DELETE_MESSAGES = "deleteMessages"


class InvalidPermissionSet(ValidationError):
    def __init__(self, errors: dict):
        super().__init__(
            "Invalid permission set: " + ", ".join(sorted(errors)), errors=errors
        )


class PermissionSet(Mapping):
    """Immutable mapping holding a boolean for every `Permission`."""

    __slots__ = ("_flags",)

    def __init__(self, flags: Mapping = None, **kwargs):
        data = dict(flags or {}, **kwargs)
        self._flags = self._check(data)

    @staticmethod
    def _check(data: Mapping) -> dict:
        errors = {}
        flags = {}
        known = {p.value for p in Permission}
        for key, value in data.items():
            name = key.value if isinstance(key, Permission) else key
            if name not in known:
                errors[str(name)] = "unknown permission"
            elif not isinstance(value, bool):
                errors[name] = "must be a boolean"
            else:
                flags[Permission(name)] = value
        for perm in Permission:
            if perm not in flags and perm.value not in errors:
                errors[perm.value] = "is required"
        if errors:
            raise InvalidPermissionSet(errors)
        return flags

    @classmethod
    def parse(cls, data) -> "PermissionSet":
        if isinstance(data, PermissionSet):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(
                "Permissions must be an object", errors={"permissions": "not an object"}
            )
        return cls(data)

    @classmethod
    def none(cls) -> "PermissionSet":
        return cls({p: False for p in Permission})

    @classmethod
    def full(cls) -> "PermissionSet":
        return cls({p: True for p in Permission})

    def __getitem__(self, key) -> bool:
        try:
            return self._flags[Permission(key)]
        except ValueError:
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[Permission]:
        # declaration order, not insertion order
        return iter(Permission)

    def __len__(self) -> int:
        return len(self._flags)

    def __eq__(self, other) -> bool:
        if isinstance(other, PermissionSet):
            return self._flags == other._flags
        return NotImplemented

    def __hash__(self):
        return hash(frozenset(self._flags.items()))

    def __repr__(self) -> str:
        granted = ", ".join(p.value for p in self.granted())
        return f"PermissionSet(granted=[{granted}])"

    def granted(self) -> list[Permission]:
        return [p for p in Permission if self._flags[p]]

    def merge(self, partial: Mapping) -> "PermissionSet":
        """New set with `partial` applied on top; keys still must be known booleans."""
        data = dict(self._flags)
        for key, value in partial.items():
            name = key.value if isinstance(key, Permission) else key
            if name not in Permission._value2member_map_:
                raise InvalidPermissionSet({str(name): "unknown permission"})
            if not isinstance(value, bool):
                raise InvalidPermissionSet({name: "must be a boolean"})
            data[Permission(name)] = value
        return PermissionSet(data)

    def revoked(self, new: "PermissionSet") -> list[Permission]:
        """Permissions granted here that `new` takes away."""
        return [p for p in Permission if self._flags[p] and not new[p]]

    def to_dict(self) -> dict:
        return {p.value: self._flags[p] for p in Permission}
