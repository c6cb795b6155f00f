from typing import Optional


class AdminError(Exception):
    """Base of every failure the admin core reports.

    `kind` is the machine readable tag carried over the wire, the message
    is what gets shown to the operator.
    """

    kind: str = "error"
    default_message: str = "Admin operation failed"

    def __init__(self, msg: str = None, *args):
        self.message = msg or self.default_message
        super().__init__(self.message, *args)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class ValidationError(AdminError):
    kind = "validation"
    default_message = "Validation failed"

    def __init__(self, msg: str = None, errors: Optional[dict] = None, *args):
        self.errors = dict(errors or {})
        if not msg and self.errors:
            msg = "; ".join(f"{k}: {v}" for k, v in self.errors.items())
        super().__init__(msg, *args)

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.errors:
            data["errors"] = self.errors
        return data


class DuplicatePhoneError(AdminError):
    kind = "duplicate_phone"
    default_message = "An admin with this phone number already exists"


class NotFoundError(AdminError):
    kind = "not_found"
    default_message = "Admin not found"


class OwnerProtectedError(AdminError):
    kind = "owner_protected"
    default_message = "Cannot delete the owner account"


class AuthError(AdminError):
    kind = "auth"
    default_message = "Authentication required"


class TransportError(AdminError):
    kind = "transport"
    default_message = "Could not reach the admin service, please retry"


ERROR_KINDS: dict[str, type[AdminError]] = {
    cls.kind: cls
    for cls in (
        ValidationError,
        DuplicatePhoneError,
        NotFoundError,
        OwnerProtectedError,
        AuthError,
        TransportError,
    )
}


def error_from_dict(data: dict) -> AdminError:
    """Rebuild a taxonomy member from its wire representation."""
    cls = ERROR_KINDS.get(data.get("kind"), AdminError)
    message = data.get("message")
    if cls is ValidationError:
        return ValidationError(message, errors=data.get("errors"))
    return cls(message)
