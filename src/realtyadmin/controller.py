import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from .backend import AdminBackend
from .errors import (
    DuplicatePhoneError,
    NotFoundError,
    OwnerProtectedError,
    TransportError,
    ValidationError,
)
from .models import AdminAccount
from .passwords import password_strength, strength_label
from .payload import CreateAdminPayload, ResetPasswordPayload
from .permissions import Permission, PermissionSet, labels

logger = logging.getLogger(__name__)


class ActionKind(str, Enum):
    EDIT_PERMISSIONS = "edit_permissions"
    RESET_PASSWORD = "reset_password"
    DELETE = "delete"


class ActionState(str, Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


@dataclass
class PendingAction:
    """An operation waiting for the operator to confirm it."""

    kind: ActionKind
    target_id: int
    target_name: str
    payload: Any = None
    revoked: list[Permission] = field(default_factory=list)
    strength: Optional[int] = None
    state: ActionState = ActionState.AWAITING_CONFIRMATION

    @property
    def prompt(self) -> str:
        if self.kind == ActionKind.EDIT_PERMISSIONS:
            return (
                f"You are about to revoke the following permissions from "
                f"{self.target_name}: {', '.join(labels(self.revoked))}"
            )
        if self.kind == ActionKind.RESET_PASSWORD:
            return f"Reset the password of {self.target_name}?"
        return f"Delete admin {self.target_name}? This cannot be undone."

    def to_dict(self) -> dict:
        data = {
            "kind": self.kind.value,
            "targetId": self.target_id,
            "targetName": self.target_name,
            "state": self.state.value,
            "prompt": self.prompt,
        }
        if self.revoked:
            data["revoked"] = [p.value for p in self.revoked]
        if self.strength is not None:
            data["strength"] = self.strength
            data["strengthLabel"] = strength_label(self.strength)
        return data


class AdminLifecycleController:
    """
    Policy between the admin panel and an `AdminBackend`.

    Permission revocations, password resets and deletions are two step:
    the first call only records a `PendingAction`, `confirm` executes it and
    `cancel` drops it. At most one action is pending per target.
    """

    def __init__(self, backend: AdminBackend, timeout: Optional[float] = 10.0):
        self._backend = backend
        self._timeout = timeout
        self._pending: dict[int, PendingAction] = {}

    async def list(self) -> list[AdminAccount]:
        return await self._call(self._backend.list())

    async def create(
        self,
        name: str,
        phone_number: str,
        password: str,
        permissions: Mapping = None,
    ) -> AdminAccount:
        payload = CreateAdminPayload(
            name=name,
            phone_number=phone_number,
            password=password,
            permissions=PermissionSet.none() if permissions is None else permissions,
        ).validate()
        try:
            return await self._call(
                self._backend.create(
                    payload.name,
                    payload.phone_number,
                    payload.password,
                    payload.permissions,
                )
            )
        except DuplicatePhoneError as e:
            raise DuplicatePhoneError(
                f"An admin with phone number {payload.phone_number} already exists"
            ) from e

    async def edit_permissions(
        self, admin_id: int, permissions: Mapping
    ) -> AdminAccount | PendingAction:
        """
        Returns the updated account when nothing is revoked, otherwise a
        pending action listing the revocations; the backend is untouched
        until `confirm`.
        """
        proposed = PermissionSet.parse(permissions)
        account = await self._call(self._backend.get(admin_id))
        revoked = account.permissions.revoked(proposed)
        if not revoked:
            self._pending.pop(admin_id, None)
            return await self._call(
                self._backend.update_permissions(admin_id, proposed)
            )
        return self._await_confirmation(
            PendingAction(
                kind=ActionKind.EDIT_PERMISSIONS,
                target_id=admin_id,
                target_name=account.name,
                payload=proposed,
                revoked=revoked,
            )
        )

    async def reset_password(self, admin_id: int, new_password: str) -> PendingAction:
        ResetPasswordPayload(new_password=new_password).validate()
        account = await self._call(self._backend.get(admin_id))
        return self._await_confirmation(
            PendingAction(
                kind=ActionKind.RESET_PASSWORD,
                target_id=admin_id,
                target_name=account.name,
                payload=new_password,
                strength=password_strength(new_password),
            )
        )

    async def delete(self, admin_id: int) -> PendingAction:
        account = await self._call(self._backend.get(admin_id))
        return self._await_confirmation(
            PendingAction(
                kind=ActionKind.DELETE,
                target_id=admin_id,
                target_name=account.name,
            )
        )

    async def set_active(self, admin_id: int, active: bool) -> AdminAccount:
        # reversible, so applied without confirmation
        if not isinstance(active, bool):
            raise ValidationError(errors={"active": "must be a boolean"})
        return await self._call(self._backend.set_active(admin_id, active))

    def pending(self, admin_id: int) -> Optional[PendingAction]:
        return self._pending.get(admin_id)

    def cancel(self, admin_id: int) -> Optional[PendingAction]:
        action = self._pending.pop(admin_id, None)
        if action:
            action.state = ActionState.CANCELLED
            logger.debug("cancelled %s on admin %s", action.kind.value, admin_id)
        return action

    async def confirm(self, admin_id: int) -> Optional[AdminAccount]:
        """Run the pending action for `admin_id`; the target is idle afterwards whatever happens."""
        action = self._pending.pop(admin_id, None)
        if action is None:
            raise ValidationError(f"Nothing to confirm for admin {admin_id}")
        action.state = ActionState.CONFIRMED
        try:
            if action.kind == ActionKind.EDIT_PERMISSIONS:
                return await self._call(
                    self._backend.update_permissions(admin_id, action.payload)
                )
            if action.kind == ActionKind.RESET_PASSWORD:
                await self._call(self._backend.update_password(admin_id, action.payload))
                return None
            await self._call(self._backend.delete(admin_id))
            return None
        except OwnerProtectedError as e:
            raise OwnerProtectedError("Cannot delete the owner account") from e
        except NotFoundError as e:
            raise NotFoundError(
                f"{action.target_name} no longer exists, refresh the admin list"
            ) from e

    def _await_confirmation(self, action: PendingAction) -> PendingAction:
        replaced = self._pending.get(action.target_id)
        if replaced:
            replaced.state = ActionState.CANCELLED
        self._pending[action.target_id] = action
        logger.debug(
            "%s on admin %s awaiting confirmation", action.kind.value, action.target_id
        )
        return action

    async def _call(self, coro):
        try:
            async with asyncio.timeout(self._timeout):
                return await coro
        except TimeoutError:
            raise TransportError("The admin service did not answer in time, please retry")