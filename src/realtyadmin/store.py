import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Mapping

from .backend import AdminBackend
from .errors import (
    AuthError,
    DuplicatePhoneError,
    NotFoundError,
    OwnerProtectedError,
    TransportError,
)
from .models import AdminAccount, Credential, Role
from .passwords import hash_password, verify_password
from .permissions import PermissionSet
from .storage import Storage, StorageSession, StorageError, DuplicateEntry

logger = logging.getLogger(__name__)


class AdminStore(AdminBackend):
    """
    Admin accounts plus the credential side table, on top of a `Storage`.

    Every mutation runs in a single `storage.begin()` transaction, so it
    either fully commits or leaves nothing behind. Ids come from the
    storage's autoincrement sequence and are never handed out twice.
    Storage failures other than duplicates surface as `TransportError`,
    the caller may retry them.
    """

    def __init__(self, storage: Storage):
        self._storage = storage

    @asynccontextmanager
    async def _open(self, write: bool = False):
        context = self._storage.begin() if write else self._storage.session()
        try:
            async with context as session:
                yield session
        except DuplicateEntry:
            raise
        except StorageError as e:
            logger.warning("storage unavailable: %s", e)
            raise TransportError(
                "The admin database is busy, please retry"
            ) from e

    async def init_schema(self):
        async with self._open() as session:
            await session.init_schema(AdminAccount)
            await session.init_schema(Credential)

    async def list(self) -> list[AdminAccount]:
        async with self._open() as session:
            return await session.list(AdminAccount)

    async def get(self, admin_id: int) -> AdminAccount:
        async with self._open() as session:
            return await self._get(session, admin_id)

    async def create(
        self,
        name: str,
        phone_number: str,
        password: str,
        permissions: Mapping,
        role: Role = Role.ADMIN,
    ) -> AdminAccount:
        permissions = PermissionSet.parse(permissions)
        password_hash = hash_password(password)
        try:
            async with self._open(write=True) as session:
                if await self._phone_taken(session, phone_number):
                    raise DuplicatePhoneError(
                        f"An admin with phone number {phone_number} already exists"
                    )
                account = await session.create(
                    AdminAccount(
                        name=name,
                        phone_number=phone_number,
                        role=role,
                        permissions=permissions,
                        created_at=datetime.now(),
                    )
                )
                await session.create(
                    Credential(phone_number=phone_number, password_hash=password_hash)
                )
        except DuplicateEntry:
            # lost a race against another session inserting the same phone
            raise DuplicatePhoneError(
                f"An admin with phone number {phone_number} already exists"
            )
        logger.info("created %s account %s", account.role.value, account.id)
        return account

    async def update_permissions(
        self, admin_id: int, permissions: Mapping
    ) -> AdminAccount:
        permissions = PermissionSet.parse(permissions)
        async with self._open(write=True) as session:
            await self._get(session, admin_id)
            account = await session.update(
                AdminAccount, {"id": admin_id}, {"permissions": permissions}
            )
        logger.info(
            "permissions of admin %s set to [%s]",
            admin_id,
            ", ".join(p.value for p in permissions.granted()),
        )
        return account

    async def update_password(self, admin_id: int, new_password: str) -> None:
        password_hash = hash_password(new_password)
        async with self._open(write=True) as session:
            account = await self._get(session, admin_id)
            updated = await session.update(
                Credential,
                {"phone_number": account.phone_number},
                {"password_hash": password_hash, "updated_at": datetime.now()},
            )
            if updated is None:
                await session.create(
                    Credential(
                        phone_number=account.phone_number, password_hash=password_hash
                    )
                )
        logger.info("password of admin %s reset", admin_id)

    async def set_active(self, admin_id: int, active: bool) -> AdminAccount:
        """Inactive admins stay listed but can no longer log in."""
        async with self._open(write=True) as session:
            account = await self._get(session, admin_id)
            if account.is_owner:
                logger.warning("refused to change status of owner %s", admin_id)
                raise OwnerProtectedError("Cannot deactivate the owner account")
            account = await session.update(
                AdminAccount, {"id": admin_id}, {"active": active}
            )
        logger.info(
            "admin %s %s", admin_id, "activated" if active else "deactivated"
        )
        return account

    async def delete(self, admin_id: int) -> None:
        async with self._open(write=True) as session:
            account = await self._get(session, admin_id)
            if account.is_owner:
                logger.warning("refused to delete owner account %s", admin_id)
                raise OwnerProtectedError()
            await session.delete(AdminAccount, {"id": admin_id})
            await session.delete(Credential, {"phone_number": account.phone_number})
        logger.info("deleted admin %s", admin_id)

    async def ensure_owner(
        self, name: str, phone_number: str, password: str
    ) -> AdminAccount:
        """Create the owner account unless one already exists."""
        async with self._open() as session:
            owners = await session.list(AdminAccount, filters={"role": Role.OWNER.value})
        if owners:
            return owners[0]
        return await self.create(
            name, phone_number, password, PermissionSet.full(), role=Role.OWNER
        )

    async def authenticate(self, phone_number: str, password: str) -> AdminAccount:
        async with self._open() as session:
            credential = await session.get(
                Credential, filters={"phone_number": phone_number}
            )
            if not credential or not verify_password(
                password, credential.password_hash
            ):
                logger.warning("failed login for %s", phone_number)
                raise AuthError("Invalid phone number or password")
            account = await session.get(
                AdminAccount, filters={"phone_number": phone_number}
            )
        if not account:
            raise AuthError("Invalid phone number or password")
        if not account.active:
            logger.warning("inactive admin %s tried to log in", account.id)
            raise AuthError("This admin account is inactive")
        return account

    async def _get(self, session: StorageSession, admin_id: int) -> AdminAccount:
        account = await session.get(AdminAccount, filters={"id": admin_id})
        if not account:
            raise NotFoundError(f"Admin {admin_id} not found")
        return account

    async def _phone_taken(self, session: StorageSession, phone_number: str) -> bool:
        if await session.get(AdminAccount, filters={"phone_number": phone_number}):
            return True
        return bool(
            await session.get(Credential, filters={"phone_number": phone_number})
        )
