import aiosqlite
import pytest
from realtyadmin.errors import (
    AuthError,
    DuplicatePhoneError,
    NotFoundError,
    OwnerProtectedError,
    TransportError,
)
from realtyadmin.models import Credential, Role
from realtyadmin.permissions import Permission, PermissionSet, InvalidPermissionSet
from realtyadmin.storage import SQLite
from realtyadmin.store import AdminStore

OWNER_PHONE = "9876543209"
OWNER_PASSWORD = "Owner@12345"


@pytest.mark.asyncio
async def test_create_assigns_id_and_timestamp(store, asha, no_permissions):
    account = await store.create(permissions=no_permissions, **asha)
    assert account.id is not None
    assert account.role == Role.ADMIN
    assert account.created_at is not None
    assert account.permissions == no_permissions

    fetched = await store.get(account.id)
    assert fetched.phone_number == "9876543220"
    assert fetched.created_at == account.created_at


@pytest.mark.asyncio
async def test_duplicate_phone_leaves_collection_unchanged(store, asha, no_permissions):
    await store.create(permissions=no_permissions, **asha)
    before = await store.list()

    with pytest.raises(DuplicatePhoneError):
        await store.create(
            name="Someone Else",
            phone_number=asha["phone_number"],
            password="Other1234!x",
            permissions=PermissionSet.full(),
        )

    after = await store.list()
    assert len(after) == len(before)
    phones = [a.phone_number for a in after]
    assert len(phones) == len(set(phones))


@pytest.mark.asyncio
async def test_list_keeps_insertion_order(store, no_permissions):
    for i in range(3):
        await store.create(f"Admin {i}xx", f"900000000{i}", "Abcdef1234!", no_permissions)
    assert [a.phone_number for a in await store.list()] == [
        "9000000000",
        "9000000001",
        "9000000002",
    ]


@pytest.mark.asyncio
async def test_update_permissions_replaces_and_is_idempotent(store, asha, no_permissions):
    account = await store.create(permissions=no_permissions, **asha)
    new_set = no_permissions.merge({"addProperty": True, "viewInquiries": True})

    updated = await store.update_permissions(account.id, new_set)
    assert updated.permissions == new_set
    assert updated.created_at == account.created_at

    again = await store.update_permissions(account.id, new_set)
    assert again.permissions == updated.permissions
    assert (await store.get(account.id)).permissions == new_set


@pytest.mark.asyncio
async def test_update_permissions_rejects_partial_set(store, asha, no_permissions):
    account = await store.create(permissions=no_permissions, **asha)
    with pytest.raises(InvalidPermissionSet):
        await store.update_permissions(account.id, {"addProperty": True})
    assert (await store.get(account.id)).permissions == no_permissions


@pytest.mark.asyncio
async def test_missing_account_raises_not_found(store):
    with pytest.raises(NotFoundError):
        await store.get(404)
    with pytest.raises(NotFoundError):
        await store.update_permissions(404, PermissionSet.none())
    with pytest.raises(NotFoundError):
        await store.update_password(404, "Abcdef1234!")
    with pytest.raises(NotFoundError):
        await store.delete(404)


@pytest.mark.asyncio
async def test_password_kept_in_side_table_only(store, sqlite_storage, asha, no_permissions):
    account = await store.create(permissions=no_permissions, **asha)
    assert not hasattr(account, "password")
    assert asha["password"] not in repr(account.to_public_dict())

    async with sqlite_storage.session() as session:
        credential = await session.get(
            Credential, filters={"phone_number": asha["phone_number"]}
        )
    assert credential.password_hash != asha["password"]
    assert credential.password_hash.startswith("$2")


@pytest.mark.asyncio
async def test_update_password_changes_login_only(store, asha, no_permissions):
    perms = no_permissions.merge({"writeBlog": True})
    account = await store.create(permissions=perms, **asha)

    await store.update_password(account.id, "Newpass123$")

    with pytest.raises(AuthError):
        await store.authenticate(asha["phone_number"], asha["password"])
    logged_in = await store.authenticate(asha["phone_number"], "Newpass123$")
    assert logged_in.id == account.id

    after = await store.get(account.id)
    assert after.permissions == perms
    assert after.created_at == account.created_at


@pytest.mark.asyncio
async def test_owner_cannot_be_deleted(store, owner):
    before = len(await store.list())
    with pytest.raises(OwnerProtectedError):
        await store.delete(owner.id)
    assert len(await store.list()) == before
    assert (await store.get(owner.id)).role == Role.OWNER


@pytest.mark.asyncio
async def test_delete_removes_account_and_credential(store, sqlite_storage, asha, no_permissions):
    account = await store.create(permissions=no_permissions, **asha)
    await store.delete(account.id)

    with pytest.raises(NotFoundError):
        await store.get(account.id)
    async with sqlite_storage.session() as session:
        assert (
            await session.get(Credential, filters={"phone_number": asha["phone_number"]})
            is None
        )

    # the phone number is free again but the id is not reused
    recreated = await store.create(permissions=no_permissions, **asha)
    assert recreated.id > account.id


@pytest.mark.asyncio
async def test_ensure_owner_only_creates_once(store):
    first = await store.ensure_owner("Owner Admin", OWNER_PHONE, OWNER_PASSWORD)
    second = await store.ensure_owner("Other Owner", "9999999999", OWNER_PASSWORD)
    assert first.id == second.id
    assert first.role == Role.OWNER
    assert first.permissions == PermissionSet.full()
    owners = [a for a in await store.list() if a.role == Role.OWNER]
    assert len(owners) == 1


@pytest.mark.asyncio
async def test_authenticate(store, owner):
    account = await store.authenticate(OWNER_PHONE, OWNER_PASSWORD)
    assert account.id == owner.id
    with pytest.raises(AuthError):
        await store.authenticate(OWNER_PHONE, "Wrong12345!")
    with pytest.raises(AuthError):
        await store.authenticate("1111111111", OWNER_PASSWORD)


@pytest.mark.asyncio
async def test_store_is_shared_across_instances(sqlite_storage, store, asha, no_permissions):
    await store.create(permissions=no_permissions, **asha)
    other = AdminStore(sqlite_storage)
    with pytest.raises(DuplicatePhoneError):
        await other.create(permissions=no_permissions, **asha)
    assert Permission.ADD_PROPERTY not in (await other.list())[0].permissions.granted()


@pytest.mark.asyncio
async def test_locked_database_is_transport_error(sqlite_db_path, asha, no_permissions):
    busy_store = AdminStore(SQLite(sqlite_db_path, busy_timeout=0.1))
    await busy_store.init_schema()

    async with aiosqlite.connect(sqlite_db_path) as other:
        await other.execute("BEGIN IMMEDIATE")
        with pytest.raises(TransportError):
            await busy_store.create(permissions=no_permissions, **asha)
        await other.rollback()

    assert await busy_store.list() == []
    account = await busy_store.create(permissions=no_permissions, **asha)
    assert account.phone_number == asha["phone_number"]


@pytest.mark.asyncio
async def test_inactive_admin_cannot_log_in(store, asha, no_permissions):
    account = await store.create(permissions=no_permissions, **asha)
    assert account.active is True

    deactivated = await store.set_active(account.id, False)
    assert deactivated.active is False
    assert [a.active for a in await store.list()] == [False]
    with pytest.raises(AuthError, match="inactive"):
        await store.authenticate(asha["phone_number"], asha["password"])

    await store.set_active(account.id, True)
    logged_in = await store.authenticate(asha["phone_number"], asha["password"])
    assert logged_in.id == account.id


@pytest.mark.asyncio
async def test_owner_cannot_be_deactivated(store, owner):
    with pytest.raises(OwnerProtectedError):
        await store.set_active(owner.id, False)
    assert (await store.get(owner.id)).active is True
    with pytest.raises(NotFoundError):
        await store.set_active(999, False)
