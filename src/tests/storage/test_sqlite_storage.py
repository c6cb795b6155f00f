import pytest
from datetime import datetime
import aiosqlite
from realtyadmin.storage import SQLite, DuplicateEntry, DatabaseBusy, StorageError
from realtyadmin.models import AdminAccount, Credential, Role
from realtyadmin.permissions import PermissionSet


def account(phone: str, **kwargs) -> AdminAccount:
    return AdminAccount(name=f"Admin {phone[-2:]}", phone_number=phone, **kwargs)


@pytest.mark.asyncio
async def test_sqlite_crud(tmp_path):
    storage = SQLite(str(tmp_path / "t.db"))

    async with storage.session() as session:
        await session.init_schema(AdminAccount)

        # create
        created = await session.create(
            account("9000000001", permissions=PermissionSet.full())
        )
        assert created.id is not None

        # get
        got = await session.get(AdminAccount, filters={"id": created.id})
        assert got.phone_number == "9000000001"
        assert got.role == Role.ADMIN
        assert got.permissions == PermissionSet.full()
        assert isinstance(got.created_at, datetime)

        # list
        lst = await session.list(AdminAccount)
        assert len(lst) == 1

        # update
        updated = await session.update(
            AdminAccount, {"id": created.id}, {"permissions": PermissionSet.none()}
        )
        assert updated.permissions == PermissionSet.none()

        # delete
        assert await session.delete(AdminAccount, {"id": created.id}) == 1
        assert await session.get(AdminAccount, filters={"id": created.id}) is None
        await session.commit()


@pytest.mark.asyncio
async def test_pagination_after_id(tmp_path):
    storage = SQLite(str(tmp_path / "pagination.db"))
    await storage.init_schema(AdminAccount)

    async with storage.begin() as session:
        for i in range(5):
            await session.create(account(f"90000000{i:02d}"))

    async with storage.session() as session:
        page1 = await session.list(AdminAccount, limit=2)
        assert len(page1) == 2
        page2 = await session.list(AdminAccount, limit=2, after_id=page1[-1].id)
        assert [a.id for a in page2] == [page1[-1].id + 1, page1[-1].id + 2]
        page3 = await session.list(AdminAccount, limit=2, after_id=page2[-1].id)
        assert len(page3) == 1


@pytest.mark.asyncio
async def test_list_with_filters(tmp_path):
    storage = SQLite(str(tmp_path / "filters.db"))
    await storage.init_schema(AdminAccount)

    async with storage.begin() as session:
        await session.create(account("9000000001", role=Role.OWNER))
        await session.create(account("9000000002"))
        await session.create(account("9000000003"))

    async with storage.session() as session:
        owners = await session.list(AdminAccount, filters={"role": "owner"})
        assert [o.phone_number for o in owners] == ["9000000001"]


@pytest.mark.asyncio
async def test_unique_constraint_becomes_duplicate_entry(tmp_path):
    storage = SQLite(str(tmp_path / "unique.db"))
    await storage.init_schema(Credential)

    async with storage.begin() as session:
        await session.create(Credential(phone_number="9000000001", password_hash="x"))

    with pytest.raises(DuplicateEntry):
        async with storage.begin() as session:
            await session.create(
                Credential(phone_number="9000000001", password_hash="y")
            )


@pytest.mark.asyncio
async def test_failed_transaction_rolls_back(tmp_path):
    storage = SQLite(str(tmp_path / "rollback.db"))
    await storage.init_schema(AdminAccount)

    with pytest.raises(RuntimeError):
        async with storage.begin() as session:
            await session.create(account("9000000001"))
            raise RuntimeError("boom")

    async with storage.session() as session:
        assert await session.list(AdminAccount) == []


@pytest.mark.asyncio
async def test_ids_are_not_reused(tmp_path):
    storage = SQLite(str(tmp_path / "ids.db"))
    await storage.init_schema(AdminAccount)

    async with storage.begin() as session:
        first = await session.create(account("9000000001"))
        await session.delete(AdminAccount, {"id": first.id})
    async with storage.begin() as session:
        second = await session.create(account("9000000002"))

    assert second.id > first.id


@pytest.mark.asyncio
async def test_init_schema_is_idempotent(tmp_path):
    storage = SQLite(str(tmp_path / "schema.db"))
    await storage.init_schema(AdminAccount, Credential)
    await storage.init_schema(AdminAccount, Credential)


@pytest.mark.asyncio
async def test_update_with_no_valid_fields_returns_none(tmp_path):
    storage = SQLite(str(tmp_path / "update_none.db"))
    await storage.init_schema(AdminAccount)

    async with storage.begin() as session:
        created = await session.create(account("9000000001"))
        result = await session.update(
            AdminAccount, {"id": created.id}, {"not_a_field": True}
        )
        assert result is None


@pytest.mark.asyncio
async def test_get_without_filters_raises(tmp_path):
    storage = SQLite(str(tmp_path / "get_err.db"))

    async with storage.session() as session:
        await session.init_schema(AdminAccount)
        with pytest.raises(ValueError):
            await session.get(AdminAccount)


@pytest.mark.asyncio
async def test_write_lock_contention_is_storage_error(tmp_path):
    path = str(tmp_path / "locked.db")
    storage = SQLite(path, busy_timeout=0.1)
    await storage.init_schema(AdminAccount)

    async with aiosqlite.connect(path) as other:
        await other.execute("BEGIN IMMEDIATE")
        with pytest.raises(DatabaseBusy):
            async with storage.begin() as session:
                await session.create(account("9000000001"))
        await other.rollback()


@pytest.mark.asyncio
async def test_unopenable_database_is_storage_error(tmp_path):
    storage = SQLite(str(tmp_path / "missing" / "dir" / "t.db"))
    with pytest.raises(StorageError):
        async with storage.session():
            pass
