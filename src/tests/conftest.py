import pytest
import pytest_asyncio

from realtyadmin.storage.sqlite import SQLite
from realtyadmin.store import AdminStore
from realtyadmin.controller import AdminLifecycleController
from realtyadmin.config import Settings
from realtyadmin.permissions import PermissionSet

OWNER_PHONE = "9876543209"
OWNER_PASSWORD = "Owner@12345"


@pytest.fixture()
def sqlite_db_path(tmp_path):
    return str(tmp_path / "test.db")


@pytest.fixture()
def sqlite_storage(sqlite_db_path):
    return SQLite(sqlite_db_path)


@pytest_asyncio.fixture()
async def store(sqlite_storage):
    admin_store = AdminStore(sqlite_storage)
    await admin_store.init_schema()
    return admin_store


@pytest_asyncio.fixture()
async def owner(store):
    return await store.ensure_owner("Owner Admin", OWNER_PHONE, OWNER_PASSWORD)


@pytest.fixture()
def controller(store):
    return AdminLifecycleController(store, timeout=5.0)


@pytest.fixture()
def settings(sqlite_db_path):
    return Settings(
        database_path=sqlite_db_path,
        token_secret="test-secret-key",
        owner_phone=OWNER_PHONE,
        owner_password=OWNER_PASSWORD,
        request_timeout=5.0,
    )


@pytest.fixture()
def no_permissions():
    return PermissionSet.none()


@pytest.fixture()
def asha():
    return {
        "name": "Asha Rao",
        "phone_number": "9876543220",
        "password": "Abcdef1234!",
    }
