from abc import ABC, abstractmethod
from typing import Mapping

from .models import AdminAccount


class AdminBackend(ABC):
    """
    The logical requests the lifecycle controller issues. `AdminStore`
    answers them in process, `HttpAdminClient` forwards them to a server.
    Implementations raise members of the `errors` taxonomy, nothing else.
    """

    @abstractmethod
    async def list(self) -> list[AdminAccount]:
        pass

    @abstractmethod
    async def get(self, admin_id: int) -> AdminAccount:
        pass

    @abstractmethod
    async def create(
        self, name: str, phone_number: str, password: str, permissions: Mapping
    ) -> AdminAccount:
        pass

    @abstractmethod
    async def update_permissions(
        self, admin_id: int, permissions: Mapping
    ) -> AdminAccount:
        pass

    @abstractmethod
    async def update_password(self, admin_id: int, new_password: str) -> None:
        pass

    @abstractmethod
    async def set_active(self, admin_id: int, active: bool) -> AdminAccount:
        pass

    @abstractmethod
    async def delete(self, admin_id: int) -> None:
        pass
