from abc import ABC, abstractmethod
from typing import TypeVar
from contextlib import asynccontextmanager, AbstractAsyncContextManager
from typing import AsyncGenerator, Any, Union, Type, Optional
from ..models import Model

T = TypeVar("T", bound=Model)


class StorageError(Exception):
    def __init__(self, msg: str = None, *args):
        message = f"Storage error: {msg}" if msg else "Storage error"
        super().__init__(message, *args)


class DuplicateEntry(StorageError):
    pass


class MissingField(StorageError):
    pass


class DatabaseBusy(StorageError):
    pass


class StorageSession(ABC):
    # declared before `list` below, which shadows the builtin in this body
    @abstractmethod
    async def init_schema(self, schema: Type[Model]): ...
    @abstractmethod
    async def init_index(self, table: str, indexes: list[str]): ...
    @abstractmethod
    async def create(self, model: T) -> T: ...
    @abstractmethod
    async def update(
        self, model: Union[T, Type[T]], filters: dict, updates: dict
    ) -> Optional[T]: ...
    @abstractmethod
    async def delete(self, model: Union[T, Type[T]], filters: dict) -> int: ...
    @abstractmethod
    async def get(
        self,
        model: Union[T, Type[T]],
        filters: Optional[dict] = None,
    ) -> Optional[T]: ...
    @abstractmethod
    async def list(
        self,
        model: Union[T, Type[T]],
        limit: Optional[int] = None,
        after_id: Optional[int] = None,
        filters: Optional[dict] = None,
    ) -> list[T]: ...

    @abstractmethod
    async def begin(self): ...
    @abstractmethod
    async def commit(self): ...
    @abstractmethod
    async def rollback(self): ...
    @abstractmethod
    async def connect(self) -> "StorageSession": ...
    @abstractmethod
    async def close(self): ...


# every session() call opens its own connection, use `async with storage.session()`
class Storage(ABC):
    @abstractmethod
    def session(self) -> AbstractAsyncContextManager[StorageSession]:
        pass

    @asynccontextmanager
    async def begin(self) -> AsyncGenerator[StorageSession, Any]:
        """One write transaction: committed on exit, rolled back on any error."""
        async with self.session() as session:
            await session.begin()
            try:
                yield session
            except BaseException:
                await session.rollback()
                raise
            await session.commit()

    @staticmethod
    def get_model_class(model: object) -> Type[Model]:
        if isinstance(model, Model):
            return model.__class__
        elif isinstance(model, type) and issubclass(model, Model):
            return model

        raise TypeError("Invalid model type")
