import logging
from contextlib import asynccontextmanager
from typing import TypeVar, Type, Union, Optional

import aiosqlite

from .sql import SQLSession
from .storage import (
    Storage,
    StorageError,
    DuplicateEntry,
    MissingField,
    DatabaseBusy,
)
from ..models import Model

T = TypeVar("T", bound=Model)

logger = logging.getLogger(__name__)


class SQLiteSession(SQLSession):
    def __init__(self, conn_uri: str, busy_timeout: float = 5.0):
        self.conn_uri = conn_uri
        self.busy_timeout = busy_timeout
        self.connection: aiosqlite.Connection = None

    def python_to_sqltype(self, py_type):
        # If union, pick the first non-NoneType
        if isinstance(py_type, list):
            main_type = next((t for t in py_type if t != "NoneType"), "TEXT")
            return self.python_to_sqltype(main_type)

        mapping = {
            "str": "TEXT",
            "bool": "INTEGER",
            "int": "INTEGER",
            "float": "REAL",
            "datetime": "TEXT",
            "json": "TEXT",
            "NoneType": "TEXT",
            "auto_increment": "AUTOINCREMENT",
        }
        return mapping.get(py_type, "TEXT")

    async def execute(self, sql: str, *args):
        # commits are driven by Storage.begin()
        async with self.connection.execute(sql, *args) as cursor:
            return cursor.lastrowid

    async def init_index(self, table: str, indexes: list[str]):
        if not indexes:
            return

        for col in indexes:
            index_name = f"{table}_{col}_idx"
            await self.connection.execute(
                f"CREATE INDEX IF NOT EXISTS {index_name} ON {table}({col});"
            )

        await self.connection.commit()

    def _row_to_model(self, table: Type[T], row) -> T:
        # column 0 is the id, which can't be passed to __init__
        schema = table.get_schema(exclude=["id"])
        result = dict(zip(schema, row[1:]))
        obj = table(**self.decode(schema, result))
        obj.id = row[0]
        return obj

    async def get(
        self,
        model: Union[T, Type[T]],
        filters: dict = None,
    ) -> Optional[T]:
        if not filters:
            raise ValueError("Filters must be provided for sqlite adapter")
        try:
            table = Storage.get_model_class(model)

            table_name = table.__name__.lower()
            where = " AND ".join([f"{attribute}=?" for attribute in filters])
            values = list(filters.values())
            select = f"SELECT * FROM {table_name} WHERE {where} LIMIT 1"
            async with self.connection.execute(select, values) as cursor:
                row = await cursor.fetchone()
            if not row:
                return None
            return self._row_to_model(table, row)
        except Exception as e:
            raise self.process_exception(e)

    async def list(
        self,
        model: Union[T, Type[T]],
        limit: Optional[int] = None,
        after_id: Optional[int] = None,
        filters: Optional[dict] = None,
    ) -> list[T]:
        try:
            table = Storage.get_model_class(model)
            table_name = table.__name__.lower()

            where_clauses = [f"{attribute}=?" for attribute in filters or {}]
            values = list((filters or {}).values())
            if after_id is not None:
                where_clauses.append("id > ?")
                values.append(after_id)

            where = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
            select = f"SELECT * FROM {table_name} {where} ORDER BY id ASC"
            if limit is not None:
                select += f" LIMIT {int(limit)}"

            async with self.connection.execute(select, values) as cursor:
                rows = await cursor.fetchall()

            return [self._row_to_model(table, row) for row in rows]
        except Exception as e:
            raise self.process_exception(e)

    async def update(
        self, model: Union[T, Type[T]], filters: dict, updates: dict
    ) -> Optional[T]:
        """Update the matching row and return it as a model, None if nothing matched"""
        if not filters:
            raise ValueError("filters are empty")
        try:
            table = Storage.get_model_class(model)
            table_name = table.__name__.lower()

            schema = table.get_schema(exclude=["id"])
            updates = self.encode(schema, updates)

            if not updates:
                return None

            set_clause = ", ".join([f"{attr}=?" for attr in updates])
            set_values = list(updates.values())

            where_clause = " AND ".join([f"{attr}=?" for attr in filters])
            where_values = list(filters.values())

            sql = (
                f"UPDATE {table_name} SET {set_clause} WHERE {where_clause} RETURNING *"
            )
            async with self.connection.execute(
                sql, (*set_values, *where_values)
            ) as cursor:
                row = await cursor.fetchone()
            if not row:
                return None
            return self._row_to_model(table, row)
        except Exception as e:
            raise self.process_exception(e)

    async def delete(self, model: Union[T, Type[T]], filters: dict) -> int:
        """Delete matching rows, returns how many were removed"""
        if not filters:
            raise ValueError("filters are empty")
        try:
            table = Storage.get_model_class(model)
            table_name = table.__name__.lower()

            where_clause = " AND ".join([f"{attr}=?" for attr in filters])
            where_values = list(filters.values())

            sql = f"DELETE FROM {table_name} WHERE {where_clause}"

            async with self.connection.execute(sql, (*where_values,)) as cursor:
                return cursor.rowcount
        except Exception as e:
            raise self.process_exception(e)

    async def rollback(self):
        return await self.connection.rollback()

    async def begin(self):
        # IMMEDIATE takes the write lock up front so read-modify-write
        # sequences from different sessions are serialized
        try:
            await self.connection.execute("BEGIN IMMEDIATE")
        except Exception as e:
            raise self.process_exception(e)

    async def commit(self):
        try:
            await self.connection.commit()
        except Exception as e:
            raise self.process_exception(e)

    async def connect(self):
        try:
            self.connection = await aiosqlite.connect(
                self.conn_uri, timeout=self.busy_timeout
            )
        except Exception as e:
            raise self.process_exception(e)
        return self

    async def close(self):
        await self.connection.close()

    def get_placeholder(self, count: int):
        return ",".join("?" for _ in range(count))

    def process_exception(self, e: Exception) -> Exception:
        if isinstance(e, aiosqlite.IntegrityError):
            msg = str(e)
            if "UNIQUE constraint failed" in msg:
                return DuplicateEntry(msg)
            elif "NOT NULL constraint failed" in msg:
                return MissingField(msg)
            return StorageError(f"integrity error: {msg}")

        elif isinstance(e, aiosqlite.OperationalError):
            msg = str(e)
            if "no such table" in msg:
                return StorageError(f"table not found: {msg}")
            elif "no such column" in msg:
                return StorageError(f"invalid column: {msg}")
            elif "database is locked" in msg:
                return DatabaseBusy(msg)
            return StorageError(f"operational error: {msg}")

        return e


class SQLite(Storage):
    def __init__(self, connection_uri: str, busy_timeout: float = 5.0):
        self.conn_uri = connection_uri
        self.busy_timeout = busy_timeout

    @asynccontextmanager
    async def session(self):
        session = SQLiteSession(self.conn_uri, self.busy_timeout)
        await session.connect()
        try:
            yield session
        finally:
            await session.close()

    async def init_schema(self, *models: Type[Model]):
        async with self.session() as session:
            for model in models:
                logger.debug("initialising table for %s", model.__name__)
                await session.init_schema(model)
