from abc import ABC
from dataclasses import dataclass, asdict, fields, MISSING, field
from typing import ClassVar
from typing import get_origin, get_args, Union, Optional
from types import UnionType
import datetime


class MissingDefault:
    pass


class CurrentTimeStamp:
    pass


@dataclass
class Model(ABC):
    # id is generated by the storage, so it never takes part in inserts
    exclude: ClassVar[list[str]] = ["id"]
    id: Optional[int] = field(
        default=None,
        metadata={"primary_key": True, "index": True, "auto_increment": True},
        init=False,
    )

    def to_dict(self, exclude: list[str] = [], include_none: bool = True) -> dict:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        return {
            k: v
            for k, v in data.items()
            if k not in self.exclude
            and k not in exclude
            and (include_none or v is not None)
        }

    @classmethod
    def get_fields(cls):
        return {f.name for f in fields(cls)}

    def get_values(self):
        """
        Values to insert. None is only kept when the field type allows it,
        so the storage default applies otherwise.
        """
        insert_data = {}
        for f in fields(self):
            origin = get_origin(f.type)
            if f.name in self.exclude:
                continue

            value = getattr(self, f.name, None)
            if value is None:
                if origin is Union or origin is UnionType:
                    if type(None) in get_args(f.type):
                        insert_data[f.name] = value
            else:
                insert_data[f.name] = value

        return insert_data

    @classmethod
    def get_schema(cls, exclude=[]):
        """Column description per field; only default_factory values count as defaults"""
        schema = {}
        for f in fields(cls):
            if f.name in exclude:
                continue
            field_type = f.type
            origin = get_origin(field_type)
            metadata = f.metadata
            default = MissingDefault()
            if f.default_factory is not MISSING:
                if isinstance(field_type, type) and issubclass(
                    field_type, datetime.datetime
                ):
                    default = CurrentTimeStamp()
                else:
                    default = f.default_factory()

            schema[f.name] = {
                "type": None,
                "default": default,
                "primary_key": metadata.get("primary_key", False),
                "index": metadata.get("index", False),
                "unique": metadata.get("unique", False),
                "auto_increment": metadata.get("auto_increment", False),
            }
            if metadata.get("json") or origin in (list, dict):
                schema[f.name]["type"] = "json"
            elif origin is Union or origin is UnionType:
                schema[f.name]["type"] = [
                    t.__name__ if hasattr(t, "__name__") else str(t)
                    for t in get_args(field_type)
                ]
            else:
                schema[f.name]["type"] = [
                    (
                        field_type.__name__
                        if hasattr(field_type, "__name__")
                        else str(field_type)
                    )
                ]

        return schema
