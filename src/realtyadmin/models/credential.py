from dataclasses import dataclass, field
from datetime import datetime
from . import Model


@dataclass
class Credential(Model):
    """Side table of password hashes keyed by phone number, never read by the account path."""

    phone_number: str = field(metadata={"index": True, "unique": True})
    password_hash: str
    updated_at: datetime = field(default_factory=datetime.now)
