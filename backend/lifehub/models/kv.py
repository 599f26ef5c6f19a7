from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class KeyValueRecord(SQLModel, table=True):
    """
    Serialized store snapshot.

    Each store owns one or more keys (e.g. "tasks", "time_entries") and
    rewrites the whole value on every mutation. updated_at is UTC-aware.
    """

    __tablename__ = "kv_records"

    key: str = Field(primary_key=True)
    value: bytes
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
