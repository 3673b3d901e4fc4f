"""Lock entry model for the file coordination store."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class LockEntry(BaseModel):
    """A single entry in the coordination store.

    Attributes:
        value: Opaque owner data, usually the holder's FQDN.
        created_at: When the store accepted the entry.
    """

    value: str = Field(description="Owner data written by the creator")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
