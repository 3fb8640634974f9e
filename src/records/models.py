"""Vector record data models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

# Payload layout of a stored point.
PAYLOAD_ORIGINAL_ID = "original_id"
PAYLOAD_TEXT = "text"
PAYLOAD_METADATA = "metadata"
PAYLOAD_CREATED_AT = "created_at"


class VectorRecord(BaseModel):
    """A text together with its embedding.

    Attributes:
        id: Caller-facing identifier. Generated on store when omitted.
        storage_key: Native key the record is stored under.
        text: Source text of the embedding.
        embedding: The embedding vector.
        metadata: Caller metadata, stored unchanged.
        created_at: Write timestamp.
    """

    id: str | None = Field(default=None, description="Record identifier")
    storage_key: str | None = Field(default=None, description="Native storage key")
    text: str = Field(description="Source text")
    embedding: list[float] = Field(description="Embedding vector")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Caller metadata",
    )
    created_at: datetime | None = Field(default=None, description="Write timestamp")
