"""Stream ODM schema."""

from datetime import datetime, timezone
from typing import Any

from beanie import Document, Indexed
from pydantic import Field, field_validator
from pymongo import IndexModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Stream(Document):
    """Stream document model.

    One document per broadcaster. The ingress fields are written when an
    ingress is provisioned; ``is_live`` follows the LiveKit ingress webhooks.
    """

    user_id: Indexed(str, unique=True)  # type: ignore[valid-type]

    # Credentials of the most recently provisioned ingress
    ingress_id: str | None = None
    server_url: str | None = None
    stream_key: str | None = None

    is_live: bool = False

    # Timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _parse_datetime(cls, v: Any) -> Any:
        """Parse MongoDB Extended JSON datetime format ({'$date': ...})."""
        if isinstance(v, dict) and "$date" in v:
            return datetime.fromisoformat(v["$date"].replace("Z", "+00:00"))
        return v

    class Settings:
        name = "stream"
        indexes = [
            IndexModel(
                [("ingress_id", 1)],
                partialFilterExpression={"ingress_id": {"$type": "string"}},
                unique=True,
                name="ingress_id_unique",
            ),
        ]
