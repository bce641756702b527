"""
Enqueued product — one unit of classification work carried through the job queue.

The payload produced by to_payload() is persisted by the broker while a job
waits (up to a day for delayed resyncs), so its keys must stay stable:

    {
        "product_id": int,
        "country_of_destination": str,   # omitted on "sync" units
        "action": "create" | "update" | "get" | "sync",
        "timestamp": int,                # optional, unix seconds to run at
        "error_message": str,            # optional
        "resolution": str,               # optional
    }
Version: 1.0.0
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class SyncAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    GET = "get"
    SYNC = "sync"


class EnqueuedProduct(BaseModel):
    """A product, a destination country and what to do about its classification."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    product_id: int
    country_of_destination: Optional[str] = None
    action: SyncAction
    timestamp: Optional[int] = None
    error_message: Optional[str] = None
    resolution: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Encode to the queue wire shape, leaving unset optional keys out."""
        payload: Dict[str, Any] = {
            "product_id": self.product_id,
            "action": self.action.value,
        }
        if self.country_of_destination is not None:
            payload["country_of_destination"] = self.country_of_destination
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        if self.error_message is not None:
            payload["error_message"] = self.error_message
        if self.resolution is not None:
            payload["resolution"] = self.resolution
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "EnqueuedProduct":
        """Decode a wire payload. Unknown keys are ignored."""
        return cls.model_validate(payload)

    def with_timestamp(self, timestamp: Optional[int]) -> "EnqueuedProduct":
        return self.model_copy(update={"timestamp": timestamp})

    def with_error_message(self, error_message: Optional[str]) -> "EnqueuedProduct":
        return self.model_copy(update={"error_message": error_message})

    def with_resolution(self, resolution: Optional[str]) -> "EnqueuedProduct":
        return self.model_copy(update={"resolution": resolution})

    @property
    def is_sync(self) -> bool:
        return self.action == SyncAction.SYNC

    def __str__(self) -> str:
        country = self.country_of_destination or "*"
        return f"{self.action.value}:{self.product_id}:{country}"
