"""Feedback records persisted in an external key-value store."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, TypeAdapter

from finlab_mcp.config import FeedbackConfig
from finlab_mcp.feedback.kv import KeyValueStore
from finlab_mcp.types import FeedbackRecord

logger = logging.getLogger(__name__)

_RECORD_ADAPTER = TypeAdapter(FeedbackRecord)


class FeedbackCategory(str, Enum):
    BUG = "bug"
    FEATURE = "feature"
    IMPROVEMENT = "improvement"
    OTHER = "other"


class FeedbackSubmission(BaseModel):
    """Body of `POST /feedback`; every field is optional at parse time."""

    type: Any = None
    message: str | None = None
    context: str | None = None


class FeedbackError(Exception):
    """Caller input error, rendered as `{"error": message}`."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def coerce_category(value: Any) -> FeedbackCategory:
    """Map free-form input onto the closed category set."""
    try:
        return FeedbackCategory(value)
    except ValueError:
        return FeedbackCategory.OTHER


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2025-01-31T08:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


class FeedbackStore:
    """Create/list/delete feedback on top of a `KeyValueStore`.

    No retries and no caching: each call maps to direct store round-trips and
    store failures propagate to the caller. Listing is best-effort and drops
    entries that cannot be read back.
    """

    def __init__(self, kv: KeyValueStore, config: FeedbackConfig | None = None) -> None:
        self._kv = kv
        self.config = config or FeedbackConfig()

    def key_for(self, feedback_id: str) -> str:
        return f"{self.config.key_prefix}{feedback_id}"

    async def create(self, submission: FeedbackSubmission) -> FeedbackRecord:
        if not submission.message:
            raise FeedbackError("message is required")

        record = FeedbackRecord(
            id=str(uuid.uuid4()),
            type=coerce_category(submission.type).value,
            message=submission.message,
            context=submission.context,
            timestamp=utc_timestamp(),
        )
        await self._kv.put(
            self.key_for(record.id),
            json.dumps(record.to_payload(), ensure_ascii=False),
            expiration_ttl=self.config.ttl_seconds,
        )
        logger.info("Stored feedback %s (type=%s)", record.id, record.type)
        return record

    async def list(self) -> list[FeedbackRecord]:
        records: list[FeedbackRecord] = []
        for key in await self._kv.list_keys(self.config.key_prefix):
            raw = await self._kv.get(key)
            if not raw:
                continue
            try:
                records.append(_RECORD_ADAPTER.validate_json(raw))
            except ValueError:
                logger.warning("Skipping unreadable feedback entry %s", key)
        records.sort(key=lambda record: record.timestamp, reverse=True)
        return records

    async def delete(self, feedback_id: str) -> None:
        if not feedback_id:
            raise FeedbackError("id required")
        await self._kv.delete(self.key_for(feedback_id))
        logger.info("Deleted feedback %s", feedback_id)
