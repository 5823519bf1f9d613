"""Shared domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class SearchHit:
    """A single keyword match with its surrounding lines."""

    document: str
    line: int
    context: str


@dataclass(slots=True)
class FeedbackRecord:
    """A user-submitted note persisted in the key-value store."""

    id: str
    type: str
    message: str
    timestamp: str
    context: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "message": self.message,
        }
        if self.context is not None:
            payload["context"] = self.context
        payload["timestamp"] = self.timestamp
        return payload


@dataclass(slots=True)
class ToolTrace:
    """Trace record for an executed tool call."""

    name: str
    input_payload: dict[str, Any]
    output_preview: str
    latency_ms: float
