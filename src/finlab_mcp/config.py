"""Configuration models for the FinLab documentation server."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Identity advertised to MCP clients and the health endpoint."""

    name: str = "finlab-docs"
    version: str = "1.0.0"
    protocol_version: str = "2024-11-05"
    health_name: str = "finlab-mcp"


class SearchConfig(BaseModel):
    """Configures keyword search result cap and context window."""

    max_results: int = Field(default=10, ge=1)
    context_before: int = Field(default=2, ge=0)
    context_after: int = Field(default=5, ge=0)


class FeedbackConfig(BaseModel):
    """Configures feedback key layout and retention."""

    key_prefix: str = Field(default="feedback:", min_length=1)
    ttl_seconds: int = Field(default=30 * 24 * 60 * 60, ge=60)
    default_category: str = "other"
