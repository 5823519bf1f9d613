"""FinLab documentation MCP server package."""

from .config import FeedbackConfig, SearchConfig, ServerConfig
from .tools.docs import build_langchain_tools

__all__ = ["FeedbackConfig", "SearchConfig", "ServerConfig", "build_langchain_tools"]
