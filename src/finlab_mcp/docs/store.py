"""Immutable in-memory document corpus."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_DOCS_DIR = Path(__file__).resolve().parents[1] / "data" / "docs"


class DocumentStore:
    """Read-only mapping from document name to markdown text.

    Built once at process start; iteration follows insertion order, which is
    the order every listing and search reports documents in.
    """

    def __init__(self, documents: Mapping[str, str]) -> None:
        self._documents: Mapping[str, str] = MappingProxyType(dict(documents))

    @classmethod
    def from_mapping(cls, documents: Mapping[str, str]) -> "DocumentStore":
        return cls(documents)

    @classmethod
    def from_directory(cls, path: str | Path) -> "DocumentStore":
        """Load every ``*.md`` file in ``path``, named by file stem."""

        root = Path(path)
        if not root.is_dir():
            raise FileNotFoundError(f"Document directory not found: {root}")

        documents = {
            file.stem: file.read_text(encoding="utf-8")
            for file in sorted(root.glob("*.md"))
        }
        logger.info("Loaded %d documents from %s", len(documents), root)
        return cls(documents)

    def names(self) -> list[str]:
        return list(self._documents)

    def get(self, name: str) -> str | None:
        return self._documents.get(name)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._documents.items())

    def __contains__(self, name: object) -> bool:
        return name in self._documents

    def __iter__(self) -> Iterator[str]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)


def load_default_store() -> DocumentStore:
    """Load the corpus packaged with the server."""
    return DocumentStore.from_directory(DEFAULT_DOCS_DIR)
