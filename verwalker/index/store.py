"""IndexStore: reads and writes the index as a single JSON document."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from verwalker.index.models import Index

logger = logging.getLogger(__name__)


class IndexFileError(ValueError):
    """The index file is missing or cannot be parsed."""


class IndexStore:
    """Persists an Index to ``path``.

    Writes go to a temp file in the same directory which then replaces the
    target, so an interrupted write leaves the previous index intact.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def save(self, index: Index) -> Path:
        data = index.model_dump(mode="json", by_alias=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(temp_path, self.path)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise
        logger.debug("wrote %s (%d packages)", self.path, len(index.packages))
        return self.path

    def load(self) -> Index:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise IndexFileError(
                f"index file {self.path} not found; run `verwalker index` first"
            ) from e
        try:
            return Index.model_validate(json.loads(raw))
        except json.JSONDecodeError as e:
            raise IndexFileError(f"index file {self.path} is not valid JSON: {e}") from e
        except ValidationError as e:
            raise IndexFileError(f"index file {self.path} is malformed: {e}") from e
