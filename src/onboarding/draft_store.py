"""
Draft Store.

Durable slot for the in-progress OnboardingDraft. The controller saves after
every mutation and loads once at session start.

A slot that is missing or cannot be parsed loads as an empty draft. Corruption
means "start fresh", never a crash.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from .errors import PersistenceCorruption
from .state import OnboardingDraft

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_KEY = "onboarding-progress"


class DraftStore(Protocol):
    """Anything that can load and save a draft."""

    def load(self) -> OnboardingDraft: ...

    def save(self, draft: OnboardingDraft) -> None: ...


class InMemoryDraftStore:
    """Keeps the serialized draft in memory. Used by tests and embedders."""

    def __init__(self, raw: str | None = None):
        self.raw = raw
        self.save_count = 0

    def load(self) -> OnboardingDraft:
        if not self.raw:
            return OnboardingDraft()
        try:
            return OnboardingDraft.from_json(self.raw)
        except ValueError as e:
            logger.warning(f"Discarding unreadable draft: {e}")
            return OnboardingDraft()

    def save(self, draft: OnboardingDraft) -> None:
        self.raw = draft.to_json()
        self.save_count += 1

    def clear(self) -> None:
        self.raw = None


class JsonFileDraftStore:
    """
    One JSON blob per key, stored as <directory>/<key>.json.

    Writes go to a temp file in the same directory and are swapped in with
    os.replace, so a crash mid-write leaves the previous draft intact.
    """

    def __init__(self, directory: Path | str, key: str = DEFAULT_DRAFT_KEY):
        self.directory = Path(directory)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def _read(self) -> OnboardingDraft:
        """Read the slot. Raises PersistenceCorruption on unreadable content."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceCorruption(f"draft is not valid UTF-8: {e}") from e
        try:
            return OnboardingDraft.from_json(raw)
        except ValueError as e:
            raise PersistenceCorruption(f"draft is not valid JSON: {e}") from e

    def load(self) -> OnboardingDraft:
        """Load the draft, or an empty one if absent or corrupt."""
        if not self.path.exists():
            return OnboardingDraft()
        try:
            return self._read()
        except PersistenceCorruption as e:
            logger.warning(f"Starting fresh, {self.path}: {e}")
            return OnboardingDraft()
        except OSError as e:
            logger.warning(f"Could not read {self.path}, starting fresh: {e}")
            return OnboardingDraft()

    def save(self, draft: OnboardingDraft) -> None:
        """Write-through save. Called after every mutation."""
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{self.key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(draft.to_json())
            os.replace(tmp_path, self.path)
        except OSError:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        """Remove the slot. Only the CLI calls this."""
        self.path.unlink(missing_ok=True)
