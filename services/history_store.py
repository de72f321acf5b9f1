"""
File-backed store of saved analyses, keyed by university + department.
Saving under an existing key overwrites it.
"""

import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from app.schemas.history import SavedAnalysis
from app.schemas.prediction import PredictionInput
from app.utils import build_history_key, normalize_name
from core.config import settings

logger = logging.getLogger(__name__)

_entries_adapter = TypeAdapter(List[SavedAnalysis])


class HistoryStore:
    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else settings.HISTORY_FILE
        self._lock = threading.RLock()

    def _load(self) -> List[SavedAnalysis]:
        if not self.path.exists():
            return []
        try:
            return _entries_adapter.validate_json(self.path.read_bytes())
        except (OSError, SchemaValidationError) as exc:
            logger.warning("Ignoring unreadable history file %s: %s", self.path, exc)
            return []

    def _write(self, entries: List[SavedAnalysis]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [entry.model_dump(mode="json") for entry in entries]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def list(self) -> List[SavedAnalysis]:
        """All saved analyses, newest first."""
        with self._lock:
            return sorted(self._load(), key=lambda entry: entry.saved_at, reverse=True)

    def get(self, key: str) -> Optional[SavedAnalysis]:
        with self._lock:
            for entry in self._load():
                if entry.key == key:
                    return entry
            return None

    def save(
        self,
        university: str,
        department: str,
        prediction_input: PredictionInput,
        saved_at: Optional[datetime] = None,
    ) -> SavedAnalysis:
        entry = SavedAnalysis(
            key=build_history_key(university, department),
            university=normalize_name(university),
            department=normalize_name(department),
            prediction_input=prediction_input,
            saved_at=saved_at or datetime.now(settings.tzinfo),
        )
        with self._lock:
            entries = [existing for existing in self._load() if existing.key != entry.key]
            entries.append(entry)
            self._write(entries)
        logger.info("Saved analysis %s", entry.key)
        return entry

    def delete(self, key: str) -> bool:
        """Delete a saved analysis. Returns True if it existed."""
        with self._lock:
            entries = self._load()
            remaining = [entry for entry in entries if entry.key != key]
            if len(remaining) == len(entries):
                return False
            self._write(remaining)
        logger.info("Deleted analysis %s", key)
        return True


_history_store: Optional[HistoryStore] = None


def get_history_store() -> HistoryStore:
    global _history_store
    if _history_store is None:
        _history_store = HistoryStore()
    return _history_store
