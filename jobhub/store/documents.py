import json
import logging
from pathlib import Path
from typing import List, Optional

from jobhub.jobs.normalize import normalize_record
from jobhub.models.schema import JobPosting


logger = logging.getLogger(__name__)


class StoreError(Exception):
    pass


def read_jsonl(path: Path) -> List[dict]:
    rows = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning("[store] Skipping malformed line %d in %s: %s", lineno, path, e)
                continue
            if isinstance(row, dict):
                rows.append(row)
    return rows


def read_json_array(path: Path) -> List[dict]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("data") or payload.get("jobs") or []
    return [row for row in payload if isinstance(row, dict)]


class JobStore:
    """Read-only document store backed by a JSON Lines (or JSON array) export.

    Documents are normalized on load and cached until the file changes.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._records: List[JobPosting] = []
        self._mtime: Optional[float] = None

    def _load(self) -> List[JobPosting]:
        if self.path.suffix == ".json":
            rows = read_json_array(self.path)
        else:
            rows = read_jsonl(self.path)

        seen = set()
        records: List[JobPosting] = []
        for row in rows:
            record = normalize_record(row)
            if record.id in seen:
                continue
            seen.add(record.id)
            records.append(record)
        logger.info("[store] Loaded %d job documents from %s", len(records), self.path)
        return records

    def all(self) -> List[JobPosting]:
        try:
            mtime = self.path.stat().st_mtime
        except OSError as e:
            raise StoreError(f"Job store not readable at {self.path}: {e}") from e

        if mtime != self._mtime:
            try:
                self._records = self._load()
            except (OSError, ValueError) as e:
                raise StoreError(f"Failed to load job store {self.path}: {e}") from e
            self._mtime = mtime
        return self._records
