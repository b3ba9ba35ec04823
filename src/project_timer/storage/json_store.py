"""JSON document persistence layer."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .models import CommitData, DailyRecord, DataStores, ProjectTime

logger = logging.getLogger(__name__)

PROJECTS_ADAPTER = TypeAdapter(dict[str, ProjectTime])
DAYS_ADAPTER = TypeAdapter(dict[str, DailyRecord])
COMMITS_ADAPTER = TypeAdapter(dict[str, list[CommitData]])


class StorageFailureError(RuntimeError):
    """Raised when the data file cannot be written."""


def dump_stores(stores: DataStores) -> dict[str, Any]:
    """Serialize the stores into the persisted document shape."""

    return {
        "projectData": PROJECTS_ADAPTER.dump_python(stores.projects, mode="json", by_alias=True),
        "dailyData": DAYS_ADAPTER.dump_python(stores.days, mode="json", by_alias=True),
        "commitData": COMMITS_ADAPTER.dump_python(stores.commits, mode="json", by_alias=True),
    }


def parse_stores(document: Any) -> DataStores:
    """Validate a persisted document. Missing top-level keys yield empty stores."""

    if not isinstance(document, dict):
        raise ValueError("Data document must be a JSON object")
    return DataStores(
        projects=PROJECTS_ADAPTER.validate_python(document.get("projectData") or {}),
        days=DAYS_ADAPTER.validate_python(document.get("dailyData") or {}),
        commits=COMMITS_ADAPTER.validate_python(document.get("commitData") or {}),
    )


class JsonDataStore:
    """Read and write the whole tracking state as a single JSON document."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> DataStores:
        """Load stores from disk, starting empty when the file is missing or unreadable."""

        if not self._path.exists():
            logger.info("No existing data file found", extra={"path": str(self._path)})
            return DataStores()

        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
            stores = parse_stores(document)
        except (OSError, ValueError, ValidationError) as exc:
            logger.error(
                "Error loading project timer data; starting empty",
                extra={"path": str(self._path), "error": str(exc)},
            )
            return DataStores()

        logger.info(
            "Loaded project timer data",
            extra={"projects": len(stores.projects), "days": len(stores.days)},
        )
        return stores

    def save(self, stores: DataStores) -> None:
        with stores.lock:
            payload = json.dumps(dump_stores(stores), indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            raise StorageFailureError(f"Unable to write data file {self._path}: {exc}") from exc


__all__ = ["JsonDataStore", "StorageFailureError", "dump_stores", "parse_stores"]
