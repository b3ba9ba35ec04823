from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

import pytest

from project_timer.storage import (
    CommitData,
    DataStores,
    JsonDataStore,
    StorageFailureError,
    date_key,
    from_epoch_ms,
    parse_stores,
    to_epoch_ms,
)
from project_timer.tracking import AggregationEngine


def populated_stores() -> DataStores:
    stores = DataStores()
    engine = AggregationEngine(stores, clock=lambda: datetime(2025, 1, 8, 18, 0))
    engine.record_completed_session(
        "alpha",
        "/work/alpha",
        datetime(2025, 1, 8, 9, 0),
        datetime(2025, 1, 8, 9, 30),
        1800,
        {".py": 1200, ".md": 600},
        branch="main",
        focus_time=1500,
        interruptions=1,
        context_tag="branch:main,file:.py",
    )
    stores.commits["alpha"] = [
        CommitData(
            commit_hash="abc123",
            message="Add parser",
            author="Dev",
            date=datetime(2025, 1, 8, 9, 25),
            branch="main",
            time_spent=1500,
            files_changed=2,
            lines_added=40,
            lines_deleted=5,
            productivity="medium",
        )
    ]
    return stores


def test_save_then_load_reproduces_document(tmp_path: Path) -> None:
    first = JsonDataStore(tmp_path / "first.json")
    first.save(populated_stores())

    second = JsonDataStore(tmp_path / "nested" / "second.json")
    second.save(first.load())

    assert (tmp_path / "first.json").read_text(encoding="utf-8") == (
        tmp_path / "nested" / "second.json"
    ).read_text(encoding="utf-8")


def test_document_uses_camel_case_keys(tmp_path: Path) -> None:
    store = JsonDataStore(tmp_path / "data.json")
    store.save(populated_stores())

    document = json.loads((tmp_path / "data.json").read_text(encoding="utf-8"))

    assert set(document) == {"projectData", "dailyData", "commitData"}
    project = document["projectData"]["alpha"]
    assert project["projectPath"] == "/work/alpha"
    assert project["fileTypeStats"] == {".py": 1200, ".md": 600}
    assert project["productivity"]["totalSessions"] == 1
    assert project["entries"][0]["contextTag"] == "branch:main,file:.py"
    day = document["dailyData"]["2025-01-08"]
    assert day["mostProductiveHour"] == 9
    assert day["productivity"]["contextSwitches"] == 1
    commit = document["commitData"]["alpha"][0]
    assert commit["commitHash"] == "abc123"
    assert commit["date"] == "2025-01-08T09:25:00"


def test_load_missing_file_starts_empty(tmp_path: Path) -> None:
    stores = JsonDataStore(tmp_path / "missing.json").load()

    assert stores.projects == {}
    assert stores.days == {}
    assert stores.commits == {}


def test_load_corrupt_file_starts_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    caplog.set_level(logging.ERROR, logger="project_timer.storage.json_store")

    stores = JsonDataStore(path).load()

    assert stores.projects == {}
    assert "Error loading project timer data" in caplog.text


def test_load_invalid_shape_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"projectData": {"alpha": {"entries": "nope"}}}), encoding="utf-8")

    stores = JsonDataStore(path).load()

    assert stores.projects == {}


def test_parse_tolerates_missing_sections() -> None:
    stores = parse_stores({"projectData": {}})

    assert stores.days == {}
    assert stores.commits == {}

    with pytest.raises(ValueError):
        parse_stores(["not", "a", "document"])


def test_save_failure_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")

    with pytest.raises(StorageFailureError):
        JsonDataStore(blocker / "data.json").save(DataStores())


def test_time_helpers() -> None:
    moment = datetime(2025, 3, 4, 5, 6, 7)

    assert date_key(moment) == "2025-03-04"
    assert from_epoch_ms(to_epoch_ms(moment)) == moment
