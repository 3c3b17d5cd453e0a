from __future__ import annotations

from pathlib import Path

import pytest

from storefront import storage


@pytest.fixture(autouse=True)
def temp_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Every test gets its own sqlite file instead of /data."""
    db = tmp_path / "state" / "storefront.sqlite3"
    monkeypatch.setattr(storage, "DB_PATH", str(db))
    return db
