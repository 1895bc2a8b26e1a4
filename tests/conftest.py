from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Make package importable when running tests from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# The web app opens its activity log at import time.
os.environ.setdefault("DB_FILE", os.path.join(tempfile.mkdtemp(prefix="orgchart-tests-"), "test.db"))

from orgchart.services.hierarchy import Record  # noqa: E402


def make_record(record_id, manager_id=None, first="First", last="Last", **extra) -> Record:
    attributes = {
        "firstName": first,
        "lastName": last,
        "email": f"user{record_id}@company.com",
        "password": "pass",
    }
    attributes.update(extra)
    return Record(id=record_id, manager_id=manager_id, attributes=attributes)


@pytest.fixture()
def org_records() -> list[Record]:
    """CEO with two VPs, one VP with two reports, plus an outside root and an orphan."""
    return [
        make_record(1, first="John", last="Doe"),
        make_record(2, 1, first="Jane", last="Smith"),
        make_record(3, 1, first="Ali", last="Khan"),
        make_record(4, 2, first="Mia", last="Wong"),
        make_record(5, 2, first="Leo", last="Park"),
        make_record(6, first="Ava", last="Reed"),
        make_record(7, 999, first="Sam", last="Cole"),
    ]


class FakeDirectory:
    def __init__(self, records=None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.calls = 0

    def fetch_records(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture()
def fake_directory(org_records):
    return FakeDirectory(org_records)
