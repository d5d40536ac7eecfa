from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from tests.fakes import FakeLauncher, RecordingEcho


@pytest.fixture
def make_tree(tmp_path: Path):
    def _make(files: dict[str, str], *, root: Path | None = None) -> Path:
        base = root if root is not None else tmp_path
        for relative, content in files.items():
            path = base / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return base

    return _make


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def echo() -> RecordingEcho:
    return RecordingEcho()
