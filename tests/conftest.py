"""
Pytest configuration file.

Ensures the repo root is on sys.path so that 'import refload...' and
'import actions...' work, and gives every test freshly loaded settings.
"""
import sys
from pathlib import Path

import pytest

# Add the repo root to sys.path
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from refload.config.settings import reset_settings  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Drop cached settings and any REFLOAD_* variables around each test."""
    for name in ("REFLOAD_SEPARATOR", "REFLOAD_ENCODING", "REFLOAD_DATA_DIR", "REFLOAD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def write_ref_file(tmp_path):
    """Write ``text`` to a reference file under tmp_path and return its path."""
    def _write(text: str, name: str = "ref.txt") -> Path:
        path = tmp_path / name
        path.write_bytes(text.encode("utf-8"))
        return path
    return _write
