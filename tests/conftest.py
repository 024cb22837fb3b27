import pytest

from cmtree.core.config import ENV_PREFIX
from cmtree.core.storage import MemoryAdapter
from cmtree.utils.logger import reset_logging


ENV_KEYS = [
    ENV_PREFIX + name
    for name in (
        "DATA_DIR",
        "DB_NAME",
        "TREE_NAME",
        "DEPTH",
        "HASHER",
        "LOG_DIR",
        "LOG_TO_FILE",
    )
]


@pytest.fixture
def clean_env(monkeypatch):
    """Unset CMTREE_* variables; anything a test loads is removed afterwards."""
    for key in ENV_KEYS:
        # setenv first so undo also removes values loaded from .env files
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


@pytest.fixture
def memory_store():
    return MemoryAdapter()


@pytest.fixture(autouse=True)
def clear_log_handlers():
    yield
    reset_logging()
