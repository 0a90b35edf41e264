# KBSync Test Fixtures
# Pytest fixtures for KBSync tests

import io
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml
from rich.console import Console

from kbsync.config.schema import KbSyncConfig
from kbsync.logger import SyncLogger


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary home directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("KBSYNC_CONFIG", raising=False)
    return home


@pytest.fixture
def logger() -> SyncLogger:
    """Logger writing into a buffer instead of the terminal."""
    return SyncLogger(Console(file=io.StringIO(), width=200), verbose=True)


@pytest.fixture
def source_data() -> dict:
    """Source export with a category tree, labels and two articles."""
    return {
        "categories": [
            {"id": "c1", "name": "Billing", "updated_at": "v1"},
            {"id": "c2", "name": "Invoices", "parent_id": "c1", "updated_at": "v1"},
        ],
        "labels": [
            {"id": "l1", "name": "Urgent", "color": "#ff0000", "updated_at": "v1"},
            {"id": "l2", "name": "FAQ", "updated_at": "v1"},
        ],
        "articles": [
            {
                "id": "a1",
                "title": "How do I pay an invoice?",
                "body": "Open the invoice.\n\nClick pay.",
                "category_id": "c2",
                "label_ids": ["l1"],
                "alternatives": ["pay invoice"],
                "url": "https://help.example.com/a1",
                "updated_at": "v1",
            },
            {
                "id": "a2",
                "title": "Refunds",
                "body": "Refunds take five days.",
                "category_id": "c1",
                "updated_at": "v1",
            },
        ],
    }


@pytest.fixture
def source_file(temp_dir: Path, source_data: dict) -> Path:
    """Write the source export as YAML."""
    path = temp_dir / "source.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(source_data, f, default_flow_style=False, sort_keys=False)
    return path


@pytest.fixture
def store_file(temp_dir: Path) -> Path:
    """Path of the destination store, not created yet."""
    return temp_dir / "knowledge-base.json"


@pytest.fixture
def checkpoint_file(temp_dir: Path) -> Path:
    """Path of the checkpoint, not created yet."""
    return temp_dir / "context.json"


@pytest.fixture
def sample_config(source_file: Path, store_file: Path, checkpoint_file: Path) -> dict:
    """Create sample configuration dict."""
    return {
        "source": {"type": "file", "path": str(source_file), "page_size": 1},
        "destination": {"type": "file", "path": str(store_file), "knowledge_base_id": "kb-1"},
        "sync": {"compare_mode": "MODIFICATION_DATE"},
        "checkpoint": {"enabled": True, "path": str(checkpoint_file)},
        "output": {"verbose": False, "colored": False},
    }


@pytest.fixture
def kb_config(sample_config: dict) -> KbSyncConfig:
    """Validated configuration of the sample setup."""
    return KbSyncConfig.model_validate(sample_config)


@pytest.fixture
def config_file(temp_home: Path, sample_config: dict) -> Path:
    """Create a configuration file."""
    config_dir = temp_home / ".config" / "kbsync"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "config.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(sample_config, f, default_flow_style=False)

    return config_path
