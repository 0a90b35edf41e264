# KBSync Config Tests
# Tests for configuration loading and validation

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from kbsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from kbsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from kbsync.config.schema import CompareMode, KbSyncConfig, SyncSettings


class TestKbSyncConfig:
    """Tests for KbSyncConfig schema."""

    def test_defaults(self):
        """Test configuration with default values."""
        config = KbSyncConfig()

        assert config.source.type == "file"
        assert config.source.page_size == 50
        assert config.destination.knowledge_base_id == "default"
        assert config.sync.compare_mode == CompareMode.MODIFICATION_DATE
        assert config.sync.allow_prune_all_entities is False
        assert config.sync.bulk_delete_documents is False
        assert config.checkpoint.enabled is True

    def test_full_config(self, sample_config: dict):
        """Test full configuration loading."""
        config = KbSyncConfig.model_validate(sample_config)

        assert config.source.page_size == 1
        assert config.destination.knowledge_base_id == "kb-1"
        assert config.output.colored is False

    def test_compare_mode_any_case(self):
        """Test compare mode is accepted in lower case."""
        assert SyncSettings(compare_mode="content").compare_mode == CompareMode.CONTENT

    def test_unknown_compare_mode(self):
        with pytest.raises(ValidationError):
            SyncSettings(compare_mode="sometimes")

    def test_page_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            KbSyncConfig.model_validate({"source": {"page_size": 0}})

    def test_protected_fields_list(self):
        settings = SyncSettings(protected_fields=" published.alternatives, ,draft.alternatives ")

        assert settings.get_protected_fields() == ["published.alternatives", "draft.alternatives"]
        assert SyncSettings().get_protected_fields() == []

    def test_paths_expanded(self, temp_home: Path):
        config = KbSyncConfig.model_validate({"source": {"path": "~/export.yaml"}})

        assert config.source.path == str(temp_home / "export.yaml")


class TestLoadConfig:
    """Tests for load_config."""

    def test_load_file(self, config_file: Path):
        config = load_config(config_file, environ={})

        assert config.destination.knowledge_base_id == "kb-1"

    def test_default_location(self, config_file: Path):
        """Test that the file under ~/.config/kbsync is used by default."""
        assert get_config_path() == config_file
        assert load_config(environ={}).source.page_size == 1

    def test_config_env_variable(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        path = temp_dir / "elsewhere.yaml"
        monkeypatch.setenv("KBSYNC_CONFIG", str(path))

        assert get_config_path() == path

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError, match="kbsync config init"):
            load_config(temp_dir / "missing.yaml")

    def test_partial_file_merged_with_defaults(self, temp_dir: Path):
        path = temp_dir / "partial.yaml"
        path.write_text(yaml.dump({"sync": {"source_id": "s1"}}), encoding="utf-8")

        config = load_config(path, environ={})

        assert config.sync.source_id == "s1"
        assert config.sync.compare_mode == CompareMode.MODIFICATION_DATE
        assert config.destination.knowledge_base_id == "default"

    def test_empty_file(self, temp_dir: Path):
        path = temp_dir / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path, environ={}).source.type == "file"

    def test_env_overrides(self, config_file: Path):
        environ = {
            "KBSYNC_ALLOW_PRUNE_ALL_ENTITIES": "true",
            "KBSYNC_EXTERNAL_ID_PREFIX": "zd-",
            "KBSYNC_COMPARE_MODE": "none",
            "KBSYNC_KILL_AFTER_LONG_RUNNING_SECONDS": "30",
            "KBSYNC_BULK_DELETE_DOCUMENTS": "true",
            "UNRELATED": "x",
        }

        config = load_config(config_file, environ=environ)

        assert config.sync.allow_prune_all_entities is True
        assert config.sync.external_id_prefix == "zd-"
        assert config.sync.compare_mode == CompareMode.NONE
        assert config.sync.kill_after_long_running_seconds == 30
        assert config.sync.bulk_delete_documents is True

    def test_invalid_env_override(self, config_file: Path):
        with pytest.raises(ValidationError):
            load_config(config_file, environ={"KBSYNC_KILL_AFTER_LONG_RUNNING_SECONDS": "soon"})


class TestSaveConfig:
    """Tests for save_config and ensure_config_exists."""

    def test_save_and_reload(self, temp_dir: Path, kb_config: KbSyncConfig):
        path = save_config(kb_config, temp_dir / "nested" / "config.yaml")

        assert path.exists()
        assert load_config(path, environ={}) == kb_config

    def test_ensure_creates_default(self, temp_home: Path):
        path, created = ensure_config_exists()

        assert created is True
        assert path == temp_home / ".config" / "kbsync" / "config.yaml"
        assert path.read_text(encoding="utf-8") == generate_default_config()

    def test_ensure_keeps_existing(self, config_file: Path):
        before = config_file.read_text(encoding="utf-8")

        path, created = ensure_config_exists(config_file)

        assert created is False
        assert path.read_text(encoding="utf-8") == before


class TestDefaults:
    """Tests for the default configuration."""

    def test_generated_yaml_is_valid(self):
        data = yaml.safe_load(generate_default_config())

        assert data == DEFAULT_CONFIG
        KbSyncConfig.model_validate(data)

    def test_header_documents_overrides(self):
        assert "KBSYNC_ALLOW_PRUNE_ALL_ENTITIES" in generate_default_config()


class TestValidateConfigFile:
    """Tests for validate_config_file."""

    def test_valid(self, config_file: Path):
        ok, errors = validate_config_file(config_file)

        assert ok is True
        assert errors == []

    def test_missing_file(self, temp_dir: Path):
        ok, errors = validate_config_file(temp_dir / "missing.yaml")

        assert ok is False
        assert "not found" in errors[0]

    def test_invalid_yaml(self, temp_dir: Path):
        path = temp_dir / "broken.yaml"
        path.write_text("source: [unclosed", encoding="utf-8")

        ok, errors = validate_config_file(path)

        assert ok is False
        assert "Invalid YAML" in errors[0]

    def test_not_a_mapping(self, temp_dir: Path):
        path = temp_dir / "list.yaml"
        path.write_text("- one\n- two\n", encoding="utf-8")

        assert validate_config_file(path) == (False, ["Configuration must be a mapping"])

    def test_schema_errors_listed(self, temp_dir: Path):
        path = temp_dir / "invalid.yaml"
        path.write_text(yaml.dump({"source": {"path": "x", "page_size": "many"}}), encoding="utf-8")

        ok, errors = validate_config_file(path)

        assert ok is False
        assert errors[0].startswith("source -> page_size")

    def test_missing_paths(self, temp_dir: Path):
        path = temp_dir / "no-paths.yaml"
        path.write_text(yaml.dump({"sync": {"source_id": "s1"}}), encoding="utf-8")

        ok, errors = validate_config_file(path)

        assert ok is False
        assert errors == ["Missing 'source.path'", "Missing 'destination.path'"]
