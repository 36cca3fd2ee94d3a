"""Unit tests for the settings stores."""

import orjson
import pytest

from code_review_engine.core.exceptions import ConfigError
from code_review_engine.core.settings import (
    InMemorySettingsStore,
    JsonFileSettingsStore,
)


def test_in_memory_store_round_trip():
    store = InMemorySettingsStore({"a": 1})

    assert store.get("a") == 1
    assert store.get("missing") is None

    store.set("b", ["x"])
    assert store.get("b") == ["x"]


def test_in_memory_store_copies_initial_data():
    initial = {"a": 1}
    store = InMemorySettingsStore(initial)
    store.set("a", 2)

    assert initial == {"a": 1}


def test_json_store_missing_file_is_empty(tmp_path):
    store = JsonFileSettingsStore(tmp_path / "settings.json")

    assert store.get("configuredProviders") is None
    assert not (tmp_path / "settings.json").exists()


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    JsonFileSettingsStore(path).set("enabledProviders", ["semgrep"])

    assert orjson.loads(path.read_bytes()) == {"enabledProviders": ["semgrep"]}
    assert JsonFileSettingsStore(path).get("enabledProviders") == ["semgrep"]


def test_json_store_keeps_other_keys(tmp_path):
    path = tmp_path / "settings.json"
    store = JsonFileSettingsStore(path)
    store.set("a", 1)
    store.set("b", 2)

    reloaded = JsonFileSettingsStore(path)
    assert reloaded.get("a") == 1
    assert reloaded.get("b") == 2


@pytest.mark.parametrize("content", [b"{not json", b"[1, 2, 3]", b"\"text\""])
def test_json_store_ignores_unusable_file(tmp_path, content):
    path = tmp_path / "settings.json"
    path.write_bytes(content)

    store = JsonFileSettingsStore(path)
    assert store.get("configuredProviders") is None

    # The store stays writable; the unusable content is replaced
    store.set("a", 1)
    assert orjson.loads(path.read_bytes()) == {"a": 1}


def test_json_store_write_failure_raises_config_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file")
    store = JsonFileSettingsStore(blocker / "settings.json")

    with pytest.raises(ConfigError):
        store.set("a", 1)


def test_default_path_honours_env_override(tmp_path, monkeypatch):
    target = tmp_path / "custom.json"
    monkeypatch.setenv("CODE_REVIEW_SETTINGS", str(target))

    store = JsonFileSettingsStore()
    assert store.path == target
