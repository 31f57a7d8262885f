"""
Shared pytest fixtures for the typedprefs test suite.

Stores are real: in-memory DictStore or file stores under tmp_path,
cleaned up after each test.

Usage in tests:
    def test_something(store):
        pref = MutablePreference(store, "retries", INTEGER)
        pref.set(3)
"""

import pytest

from typedprefs import context
from typedprefs.core.stores import DictStore, YamlFileStore, JsonFileStore


@pytest.fixture
def store():
    """Empty in-memory store."""
    return DictStore()


@pytest.fixture
def yaml_store(tmp_path):
    """YAML file store in a temp directory (file not yet created)."""
    return YamlFileStore(tmp_path / "prefs.yaml")


@pytest.fixture
def json_store(tmp_path):
    """JSON file store in a temp directory (file not yet created)."""
    return JsonFileStore(tmp_path / "prefs.json")


@pytest.fixture(params=["dict", "yaml", "json"])
def any_store(request, tmp_path):
    """Each mutable store implementation in turn."""
    if request.param == "dict":
        return DictStore()
    if request.param == "yaml":
        return YamlFileStore(tmp_path / "prefs.yaml")
    return JsonFileStore(tmp_path / "prefs.json")


@pytest.fixture(autouse=True)
def clean_context():
    """No default context leaks between tests."""
    context.teardown()
    yield
    context.teardown()


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """
    Point user config at a temp home and clear TYPEDPREFS_* overrides.

    Returns the project directory to pass to ConfigManager.
    """
    from typedprefs.config import ConfigManager

    home = tmp_path / "home" / ".typedprefs"
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_DIR", home)
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", home / "config.yaml")
    for name in ("TYPEDPREFS_STORE_BACKEND", "TYPEDPREFS_STORE_PATH", "TYPEDPREFS_NAMESPACE"):
        monkeypatch.delenv(name, raising=False)

    project = tmp_path / "project"
    project.mkdir()
    return project
