import pytest

from view_designer.config import ConfigManager
from view_designer.config.manager import _get_user_config_dir


@pytest.fixture
def user_config_dir(tmp_path):
    path = tmp_path / "user_config"
    path.mkdir()
    return path


def test_packaged_defaults_are_loaded():
    cfg = ConfigManager()

    assert cfg.get_editing_config() == {
        "history_limit": 50,
        "paste_offset": 20,
        "min_size": 1,
        "container_type_prefixes": ["ia.container."],
    }
    assert cfg.get_validation_config()["max_component_count"] == 500
    assert cfg.get_validation_config()["max_nesting_depth"] == 20
    assert cfg.get_repository_config()["api_prefix"] == "/data/webdesigner/api/v1"
    assert cfg.get_logging_config()["version"] == 1


def test_config_manager_is_a_singleton():
    assert ConfigManager() is ConfigManager()
    first = ConfigManager()
    ConfigManager.reset()
    assert ConfigManager() is not first


def test_user_overrides_are_merged(user_config_dir):
    (user_config_dir / "editing.yml").write_text("paste_offset: 5\nhistory_limit: 10\n", encoding="utf-8")
    (user_config_dir / "repository.yml").write_text("base_url: https://gw.example.com\n", encoding="utf-8")
    ConfigManager.reset()

    cfg = ConfigManager()

    assert cfg.get_editing_config()["paste_offset"] == 5
    assert cfg.get_editing_config()["history_limit"] == 10
    assert cfg.get_editing_config()["min_size"] == 1
    assert cfg.get_repository_config()["base_url"] == "https://gw.example.com"
    assert cfg.get_repository_config()["timeout"] == 10


@pytest.mark.parametrize("text", [
    "paste_offset: [1\n",
    "- just\n- a list\n",
])
def test_unusable_user_files_are_ignored(user_config_dir, text):
    (user_config_dir / "editing.yml").write_text(text, encoding="utf-8")
    ConfigManager.reset()

    assert ConfigManager().get_editing_config()["paste_offset"] == 20


def test_user_config_dir_honours_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("VIEW_DESIGNER_CONFIG_DIR", str(tmp_path / "elsewhere"))
    assert _get_user_config_dir() == tmp_path / "elsewhere"

    monkeypatch.delenv("VIEW_DESIGNER_CONFIG_DIR")
    assert _get_user_config_dir().name in (".view_designer", "config")
