"""Tests for configuration loading."""
import pytest

from cardsync.config import Config
from cardsync.errors import ConfigError


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = Config.load(env={})
    assert cfg.api_key == ""
    assert cfg.call_delay == 0.2
    assert cfg.list_ids == {}


def test_yaml_then_env_override(tmp_path):
    path = tmp_path / "cardsync.yaml"
    path.write_text(
        "api_key: from-file\n"
        "token: file-token\n"
        "board_id: b1\n"
        "list_ids:\n  todo: L1\n  done: ''\n"
        "unknown_key: ignored\n",
        encoding="utf-8",
    )

    cfg = Config.load(str(path), env={"TRELLO_API_KEY": "from-env", "TRELLO_LIST_DONE": "L9"})

    assert cfg.api_key == "from-env"
    assert cfg.token == "file-token"
    assert cfg.list_ids == {"todo": "L1", "done": "L9"}
    cfg.validate()


def test_env_log_level_and_delay(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    cfg = Config.load(env={"LOG_LEVEL": "debug", "CARDSYNC_CALL_DELAY": "0"})
    assert cfg.log_level == "DEBUG"
    assert cfg.call_delay == 0.0


def test_bad_delay_raises(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(ConfigError):
        Config.load(env={"CARDSYNC_CALL_DELAY": "soon"})


def test_explicit_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError):
        Config.load(str(tmp_path / "nope.yaml"), env={})


def test_non_mapping_file_raises(tmp_path):
    path = tmp_path / "cardsync.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        Config.load(str(path), env={})


def test_numeric_strings_are_coerced(tmp_path):
    path = tmp_path / "cardsync.yaml"
    path.write_text('call_delay: "0.5"\nrequest_timeout: 30\n', encoding="utf-8")

    cfg = Config.load(str(path), env={})

    assert cfg.call_delay == 0.5
    assert cfg.request_timeout == 30.0


@pytest.mark.parametrize("content", [
    "call_delay: soon\n",
    "request_timeout: [1, 2]\n",
    "list_ids:\n- L1\n- L2\n",
])
def test_bad_value_types_raise(tmp_path, content):
    path = tmp_path / "cardsync.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        Config.load(str(path), env={})


def test_validate_lists_missing_credentials():
    with pytest.raises(ConfigError) as exc:
        Config(api_key="k").validate()
    assert "token" in str(exc.value)
    assert "board_id" in str(exc.value)
