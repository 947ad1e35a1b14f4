"""Tests for ConfigStore precedence: overrides > config file > env > defaults."""
import json

from notifier.config_store import ConfigStore
from notifier.settings import Settings


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.delenv("PUSH_SEND_CHUNK_SIZE", raising=False)
    store = ConfigStore(Settings, str(tmp_path / "missing.yaml"))
    store.load_initial()

    s = store.get_settings()
    assert s.push_send_chunk_size == 100
    assert s.push_receipt_chunk_size == 300
    assert s.rate_limited_types == ["daily_reminder"]
    assert s.inactive_reminder_days == [7, 14, 21]


def test_env_is_read(tmp_path, monkeypatch):
    monkeypatch.setenv("RECEIPT_CHECK_DELAY_SECONDS", "3")
    store = ConfigStore(Settings, str(tmp_path / "missing.yaml"))

    assert store.get_settings().receipt_check_delay_seconds == 3


def test_yaml_file_is_master_over_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DUPLICATE_WINDOW_MINUTES", "30")
    config_file = tmp_path / "config.yaml"
    config_file.write_text("duplicate_window_minutes: 90\nrate_limited_types:\n  - daily_reminder\n  - inactive_reminder\n")
    store = ConfigStore(Settings, str(config_file))
    store.load_initial()

    s = store.get_settings()
    assert s.duplicate_window_minutes == 90
    assert s.rate_limited_types == ["daily_reminder", "inactive_reminder"]


def test_json_file_is_supported(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"webhook_secret": "from-file"}))
    store = ConfigStore(Settings, str(config_file))

    assert store.get_settings().webhook_secret == "from-file"


def test_invalid_yaml_falls_back_to_env(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("duplicate_window_minutes: [unclosed\n")
    store = ConfigStore(Settings, str(config_file))

    assert store.get_settings().duplicate_window_minutes == 60


def test_overrides_win_and_can_be_cleared(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("webhook_secret: file-secret\n")
    store = ConfigStore(Settings, str(config_file))
    store.load_initial()

    store.update({"webhook_secret": "override"})
    assert store.get_settings().webhook_secret == "override"

    store.clear_overrides()
    assert store.get_settings().webhook_secret == "file-secret"


def test_invalid_override_keeps_previous(tmp_path):
    store = ConfigStore(Settings, str(tmp_path / "missing.yaml"))
    store.load_initial()

    store.update({"push_send_chunk_size": "not-a-number"})
    assert store.get_settings().push_send_chunk_size == 100


def test_reload_picks_up_file_changes(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("receipt_check_delay_seconds: 5\n")
    store = ConfigStore(Settings, str(config_file))
    store.load_initial()

    config_file.write_text("receipt_check_delay_seconds: 20\n")
    store.reload_from_file()
    assert store.get_settings().receipt_check_delay_seconds == 20


def test_sections_are_flattened(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text(
        "push:\n  send_chunk_size: 50\n  receipt_chunk_size: 150\nexpo:\n  access_token: abc\nnot_a_setting: 1\n"
    )
    store = ConfigStore(Settings, str(config_file))

    s = store.get_settings()
    assert s.push_send_chunk_size == 50
    assert s.push_receipt_chunk_size == 150
    assert s.expo_access_token == "abc"
