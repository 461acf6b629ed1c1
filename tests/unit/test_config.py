import yaml
import pytest

from file_sender.config import ConfigManager, DEFAULT_CONFIG


def write_config(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_missing_config_is_created_with_defaults(tmp_path):
    config_path = tmp_path / "config.yaml"
    manager = ConfigManager(str(config_path))

    config = manager.load_config()

    assert config == DEFAULT_CONFIG
    assert yaml.safe_load(config_path.read_text()) == DEFAULT_CONFIG
    assert any("Creating a new configuration file" in m for m in manager.messages)


def test_missing_keys_are_backfilled_and_saved(tmp_path):
    config_path = tmp_path / "config.yaml"
    write_config(config_path, {"server": {"host": "upload.example.org", "use_https": False}})
    manager = ConfigManager(str(config_path))

    config = manager.load_config()

    assert config["server"]["host"] == "upload.example.org"
    assert config["server"]["port"] == 38080
    assert config["workers"]["num_workers"] == 8
    assert "Added value port = 38080 to the [server] section" in manager.messages
    assert "Section [workers] created" in manager.messages
    assert yaml.safe_load(config_path.read_text())["auth"] == DEFAULT_CONFIG["auth"]


def test_complete_config_is_not_rewritten(tmp_path):
    config_path = tmp_path / "config.yaml"
    write_config(config_path, DEFAULT_CONFIG)
    before = config_path.read_text()

    manager = ConfigManager(str(config_path))
    manager.load_config()

    assert manager.messages == []
    assert config_path.read_text() == before


def test_invalid_yaml_raises(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("server: [unclosed\n")

    with pytest.raises(ValueError, match="Invalid YAML"):
        ConfigManager(str(config_path)).load_config()


@pytest.mark.parametrize("section,key,value", [
    ("server", "port", 70000),
    ("server", "host", ""),
    ("server", "use_https", "maybe"),
    ("workers", "num_workers", 0),
    ("directories", "send_dir", ""),
    ("directories", "send_dir", 5),
    ("directories", "archive_dir", ["a", "b"]),
    ("file", "log_file", 7),
    ("monitoring", "stability_seconds", -1),
    ("logging", "level", "LOUD"),
])
def test_invalid_values_are_rejected(tmp_path, section, key, value):
    data = yaml.safe_load(yaml.safe_dump(DEFAULT_CONFIG))
    data[section][key] = value
    config_path = tmp_path / "config.yaml"
    write_config(config_path, data)

    with pytest.raises(ValueError):
        ConfigManager(str(config_path)).load_config()


def test_agent_settings_are_resolved(tmp_path):
    data = yaml.safe_load(yaml.safe_dump(DEFAULT_CONFIG))
    data["server"].update({"host": "upload.example.org", "port": 14080, "context": "/bkl/upload"})
    data["directories"]["send_dir"] = str(tmp_path / "outbox")
    config_path = tmp_path / "config.yaml"
    write_config(config_path, data)
    manager = ConfigManager(str(config_path))
    manager.load_config()

    settings = manager.get_agent_settings()

    assert settings.endpoint == "https://upload.example.org:14080/bkl/upload"
    assert settings.cert_file == "server.crt"
    assert settings.key_file == "server.key"
    assert settings.send_dir == str(tmp_path / "outbox")
    assert settings.num_workers == 8
    assert settings.stability_seconds == 2.0
    assert settings.poll_interval == 1.0
    assert settings.max_log_bytes == 2 * 1024 * 1024
    assert settings.timeout_seconds is None


def test_plain_http_drops_certificates(tmp_path):
    data = yaml.safe_load(yaml.safe_dump(DEFAULT_CONFIG))
    data["server"]["use_https"] = False
    config_path = tmp_path / "config.yaml"
    write_config(config_path, data)
    manager = ConfigManager(str(config_path))
    manager.load_config()

    settings = manager.get_agent_settings()

    assert settings.endpoint == "http://localhost:38080/upload"
    assert settings.cert_file is None
    assert settings.key_file is None
