import yaml

import pytest

from salah_reminder.core.config import DEFAULT_CONFIG, Config


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def write_config(path, data):
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_default_config_is_created(tmp_path):
    config_file = tmp_path / "conf" / "config.yaml"

    config = Config(str(config_file), watch=False)

    assert config_file.exists()
    assert config.data["location"] == "auto"
    assert config.data["default_location"] == DEFAULT_CONFIG["default_location"]
    assert config.data["scheduler"]["retry_interval"] == 300


def test_partial_config_is_merged_with_defaults(tmp_path):
    path = write_config(tmp_path / "config.yaml", {"location": "Muscat, Oman", "scheduler": {"retry_interval": 60}})

    config = Config(path, watch=False)

    assert config.data["location"] == "Muscat, Oman"
    assert config.data["scheduler"] == {"retry_interval": 60, "check_interval": 30}
    assert config.data["api"]["port"] == 8765


def test_env_vars_are_substituted(tmp_path, monkeypatch):
    monkeypatch.setenv("SALAH_LOCATION", "Muscat, Oman")
    path = write_config(tmp_path / "config.yaml", {"location": "${SALAH_LOCATION}"})

    assert Config(path, watch=False).data["location"] == "Muscat, Oman"


def test_env_file_is_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("SALAH_PORT", raising=False)
    (tmp_path / ".env").write_text("# local overrides\nSALAH_PORT=9000\n")
    path = write_config(tmp_path / "config.yaml", {"api": {"port": "$SALAH_PORT"}})

    config = Config(path, watch=False)

    assert config.data["api"]["port"] == "9000"


def test_invalid_config_falls_back_to_defaults(tmp_path):
    config_file = tmp_path / "config.yaml"
    config_file.write_text("- just\n- a list\n")

    config = Config(str(config_file), watch=False)

    assert config.data["location"] == "auto"


def test_reload_keeps_previous_config_and_notifies(tmp_path):
    config_file = tmp_path / "config.yaml"
    write_config(config_file, {"location": "Kelowna, Canada"})
    config = Config(str(config_file), watch=False)
    seen = []
    config.register_change_callback(seen.append)

    write_config(config_file, {"location": "Muscat, Oman"})
    config.reload()
    config_file.write_text("location: [unclosed\n")
    config.reload()

    assert [data["location"] for data in seen] == ["Muscat, Oman", "Muscat, Oman"]
    assert config.data["location"] == "Muscat, Oman"


def test_source_config_carries_cache_dir(tmp_path):
    path = write_config(tmp_path / "config.yaml", {"cache": {"directory": str(tmp_path / "cache")}})
    config = Config(path, watch=False)

    muscat = config.get_source_config("Muscat, Oman")
    unknown = config.get_source_config("Nowhere, Atlantis")

    assert muscat["cache_dir"] == str(tmp_path / "cache")
    assert muscat["iqamah_offsets"]["fajr"] == 25
    assert unknown == {"cache_dir": str(tmp_path / "cache")}
