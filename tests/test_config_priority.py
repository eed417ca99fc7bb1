import pytest

from fdw_connector.config.config import loadSettings

CLI_EMPTY = {
    "log_level": None,
    "log_dir": None,
    "batch_size": None,
    "max_pages": None,
    "timeout_seconds": None,
    "retries": None,
    "retry_backoff_seconds": None,
    "tls_skip_verify": None,
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "FDW_LOG_LEVEL",
        "FDW_LOG_DIR",
        "FDW_BATCH_SIZE",
        "FDW_MAX_PAGES",
        "FDW_TIMEOUT_SECONDS",
        "FDW_RETRIES",
        "FDW_RETRY_BACKOFF_SECONDS",
        "FDW_TLS_SKIP_VERIFY",
    ):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, text):
    cfg = tmp_path / "config.yml"
    cfg.write_text(text, encoding="utf-8")
    return str(cfg)


def test_priority_cli_over_env_over_config(tmp_path, monkeypatch):
    cfg = write_config(
        tmp_path,
        "\n".join([
            "batch_size: 100",
            "retries: 1",
            "timeout_seconds: 5",
            'log_level: "DEBUG"',
        ]),
    )
    monkeypatch.setenv("FDW_BATCH_SIZE", "200")
    monkeypatch.setenv("FDW_RETRIES", "2")

    loaded = loadSettings(config_path=cfg, cli_overrides={**CLI_EMPTY, "batch_size": 300})

    assert loaded.settings.batch_size == 300
    assert loaded.settings.retries == 2
    assert loaded.settings.timeout_seconds == 5.0
    assert loaded.settings.log_level == "DEBUG"
    assert loaded.sources_used == ["config", "env", "cli"]


def test_defaults_without_any_source():
    loaded = loadSettings(config_path=None, cli_overrides=CLI_EMPTY)

    assert loaded.settings.batch_size is None
    assert loaded.settings.retries == 3
    assert loaded.settings.tls_skip_verify is False
    assert loaded.settings.options == {}
    assert loaded.sources_used == []


def test_connector_options_come_from_config(tmp_path):
    cfg = write_config(
        tmp_path,
        "\n".join([
            "options:",
            '  api_url: "http://localhost:6333"',
            "  api_key: k",
            "  collection_name: points",
        ]),
    )

    loaded = loadSettings(config_path=cfg, cli_overrides=CLI_EMPTY)

    assert loaded.settings.options == {
        "api_url": "http://localhost:6333",
        "api_key": "k",
        "collection_name": "points",
    }


def test_env_bool_and_invalid_values(monkeypatch):
    monkeypatch.setenv("FDW_TLS_SKIP_VERIFY", "yes")
    assert loadSettings(config_path=None, cli_overrides=CLI_EMPTY).settings.tls_skip_verify is True

    monkeypatch.setenv("FDW_TLS_SKIP_VERIFY", "maybe")
    with pytest.raises(ValueError):
        loadSettings(config_path=None, cli_overrides=CLI_EMPTY)


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        loadSettings(config_path=None, cli_overrides={**CLI_EMPTY, "batch_size": 0})


def test_max_pages_must_be_positive(monkeypatch):
    with pytest.raises(ValueError):
        loadSettings(config_path=None, cli_overrides={**CLI_EMPTY, "max_pages": 0})

    monkeypatch.setenv("FDW_MAX_PAGES", "0")
    with pytest.raises(ValueError):
        loadSettings(config_path=None, cli_overrides=CLI_EMPTY)


def test_quoted_yaml_bool_is_parsed(tmp_path):
    cfg = write_config(tmp_path, 'tls_skip_verify: "false"')
    assert loadSettings(config_path=cfg, cli_overrides=CLI_EMPTY).settings.tls_skip_verify is False

    cfg = write_config(tmp_path, 'tls_skip_verify: "yes"')
    assert loadSettings(config_path=cfg, cli_overrides=CLI_EMPTY).settings.tls_skip_verify is True
