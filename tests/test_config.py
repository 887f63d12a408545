import json

import pytest

from config.settings import RelayConfig, create_config, load_env_config, validate_config
from broker_relay.core.exceptions import ConfigurationError

ENV_VARS = [
    "METAAPI_TOKEN", "METAAPI_REGION", "METAAPI_DOMAIN", "RELAY_MAX_RETRIES",
    "RELAY_REQUEST_TIMEOUT", "RELAY_STORE_PATH", "RELAY_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_and_urls():
    config = RelayConfig(metaapi_token="token")

    assert config.max_retries == 5
    assert config.max_retry_after == 15.0
    assert config.deploy_poll_attempts == 30
    assert config.deploy_poll_interval == 2.0
    assert config.provisioning_url == "https://mt-provisioning-api-v1.london.agiliumtrade.ai"
    assert config.client_url == "https://mt-client-api-v1.london.agiliumtrade.ai"
    assert config.metastats_url == "https://metastats-api-v1.london.agiliumtrade.ai"


def test_precedence_file_env_overrides(tmp_path, monkeypatch):
    config_file = tmp_path / "relay.json"
    config_file.write_text(json.dumps({
        "metaapi_token": "from-file",
        "region": "new-york",
        "max_retries": 2,
        "unknown_key": True,
    }))
    monkeypatch.setenv("METAAPI_TOKEN", "from-env")
    monkeypatch.setenv("RELAY_MAX_RETRIES", "4")

    config = create_config(config_path=str(config_file), store_path="/tmp/links.json", log_level=None)

    assert config.metaapi_token == "from-env"
    assert config.region == "new-york"
    assert config.max_retries == 4
    assert config.store_path == "/tmp/links.json"
    assert config.log_level == "INFO"


def test_bad_env_number(monkeypatch):
    monkeypatch.setenv("RELAY_MAX_RETRIES", "many")
    with pytest.raises(ConfigurationError):
        load_env_config()


def test_bad_config_file(tmp_path):
    config_file = tmp_path / "relay.json"
    config_file.write_text("{not json")
    with pytest.raises(ConfigurationError):
        create_config(config_path=str(config_file))


@pytest.mark.parametrize("changes", [
    {"metaapi_token": ""},
    {"max_retries": -1},
    {"deploy_poll_attempts": 0},
    {"existing_lookup_attempts": 0},
    {"default_platform": "ctrader"},
    {"max_retry_after": 0},
])
def test_validate_rejects(changes):
    config = RelayConfig(**{"metaapi_token": "token", **changes})
    assert validate_config(config) is False


def test_validate_clamps_default_wait():
    config = RelayConfig(metaapi_token="token", default_retry_after=30.0)
    assert validate_config(config) is True
    assert config.default_retry_after == 15.0


def test_to_dict_masks_token(tmp_path):
    config = RelayConfig(metaapi_token="abcdefghijklmnop")
    assert config.to_dict()["metaapi_token"] == "abcd..."

    path = tmp_path / "saved.json"
    config.save(str(path))
    assert "abcdefghijklmnop" not in path.read_text()
