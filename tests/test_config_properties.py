"""Tests for configuration models and the YAML configuration loader."""

import pytest
import structlog
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from content_mirror.errors import ConfigurationError
from content_mirror.models import AppConfig, ContentfulConfig, StoreConfig
from content_mirror.utils.config_loader import ConfigLoader

log = structlog.stdlib.get_logger()

VALID_YAML = """
contentful:
  space_id: ${TEST_SPACE_ID}
  access_token: ${TEST_ACCESS_TOKEN}
  initial_content_type: post
store:
  type: sqlite
  path: /tmp/mirror.db
logging:
  log_level: DEBUG
  json_logs: false
"""


@given(st.integers(min_value=0, max_value=10))
def test_max_retries_within_bounds(max_retries: int):
    config = ContentfulConfig(space_id="s", access_token="t", max_retries=max_retries)

    assert config.max_retries == max_retries


@given(st.integers().filter(lambda x: x < 0 or x > 10))
def test_max_retries_out_of_bounds_rejected(max_retries: int):
    with pytest.raises(ValidationError):
        ContentfulConfig(space_id="s", access_token="t", max_retries=max_retries)


def test_unknown_store_type_rejected():
    with pytest.raises(ValidationError):
        StoreConfig(type="redis")


def test_defaults():
    config = AppConfig(contentful={"space_id": "s", "access_token": "t"})

    assert config.contentful.host == "cdn.contentful.com"
    assert config.contentful.environment == "master"
    assert config.contentful.initial_content_type is None
    assert config.store.type == "memory"
    assert config.logging.log_level == "INFO"


def test_environment_variable_loading(monkeypatch):
    """AppConfig reads nested settings from APP_-prefixed environment variables."""
    log.info("test_environment_variable_loading")
    monkeypatch.setenv("APP_CONTENTFUL__SPACE_ID", "space-from-env")
    monkeypatch.setenv("APP_CONTENTFUL__ACCESS_TOKEN", "token-from-env")
    monkeypatch.setenv("APP_CONTENTFUL__ENVIRONMENT", "staging")
    monkeypatch.setenv("APP_STORE__TYPE", "sqlite")
    monkeypatch.setenv("APP_STORE__PATH", "./data/mirror.db")

    config = AppConfig()

    assert config.contentful.space_id == "space-from-env"
    assert config.contentful.access_token == "token-from-env"
    assert config.contentful.environment == "staging"
    assert config.store.type == "sqlite"
    assert config.store.path == "./data/mirror.db"


def test_load_yaml_with_env_substitution(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_SPACE_ID", "space1")
    monkeypatch.setenv("TEST_ACCESS_TOKEN", "secret")
    config_file = tmp_path / "default.yaml"
    config_file.write_text(VALID_YAML)

    config = ConfigLoader().load_config(str(config_file))

    assert config.contentful.space_id == "space1"
    assert config.contentful.access_token == "secret"
    assert config.contentful.initial_content_type == "post"
    assert config.store.type == "sqlite"
    assert config.logging.json_logs is False


def test_missing_env_var_raises(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_SPACE_ID", raising=False)
    monkeypatch.setenv("TEST_ACCESS_TOKEN", "secret")
    config_file = tmp_path / "default.yaml"
    config_file.write_text(VALID_YAML)

    with pytest.raises(ConfigurationError, match="TEST_SPACE_ID"):
        ConfigLoader().load_config(str(config_file))


def test_invalid_config_raises_configuration_error(tmp_path):
    config_file = tmp_path / "default.yaml"
    config_file.write_text("store:\n  type: sqlite\n")

    with pytest.raises(ConfigurationError) as exc_info:
        ConfigLoader().load_config(str(config_file))

    assert isinstance(exc_info.value.__cause__, ValidationError)


@pytest.mark.parametrize("content", ["", "- just\n- a list\n", "contentful: [unclosed\n"])
def test_unusable_yaml_raises_configuration_error(tmp_path, content):
    config_file = tmp_path / "default.yaml"
    config_file.write_text(content)

    with pytest.raises(ConfigurationError):
        ConfigLoader().load_config(str(config_file))


def test_missing_file_raises_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        ConfigLoader().load_config(str(tmp_path / "absent.yaml"))


def test_app_env_falls_back_to_default(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    (tmp_path / "default.yaml").write_text(
        "contentful:\n  space_id: s\n  access_token: t\n"
    )

    config = ConfigLoader(config_dir=tmp_path).load_config()

    assert config.contentful.space_id == "s"


def test_app_env_file_is_preferred(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    (tmp_path / "default.yaml").write_text("contentful:\n  space_id: s\n  access_token: t\n")
    (tmp_path / "staging.yaml").write_text(
        "contentful:\n  space_id: staging-space\n  access_token: t\n"
    )

    config = ConfigLoader(config_dir=tmp_path).load_config()

    assert config.contentful.space_id == "staging-space"


def test_validate_config_warnings():
    loader = ConfigLoader()
    clean = AppConfig(contentful={"space_id": "s", "access_token": "t"})
    volatile_sqlite = AppConfig(
        contentful={"space_id": "s", "access_token": "t", "initial_content_type": "post"},
        store={"type": "sqlite", "path": ":memory:"},
    )

    assert loader.validate_config(clean) == []
    warnings = loader.validate_config(volatile_sqlite)
    assert len(warnings) == 2
    assert any("restart" in warning for warning in warnings)
    assert any("assets will not be mirrored" in warning for warning in warnings)
