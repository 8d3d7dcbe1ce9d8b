"""Tests for configuration loading and credential selection."""

import pytest
from pydantic import ValidationError

from jira_rest.client import JiraClient
from jira_rest.config import JiraConfig, get_config, load_config
from jira_rest.errors import ConfigError
from jira_rest.utils.auth import (
    BasicCredential,
    BearerCredential,
    NoCredential,
    OAuth1Credential,
)

OAUTH = {
    "oauth_consumer_key": "consumer",
    "oauth_consumer_secret": "secret",
    "oauth_access_token": "token",
    "oauth_access_token_secret": "token-secret",
}


def test_defaults():
    config = load_config(host="jira.example.com")
    assert config.protocol == "http"
    assert config.port is None
    assert config.base == ""
    assert config.api_version == "2"
    assert config.webhook_version == "1.0"
    assert config.greenhopper_version == "1.0"
    assert config.strict_ssl is True
    assert config.timeout == 30
    assert isinstance(config.credential, NoCredential)


def test_basic_credential():
    config = load_config(host="jira.example.com", username="bob", password="pw")
    assert config.credential == BasicCredential(username="bob", password="pw")
    assert config.auth_scheme == "basic"


def test_bearer_credential():
    config = load_config(host="jira.example.com", bearer="pat")
    assert config.credential == BearerCredential(token="pat")


def test_oauth_credential_defaults_to_rsa():
    config = load_config(host="jira.example.com", **OAUTH)
    credential = config.credential
    assert isinstance(credential, OAuth1Credential)
    assert credential.signature_method == "RSA-SHA1"
    assert credential.consumer_key == "consumer"


@pytest.mark.parametrize(
    "credentials",
    [
        {"username": "bob", "password": "pw", "bearer": "pat"},
        {"username": "bob", "password": "pw", **OAUTH},
        {"bearer": "pat", **OAUTH},
        {"username": "bob", "password": "pw", "bearer": "pat", **OAUTH},
    ],
)
def test_more_than_one_scheme_is_rejected(credentials):
    with pytest.raises(ConfigError, match="exactly one credential scheme"):
        load_config(host="jira.example.com", **credentials)


def test_direct_construction_raises_config_error():
    with pytest.raises(ConfigError, match="got: basic, bearer") as excinfo:
        JiraConfig(host="jira.example.com", username="bob", password="pw", bearer="pat")
    assert isinstance(excinfo.value.__cause__, ValidationError)


def test_direct_construction_with_bad_field_raises_config_error():
    with pytest.raises(ConfigError, match="port"):
        JiraConfig(host="jira.example.com", port=0)


def test_username_without_password_is_rejected():
    with pytest.raises(ConfigError, match="username and password"):
        load_config(host="jira.example.com", username="bob")


def test_incomplete_oauth_bundle_is_rejected():
    partial = dict(OAUTH)
    del partial["oauth_access_token_secret"]
    with pytest.raises(ConfigError, match="oauth_access_token_secret"):
        load_config(host="jira.example.com", **partial)


def test_unknown_signature_method_is_rejected():
    with pytest.raises(ConfigError):
        load_config(host="jira.example.com", oauth_signature_method="SHA256", **OAUTH)


@pytest.mark.parametrize("host", ["https://jira.example.com", "", "   "])
def test_invalid_host(host):
    with pytest.raises(ConfigError):
        load_config(host=host)


def test_missing_host():
    with pytest.raises(ConfigError):
        load_config()


def test_invalid_protocol():
    with pytest.raises(ConfigError):
        load_config(host="jira.example.com", protocol="ftp")


def test_config_is_immutable():
    config = load_config(host="jira.example.com")
    with pytest.raises(ValidationError):
        config.host = "other.example.com"


def test_server_url():
    config = load_config(host="jira.example.com", protocol="https", port=443, base="/jira/")
    assert config.server_url == "https://jira.example.com:443/jira"


def test_environment_variables(monkeypatch):
    monkeypatch.setenv("JIRA_HOST", "env.example.com")
    monkeypatch.setenv("JIRA_PROTOCOL", "https")
    monkeypatch.setenv("JIRA_PORT", "8443")
    monkeypatch.setenv("JIRA_BEARER", "pat")
    monkeypatch.setenv("JIRA_STRICT_SSL", "false")

    config = get_config()
    assert config.host == "env.example.com"
    assert config.port == 8443
    assert config.strict_ssl is False
    assert config.credential == BearerCredential(token="pat")
    assert get_config() is config


def test_blank_environment_values_are_unset(monkeypatch):
    monkeypatch.setenv("JIRA_HOST", "jira.example.com")
    monkeypatch.setenv("JIRA_USERNAME", "")
    monkeypatch.setenv("JIRA_PASSWORD", "")
    monkeypatch.setenv("JIRA_BEARER", "pat")

    assert get_config().auth_scheme == "bearer"


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("JIRA_HOST=dotenv.example.com\nJIRA_API_VERSION=3\n")
    config = load_config()
    assert config.host == "dotenv.example.com"
    assert config.api_version == "3"


def test_log_level_is_normalized():
    assert load_config(host="jira.example.com", log_level="debug").log_level == "DEBUG"
    with pytest.raises(ConfigError):
        load_config(host="jira.example.com", log_level="verbose")


def test_client_from_options_fails_fast():
    with pytest.raises(ConfigError):
        JiraClient.from_options(host="jira.example.com", username="bob", password="pw", bearer="pat")
