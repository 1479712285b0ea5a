"""Tests for configuration loading."""

import dataclasses

import pytest

import config as config_module
from config import RelayConfig
from errors import ConfigurationError


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)


def test_missing_api_key_is_fatal(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(ConfigurationError):
        RelayConfig.from_env()


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("VOICE", "nova")
    monkeypatch.setenv("TOOL_TIMEOUT_S", "3.5")
    monkeypatch.setenv("PORT", "9000")

    cfg = RelayConfig.from_env()

    assert cfg.openai_api_key == "sk-env"
    assert cfg.voice == "nova"
    assert cfg.tool_timeout_s == 3.5
    assert cfg.port == 9000
    assert cfg.audio_format == "g711_ulaw"


def test_invalid_number_is_configuration_error(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("PORT", "eighty")

    with pytest.raises(ConfigurationError):
        RelayConfig.from_env()


def test_config_is_immutable():
    cfg = RelayConfig(openai_api_key="sk-test")
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.voice = "nova"
