from __future__ import annotations

import os
from pathlib import Path

import pytest

from hookbuilder.config import Settings, hydrate_secrets, is_placeholder, require_configured
from hookbuilder.errors import ConfigurationError

ENV_NAMES = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "LLM_PROVIDER",
    "HOOK_MODEL",
    "SCRIPT_MODEL",
    "COGNITO_CLIENT_ID",
    "AUTHORIZED_USER_IDS",
    "AUTHORIZED_USER_UID",
    "PROCESSING_TABLES_PATH",
    "OPENAI_API_KEY_PARAMETER",
    "ANTHROPIC_API_KEY_PARAMETER",
    "COGNITO_CLIENT_ID_PARAMETER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


class RecordingSSM:
    def __init__(self, values):
        self.values = values
        self.requests = []

    def get_parameter(self, Name, WithDecryption):
        self.requests.append((Name, WithDecryption))
        return {"Parameter": {"Name": Name, "Value": self.values[Name]}}


def test_from_env_defaults_to_placeholders():
    settings = Settings.from_env()

    assert settings.llm_provider == "openai"
    assert is_placeholder(settings.openai_api_key)
    assert is_placeholder(settings.cognito_client_id)
    assert settings.authorized_user_ids == frozenset()
    assert settings.processing_tables_path is None


def test_from_env_reads_provider_models_and_allow_list(monkeypatch):
    monkeypatch.setenv("LLM_PROVIDER", "Claude")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
    monkeypatch.setenv("SCRIPT_MODEL", "claude-script")
    monkeypatch.setenv("AUTHORIZED_USER_UID", "user-1, user-2")
    monkeypatch.setenv("PROCESSING_TABLES_PATH", "/etc/hookbuilder/tables.yaml")

    settings = Settings.from_env()

    assert settings.llm_provider == "claude"
    assert settings.hook_model == "claude-sonnet-4-5"
    assert settings.script_model == "claude-script"
    assert settings.authorized_user_ids == frozenset({"user-1", "user-2"})
    assert settings.processing_tables_path == Path("/etc/hookbuilder/tables.yaml")


def test_require_configured():
    assert require_configured("sk-live", "OPENAI_API_KEY") == "sk-live"
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        require_configured("YOUR_OPENAI_API_KEY", "OPENAI_API_KEY")
    with pytest.raises(ConfigurationError):
        require_configured("", "OPENAI_API_KEY")


def test_hydrate_secrets_fills_only_unset_variables(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY_PARAMETER", "/hookbuilder/openai")
    monkeypatch.setenv("COGNITO_CLIENT_ID_PARAMETER", "/hookbuilder/cognito")
    monkeypatch.setenv("COGNITO_CLIENT_ID", "already-set")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    ssm = RecordingSSM({"/hookbuilder/openai": "sk-from-ssm"})

    loaded = hydrate_secrets(ssm)

    assert loaded == ["OPENAI_API_KEY"]
    assert os.environ["OPENAI_API_KEY"] == "sk-from-ssm"
    assert os.environ["COGNITO_CLIENT_ID"] == "already-set"
    assert ssm.requests == [("/hookbuilder/openai", True)]


def test_hydrate_secrets_without_parameters_does_nothing():
    assert hydrate_secrets(RecordingSSM({})) == []
