from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import boto3

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "YOUR_"

DEFAULT_MODELS = {
    "openai": "gpt-4-turbo-preview",
    "claude": "claude-sonnet-4-5",
}

_SECRET_PARAMETERS = {
    "OPENAI_API_KEY": "OPENAI_API_KEY_PARAMETER",
    "ANTHROPIC_API_KEY": "ANTHROPIC_API_KEY_PARAMETER",
    "COGNITO_CLIENT_ID": "COGNITO_CLIENT_ID_PARAMETER",
}


def is_placeholder(value: Optional[str]) -> bool:
    return not value or value.startswith(PLACEHOLDER_PREFIX)


def require_configured(value: Optional[str], env_name: str) -> str:
    """Return ``value`` or raise when it was never configured."""
    if is_placeholder(value):
        raise ConfigurationError(
            f"{env_name} is missing or still a placeholder. Please check your configuration."
        )
    return value  # type: ignore[return-value]


def hydrate_secrets(ssm_client: Any = None) -> list[str]:
    """Copy secrets from SSM Parameter Store into unset environment variables.

    Each secret is looked up under the parameter name held in its companion
    ``*_PARAMETER`` variable. Returns the environment names that were filled.
    """
    loaded: list[str] = []
    for env_name, parameter_env in _SECRET_PARAMETERS.items():
        parameter_name = os.environ.get(parameter_env)
        if not parameter_name or os.environ.get(env_name):
            continue
        if ssm_client is None:
            ssm_client = boto3.client("ssm")
        try:
            response = ssm_client.get_parameter(Name=parameter_name, WithDecryption=True)
        except Exception:
            logger.exception("Failed to hydrate %s from %s", env_name, parameter_name)
            raise
        os.environ[env_name] = response["Parameter"]["Value"]
        logger.info("Loaded %s from SSM parameter %s", env_name, parameter_name)
        loaded.append(env_name)
    return loaded


def _split_ids(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    openai_api_key: str = "YOUR_OPENAI_API_KEY"
    anthropic_api_key: str = "YOUR_ANTHROPIC_API_KEY"
    llm_provider: str = "openai"
    hook_model: str = "gpt-4-turbo-preview"
    script_model: str = "gpt-4-turbo-preview"
    hook_temperature: float = 0.7
    hook_max_tokens: int = 1500
    script_temperature: float = 0.8
    script_max_tokens: int = 2500
    aws_region: Optional[str] = None
    table_prefix: str = "hookbuilder-"
    cognito_client_id: str = "YOUR_COGNITO_CLIENT_ID"
    authorized_user_ids: frozenset[str] = field(default_factory=frozenset)
    processing_tables_path: Path | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment.

        Missing credentials become placeholders so that startup succeeds and the
        first real call fails with a :class:`ConfigurationError`.
        """
        ids = _split_ids(os.environ.get("AUTHORIZED_USER_IDS"))
        if not ids:
            ids = _split_ids(os.environ.get("AUTHORIZED_USER_UID"))

        provider = os.environ.get("LLM_PROVIDER", "openai").lower()
        default_model = DEFAULT_MODELS.get(provider, DEFAULT_MODELS["openai"])
        return cls(
            openai_api_key=os.environ.get("OPENAI_API_KEY") or "YOUR_OPENAI_API_KEY",
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY") or "YOUR_ANTHROPIC_API_KEY",
            llm_provider=provider,
            hook_model=os.environ.get("HOOK_MODEL", default_model),
            script_model=os.environ.get("SCRIPT_MODEL", default_model),
            hook_temperature=float(os.environ.get("HOOK_TEMPERATURE", "0.7")),
            hook_max_tokens=int(os.environ.get("HOOK_MAX_TOKENS", "1500")),
            script_temperature=float(os.environ.get("SCRIPT_TEMPERATURE", "0.8")),
            script_max_tokens=int(os.environ.get("SCRIPT_MAX_TOKENS", "2500")),
            aws_region=os.environ.get("AWS_REGION"),
            table_prefix=os.environ.get("TABLE_PREFIX", "hookbuilder-"),
            cognito_client_id=os.environ.get("COGNITO_CLIENT_ID") or "YOUR_COGNITO_CLIENT_ID",
            authorized_user_ids=ids,
            processing_tables_path=Path(os.environ["PROCESSING_TABLES_PATH"])
            if os.environ.get("PROCESSING_TABLES_PATH")
            else None,
        )
