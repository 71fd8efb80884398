from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from omnichat.modes import DEFAULT_MODEL, Settings

# Checked in order; the first non-empty value wins.
_PROVIDER_ENV_VARS: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
}


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str

    @property
    def has_credentials(self) -> bool:
        return bool(self.provider_api_key.strip())


@dataclass
class AppConfig:
    provider_name: str
    default_model: str
    custom_instruction: str
    theme: str
    max_transport_attempts: int
    request_timeout_seconds: float
    max_output_tokens: int
    model_overrides: dict[str, str]
    keyword_rules: dict | None
    log_level: str
    log_consumers: list | None

    @property
    def settings(self) -> Settings:
        return Settings(
            default_model=self.default_model,
            custom_instruction=self.custom_instruction,
            theme=self.theme,
        )


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            return json.load(f)
    return {}


def parse_app_config(config: dict) -> AppConfig:
    overrides = config.get("ModelOverrides") or {}
    return AppConfig(
        provider_name=str(config.get("Provider", "gemini")).strip().lower(),
        default_model=str(config.get("DefaultModel", DEFAULT_MODEL)),
        custom_instruction=str(config.get("CustomInstruction", "")),
        theme=str(config.get("Theme", "twilight")),
        max_transport_attempts=max(1, int(config.get("MaxTransportAttempts", 1))),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 0)),
        max_output_tokens=int(config.get("MaxOutputTokens", 8192)),
        model_overrides={str(k): str(v) for k, v in overrides.items()},
        keyword_rules=config.get("KeywordRules"),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    env_vars = _PROVIDER_ENV_VARS.get(provider_name, _PROVIDER_ENV_VARS["gemini"])
    for name in env_vars:
        value = os.environ.get(name, "")
        if value.strip():
            return RuntimeEnv(provider_api_key=value, provider_env_var=name)
    return RuntimeEnv(provider_api_key="", provider_env_var=env_vars[0])
