from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from omnichat.app_config import AppConfig, RuntimeEnv
from omnichat.capabilities import KeywordRules
from omnichat.chat_app import ChatApp
from omnichat.logging_config import setup_logging
from omnichat.orchestrator import Orchestrator
from omnichat.provider import ChatBackend, create_provider
from omnichat.workspace import Workspace


@dataclass
class AppRuntime:
    app: ChatApp
    workspace: Workspace
    orchestrator: Orchestrator
    backend: ChatBackend | None
    log_descriptions: list[str]


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv, *, show_spinner: bool = True) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    backend: ChatBackend | None = None
    if env.has_credentials:
        backend = create_provider(
            app.provider_name,
            env.provider_api_key,
            max_attempts=app.max_transport_attempts,
            max_output_tokens=app.max_output_tokens,
            model_overrides=app.model_overrides,
        )
    else:
        logger.error(f"{env.provider_env_var} is not set; requests will not be sent")

    orchestrator = Orchestrator(
        backend,
        credential_check=lambda: env.has_credentials,
        env_var=env.provider_env_var,
        rules=KeywordRules.from_config(app.keyword_rules),
        timeout_seconds=app.request_timeout_seconds,
    )

    workspace = Workspace(settings=app.settings)
    workspace.new_chat()

    return AppRuntime(
        app=ChatApp(workspace, orchestrator, show_spinner=show_spinner),
        workspace=workspace,
        orchestrator=orchestrator,
        backend=backend,
        log_descriptions=log_descriptions,
    )
