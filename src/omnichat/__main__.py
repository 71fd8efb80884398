import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from omnichat.app_config import load_json_config, parse_app_config, resolve_runtime_env
from omnichat.bootstrap import bootstrap_runtime
from omnichat.errors import UNCONFIGURED_MESSAGE


async def main() -> None:
    load_dotenv()

    app_config = parse_app_config(load_json_config())
    env = resolve_runtime_env(app_config.provider_name)
    runtime = bootstrap_runtime(app_config, env)

    if not env.has_credentials:
        logger.error(f"{env.provider_env_var} environment variable is required.")
        print(f"Configuration error: {UNCONFIGURED_MESSAGE} ({env.provider_env_var})")
        sys.exit(1)

    app = runtime.app
    session = app.ensure_active_session()

    print("omnichat (type 'exit' to quit, '/help' for commands)")
    print(f"Provider: {app_config.provider_name}")
    print(f"Chat: {session.title} (mode={session.mode.value}, model={session.model})")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")
    print()

    while True:
        try:
            user_input = input("you> ")
        except (EOFError, KeyboardInterrupt):
            break

        trimmed = user_input.strip()

        if trimmed in ("exit", "quit"):
            break

        if not trimmed:
            continue

        try:
            await app.run(trimmed)
            print()
        except Exception as ex:
            logger.error(f"Unhandled error: {ex}")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
