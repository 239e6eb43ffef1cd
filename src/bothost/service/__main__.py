"""Entry point for running the bothost daemon.

Usage:
    python -m bothost.service

Environment variables:
    BOTHOST_CONFIG: Optional YAML configuration file
    BOTHOST_SECRET_KEY: Base64 32-byte key for env var encryption (required)
    BOTHOST_DATA_PATH: Directory of the record store (default: data)
    BOTHOST_CODE_ROOT: Root of per-bot code directories (default: bots)
    BOTHOST_RECONCILE_INTERVAL: Seconds between stats sweeps (default: 300)
    BOTHOST_LOG_LEVEL: Logging level (default: INFO)
    DOCKER_HOST: Container engine address (default: platform default)
"""

import asyncio
import logging
import signal
import sys

from pydantic import ValidationError

from bothost.config import BotHostConfig
from bothost.exceptions import BotHostError
from bothost.service.orchestrator import BotOrchestrator

logger = logging.getLogger(__name__)


async def serve(config: BotHostConfig) -> None:
    """Run the orchestrator until SIGINT or SIGTERM."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops: SIGINT still arrives as KeyboardInterrupt.
            pass

    async with BotOrchestrator.from_config(config) as orchestrator:
        summary = await orchestrator.system_summary()
        if summary["connected"]:
            logger.info(
                "Container engine %s: %d managed containers (%d running)",
                summary["version"],
                summary["containers"]["total"],
                summary["containers"]["running"],
            )
        else:
            logger.warning("Container engine unreachable; lifecycle operations will fail")

        orchestrator.start_background()
        logger.info("bothost daemon started")
        await stop_event.wait()
        logger.info("Shutdown requested")


def main() -> None:
    """Load configuration and run the daemon."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        config = BotHostConfig.from_env()
        config.require_secret_key()
    except (ValidationError, BotHostError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    logging.getLogger().setLevel(config.log_level)

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
