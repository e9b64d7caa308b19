"""
Realty Harvester.

Main entry point: load configuration, then supervise one worker per shard.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

# Load .env file at startup
load_dotenv()

from loguru import logger  # noqa: E402

from config.settings import get_settings  # noqa: E402
from harvester.exceptions import ConfigError  # noqa: E402
from harvester.jobs.supervisor import Supervisor, get_fork_context  # noqa: E402
from harvester.modules.shards import load_shards  # noqa: E402

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]: <14}</cyan> | <cyan>{process}</cyan> | <level>{message}</level>"
)

log = logger.bind(module="Main")


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(level: str) -> None:
    """Single stderr sink shared by the supervisor and forked workers."""
    logger.configure(extra={"module": "Harvester"})
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper())

    # Route library logs (asyncpg, urllib3 via requests) through loguru
    for name in ("asyncpg", "urllib3"):
        lib_logger = logging.getLogger(name)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="realty-harvester",
        description="Harvest listings from the realty mobile API, one process per shard",
    )
    parser.add_argument(
        "--shards",
        help="Path to the shard file (default: SHARDS_FILE or config/shards.json)",
    )
    parser.add_argument(
        "--log-level",
        help="Log level (default: LOG_LEVEL or INFO)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """
    Run the harvester until SIGTERM/SIGINT.

    Returns:
        0 on clean shutdown or when no shards are configured, 1 on fatal
        configuration errors
    """
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    try:
        if not settings.realty.auth_token:
            raise ConfigError("REALTY_AUTH_TOKEN is not set")
        mp_context = get_fork_context()
        shards = load_shards(args.shards or settings.shards_file)
    except ConfigError as e:
        log.error(f"Startup failed: {e}")
        return 1

    if not shards:
        log.warning("No shards configured, nothing to do")
        return 0

    supervisor = Supervisor(
        shards,
        respawn_delay=settings.supervisor.respawn_delay,
        shutdown_timeout=settings.supervisor.shutdown_timeout,
        poll_interval=settings.supervisor.poll_interval,
        mp_context=mp_context,
    )
    supervisor.install_signal_handlers()
    log.info(f"Starting {len(shards)} workers")
    return supervisor.run()


if __name__ == "__main__":
    sys.exit(main())
