import argparse
import asyncio
import logging
import sys

from dishka import make_async_container
from sqlalchemy.exc import SQLAlchemyError

from messenger.config import Config
from messenger.core.db_manager import DatabaseManager
from messenger.providers import AdaptersProvider, GatewaysProvider, ServicesProvider
from messenger.ui import MessengerCLI

logger = logging.getLogger("messenger")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="messenger", description="Console messenger")
    parser.add_argument("--env", default=".env", help="path to the .env file with DB_* settings")
    parser.add_argument("--log-level", default=None, help="overrides LOG_LEVEL")
    return parser.parse_args(argv)


async def main(env_path: str | None = ".env", log_level: str | None = None) -> int:
    container = make_async_container(
        AdaptersProvider(env_path),
        GatewaysProvider(),
        ServicesProvider(),
    )
    try:
        config = await container.get(Config)
        logging.basicConfig(
            level=(log_level or config.log.level).upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        try:
            await container.get(DatabaseManager)
        except (SQLAlchemyError, OSError) as e:
            logger.error("Unable to connect to database: %s", e)
            print(f"Error - Unable to Connect to Database: {e}", file=sys.stderr)
            return 1

        async with container() as request_container:
            cli = await request_container.get(MessengerCLI)
            await cli.run()
    finally:
        await container.close()
    return 0


def run() -> None:
    args = parse_args()
    sys.exit(asyncio.run(main(args.env, args.log_level)))


if __name__ == "__main__":
    run()
