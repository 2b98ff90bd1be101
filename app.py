#!/usr/bin/env python3
"""
Leaderboard web server.
Serves the public ranked leaderboard and the password-protected admin panel.
"""

import argparse
import asyncio
import logging
import os
from pathlib import Path

from leaderboard.config import LeaderboardConfig
from leaderboard.server import LeaderboardSystem


async def main():
    """Main function with command line interface."""

    parser = argparse.ArgumentParser(
        description="Leaderboard server with public view and admin panel",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--web-port",
        type=int,
        default=int(os.getenv("WEB_PORT", "8081")),
        help="Web interface port (env: WEB_PORT)"
    )
    parser.add_argument(
        "--db",
        default=os.getenv("DB_PATH", "leaderboard.db"),
        help="SQLite database file path (env: DB_PATH)"
    )
    parser.add_argument(
        "--config",
        default=os.getenv("CONFIG_PATH", "leaderboard_config.json"),
        help="Configuration file path (env: CONFIG_PATH)"
    )
    parser.add_argument(
        "--host",
        default=os.getenv("HOST", "0.0.0.0"),
        help="Host to bind the server to (env: HOST)"
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (env: LOG_LEVEL)"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config_path = Path(args.config)

    if config_path.exists() and not config_path.is_file():
        print(f"Error: {args.config} exists but is not a file")
        return

    system = LeaderboardSystem(
        host=args.host,
        web_port=args.web_port,
        db_path=args.db,
        config=LeaderboardConfig(args.config),
    )

    await system.init_db()
    await system.print_full_leaderboard()

    await system.run()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nServer interrupted")
