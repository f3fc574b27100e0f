"""
Main entry point for the hive assistant client.
"""

import argparse
import logging
import sys

from hive.cli.context import build_context
from hive.cli.menus import main_menu
from hive.errors import HiveError
from hive.models.config import LOG_LEVELS
from hive.utils.config import load_app_config
from hive.utils.logger import setup_logger

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create, chat with and manage OpenAI assistants and honeycombs."
    )
    parser.add_argument(
        "--env-file",
        help="Path to a .env file holding OPENAI_API_KEY (default: the nearest .env above the hive package)",
    )
    parser.add_argument(
        "--config",
        help="Path to a settings YAML file (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--data-dir",
        help="Directory holding assistants.json and honeycombs.json",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        help="Logging level",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main CLI interface."""
    args = parse_args(argv)

    config = load_app_config(
        env_path=args.env_file,
        settings_path=args.config,
        data_dir=args.data_dir,
        log_level=args.log_level,
    )
    setup_logger("hive", config.log_level)

    try:
        ctx = build_context(config)
    except HiveError as e:
        logger.error(f"Could not start: {str(e)}")
        return 1

    try:
        main_menu(ctx)
    except (KeyboardInterrupt, EOFError):
        print("\nGoodbye!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
