"""Main entry point for the bmk bookmark manager."""
import sys

from bmk.cli import run
from bmk.config import configure_logging, get_config


def main() -> None:
    config = get_config()
    configure_logging(config)
    sys.exit(run(config=config))


if __name__ == "__main__":
    main()
