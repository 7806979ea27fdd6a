"""Process entry point: ``python -m app``."""
import asyncio
import sys

from app.common.config import get_settings
from app.common.startup import configure_logging, run


def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    if not asyncio.run(run(settings)):
        sys.exit(1)


if __name__ == "__main__":
    main()
