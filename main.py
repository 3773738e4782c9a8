"""
News Consolidator - Main Entry Point

Headless runner: fetches the enabled feeds once and prints the stored list.

Flags:
    --debug, -d     debug logging with console output
    --verbose, -v   verbose debug logging (implies --debug)
    --offline       skip the network and print what is already stored
    --clear-images  empty the image cache before exiting
"""
import sys

from core.container import ServiceContainer
from core.errors import AppError
from core.logging.logger import get_logger, setup_logging

logger = get_logger(__name__)


def _print_items(items) -> None:
    for item in items:
        marker = " " if item.is_read else "*"
        stamp = item.published_at.strftime("%Y-%m-%d %H:%M")
        print(f"{marker} {stamp}  [{item.source_name}] {item.title}")
    print(f"{len(items)} items")


def main() -> int:
    """Main application entry point."""
    debug_mode = '--debug' in sys.argv or '-d' in sys.argv
    verbose_mode = '--verbose' in sys.argv or '-v' in sys.argv
    setup_logging(debug=debug_mode, verbose=verbose_mode)

    services = ServiceContainer.create_default()
    try:
        if '--offline' in sys.argv:
            items = services.news.load_from_store()
        else:
            items = services.news.refresh()
        _print_items(items)

        if '--clear-images' in sys.argv:
            services.images.clear().result()
            logger.info("Image cache cleared")
        return 0
    except AppError as e:
        logger.error("%s: %s", e.title, e)
        print(e.user_message, file=sys.stderr)
        return 1
    finally:
        services.shutdown()


if __name__ == "__main__":
    sys.exit(main())
