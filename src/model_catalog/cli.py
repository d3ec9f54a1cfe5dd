"""
Command line entry point.

Usage:
    model-catalog update [--json-logs] [--log-level DEBUG]
"""

import argparse
import asyncio
import json
import sys

from .config import get_settings
from .errors import ModelCatalogError
from .logging import configure_logging, get_logger
from .pipeline import CatalogPipeline, RunResult

logger = get_logger(__name__)


async def update_catalog() -> RunResult:
    """Run one catalog update with settings from the environment."""
    pipeline = CatalogPipeline.from_settings()
    try:
        return await pipeline.run()
    finally:
        await pipeline.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='model-catalog',
        description='Maintain the AI model catalog',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    update = subparsers.add_parser(
        'update',
        help='Fetch all sources, enrich new and changed models, write the catalog',
    )
    update.add_argument(
        '--json-logs',
        action='store_true',
        default=None,
        help='Emit JSON logs (default: LOG_JSON setting)',
    )
    update.add_argument(
        '--log-level',
        default=None,
        help='Log level (default: LOG_LEVEL setting)',
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    json_logs = settings.LOG_JSON if args.json_logs is None else args.json_logs
    configure_logging(json_output=json_logs, log_level=args.log_level or settings.LOG_LEVEL)

    try:
        result = asyncio.run(update_catalog())
    except ModelCatalogError as e:
        logger.error('run_failed', error=e.message, error_type=type(e).__name__, context=e.context)
        print(f"Run failed: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
