"""
Audiora DJ command line.

Usage:
    # Generate a playlist (JSON to stdout)
    audiora-dj generate user-123 --length 20

    # Inspect the taste profile built from a user's history
    audiora-dj profile user-123

    # Listening stats
    audiora-dj stats user-123

Collaborators come from the environment / .env (see dj_service.config):
DATA_SOURCE=json with CATALOG_JSON_PATH and HISTORY_JSON_PATH for offline runs.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import ServiceConfig, get_config
from .errors import DJServiceError
from .state import AppState

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="audiora-dj",
        description="Audiora DJ personalized playlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  audiora-dj generate user-123 --length 20
  audiora-dj profile user-123
  audiora-dj stats user-123
        """,
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL from the environment, else INFO)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate a playlist for a user")
    generate.add_argument("user_id")
    generate.add_argument("--length", "-n", type=int, default=None, help="Session length (default: 15)")
    generate.add_argument("--max-length", type=int, default=None, help="Maximum session length (default: 50)")

    profile = sub.add_parser("profile", help="Show a user's taste profile")
    profile.add_argument("user_id")

    stats = sub.add_parser("stats", help="Show a user's listening stats")
    stats.add_argument("user_id")

    return parser


def run(args: argparse.Namespace, config: ServiceConfig) -> str:
    """Execute one command and return its JSON output."""
    state = AppState(config, start_sweeper=False)
    try:
        if args.command == "generate":
            playlist = asyncio.run(state.dj.generate_playlist(args.user_id, args.length, args.max_length))
            return playlist.model_dump_json(indent=2)
        if args.command == "profile":
            return state.history.build_taste_profile(args.user_id).model_dump_json(indent=2)
        return state.history.get_user_stats(args.user_id).model_dump_json(indent=2)
    finally:
        state.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    config = get_config()
    logging.basicConfig(
        level=(args.log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ok, errors = config.validate()
    if not ok:
        for error in errors:
            print(f"Config error: {error}", file=sys.stderr)
        return 2

    try:
        print(run(args, config))
    except DJServiceError as e:
        logger.error("%s failed: %s", args.command, e)
        print(f"Error ({e.status_code}{', retryable' if e.retryable else ''}): {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
