#!/usr/bin/env python3
"""
Morpha CLI

Chat with an OpenAI assistant from the terminal.

Session outline:

1) setup
   - Read the personality profile (assistant instructions) from
     ~/.morpha_profile, the PROFILE argument or --profile.
   - Open the conversation archive (~/.morpha.sqlite3 unless --db or
     --no-archive is given).
   - Create a remote thread and assistant.

2) chat
   - Interactive (stdin is a terminal): one line per turn until "q",
     "quit", "exit" or end of input.
   - Piped: all of stdin is sent as a single turn.

3) teardown
   - Delete the remote assistant and thread, close the archive.

Exit codes: 0 on normal exit, 1 on setup, archive or service errors,
130 when interrupted at the prompt.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Ensure project root is on sys.path when running as a script
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from openai import OpenAIError

from configs.settings import settings
from core.api.assistant_client import AssistantClient
from core.runs.run_poller import RunPoller
from exceptions.exceptions import ArchiveStorageException, ProfileNotFoundException
from runtime.agents.session_loop import SessionLoop
from runtime.models.conversation_models import Personality
from runtime.status import StatusSink
from runtime.store.conversation_archive import ConversationArchive

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _error(message: str) -> None:
    print(f"[Morpha] ✗ {message}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="morpha",
        description="Chat with an OpenAI assistant from the terminal.",
    )
    parser.add_argument(
        "profile_arg",
        nargs="?",
        metavar="PROFILE",
        help="Personality profile file (same as --profile)",
    )
    parser.add_argument(
        "--profile",
        default=str(settings.profile_path),
        help=(
            "File with the assistant's instructions "
            "(default: MORPHA_PROFILE_PATH or ~/.morpha_profile)"
        ),
    )
    parser.add_argument(
        "--model",
        default=settings.model,
        help="Model identifier (default: MORPHA_MODEL or gpt-3.5-turbo-1106)",
    )
    parser.add_argument(
        "--db",
        default=str(settings.db_path),
        help="Archive database path (default: MORPHA_DB_PATH or ~/.morpha.sqlite3)",
    )
    parser.add_argument(
        "--no-archive",
        action="store_true",
        help="Do not write conversations to the archive database",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print replies as received, without word wrapping",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=settings.wrap_width,
        help="Wrap width in columns (default: MORPHA_WRAP_WIDTH or 80)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=settings.poll_interval,
        help="Seconds between run status checks (default: 1.0)",
    )
    parser.add_argument(
        "--max-wait",
        type=float,
        default=settings.max_wait,
        help="Cancel a run after this many seconds (default: wait indefinitely)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show progress output even when stdin is not a terminal",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: MORPHA_LOG_LEVEL or WARNING)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


def run_session(args: argparse.Namespace, client: Optional[AssistantClient] = None) -> int:
    """Set up collaborators from parsed arguments and run one session."""
    interactive = sys.stdin.isatty()
    profile_path = args.profile_arg or args.profile

    personality = Personality.from_file(
        profile_path,
        name=settings.assistant_name,
        wrap_width=None if args.raw else args.width,
    )

    status = StatusSink(silent=not (interactive or args.verbose))
    client = client or AssistantClient()
    poller = RunPoller(
        client,
        status,
        poll_interval=args.poll_interval,
        max_wait=args.max_wait,
    )

    archive = None if args.no_archive else ConversationArchive(args.db)
    session = SessionLoop(
        client,
        poller,
        personality,
        model=args.model,
        archive=archive,
        status=status,
        blank_hint_after=settings.blank_hint_after,
    )

    try:
        with session:
            if interactive:
                session.run_interactive()
            else:
                session.run_once()
    finally:
        if archive is not None:
            archive.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        return run_session(args)
    except ProfileNotFoundException as e:
        _error(str(e))
        return 1
    except ArchiveStorageException as e:
        _error(str(e))
        return 1
    except OpenAIError as e:
        logger.debug("Remote service error", exc_info=True)
        _error(f"Assistant service error: {e}")
        return 1
    except RuntimeError as e:
        # e.g. OPENAI_API_KEY missing
        _error(str(e))
        return 1
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
