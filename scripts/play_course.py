#!/usr/bin/env python3
"""
play_course.py - Run a lesson playback session against an LMS server.

Opens a course, keeps the session timer and heartbeat running while the
learner "watches", and leaves the course with a final flush. Useful for
exercising the sync path against a staging backend.

Usage:
  python scripts/play_course.py outline COURSE_ID
  python scripts/play_course.py play COURSE_ID --seconds 90
  python scripts/play_course.py play COURSE_ID --item ITEM_ID --complete
  python scripts/play_course.py buffer COURSE_ID
  python scripts/play_course.py buffer COURSE_ID --discard

Configuration:
  LESSONSYNC_API_BASE_URL, LESSONSYNC_API_TOKEN and the other LESSONSYNC_*
  variables are read from the environment or a .env file.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from lessonsync.classroom import ContentGraph, Navigator, ProgressStateMachine
from lessonsync.config import load_settings
from lessonsync.errors import CompletionError, CourseLoadError, LessonSyncError
from lessonsync.remote import HttpRemoteAuthority
from lessonsync.session import LessonPlayer, SessionStore
from lessonsync.utils import format_duration

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

async def show_outline(remote: HttpRemoteAuthority, course_id: str):
    """Print the curriculum tree with completion indicators."""
    structure = await remote.get_course_structure(course_id)
    graph = ContentGraph(structure.course)
    navigator = Navigator(graph)
    progress = ProgressStateMachine(graph, structure.enrollment, remote, structure.progress)
    resume_id = navigator.recommended_item_id(progress)

    print(f"{graph.title or course_id} - {progress.progress_percentage}% complete, "
          f"{format_duration(graph.total_duration_minutes)}")
    for nav_section in navigator.navigation_tree(progress, resume_id):
        section = nav_section.section
        print(f"\n{section.title or section.id} ({nav_section.completed_count}/{nav_section.total_count})")
        for nav_item in nav_section.items:
            item = nav_item.item
            indicator = navigator.status_indicator(progress, item.id, resume_id)
            print(f"  {indicator} {item.title or item.id} [{item.type.value}] "
                  f"{format_duration(item.duration_minutes)}")


async def play(player: LessonPlayer, course_id: str, item_id: str | None,
               seconds: float, complete: bool):
    """Open an item, let the timers run, optionally complete it, then leave."""
    item = await player.open(course_id, item_id)
    position, total = player.session.navigator.position(item.id)
    logger.info(f"Playing {item.title or item.id} ({position}/{total})")

    try:
        await asyncio.sleep(seconds)
        if complete:
            try:
                nxt = await player.mark_complete()
            except CompletionError as e:
                logger.error(f"Could not mark {e.item_id} complete: {e}")
            else:
                session = player.session
                logger.info(f"Progress now {session.progress.progress_percentage}%")
                if nxt:
                    logger.info(f"Advanced to {nxt.title or nxt.id}")
                if session.gate.unlocked:
                    logger.info("Certificate is available to claim")
    finally:
        outcome = await player.leave_course()
        logger.info(f"Final flush: {outcome.value if outcome else 'none'}")


def show_buffer(store: SessionStore, course_id: str, discard: bool):
    raw = store.read_raw(course_id)
    print(f"{course_id}: {raw if raw is not None else '(no session buffer)'}")
    if discard and raw is not None:
        store.clear(course_id)
        logger.info(f"Discarded session buffer for {course_id}")


async def run(args) -> int:
    settings = load_settings(args.config)
    store = SessionStore(settings.state_db_path)

    if args.command == "buffer":
        show_buffer(store, args.course_id, args.discard)
        return 0

    async with HttpRemoteAuthority.from_settings(settings) as remote:
        player = LessonPlayer(remote, store, settings)
        try:
            if args.command == "outline":
                await show_outline(remote, args.course_id)
            else:
                await play(player, args.course_id, args.item, args.seconds, args.complete)
        except CourseLoadError as e:
            logger.error(f"{e} (fallback: {e.redirect_to})")
            return 1
        except LessonSyncError as e:
            logger.error(str(e))
            return 1
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Run a lesson playback session against an LMS server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML settings file"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    outline = subparsers.add_parser("outline", help="Print the course outline with progress")
    outline.add_argument("course_id")

    play_cmd = subparsers.add_parser("play", help="Play an item and sync session time")
    play_cmd.add_argument("course_id")
    play_cmd.add_argument("--item", default=None, help="Item to open (default: resume point)")
    play_cmd.add_argument(
        "--seconds",
        type=float,
        default=65.0,
        help="How long to stay on the item (default: 65, one heartbeat)"
    )
    play_cmd.add_argument("--complete", action="store_true", help="Mark the item complete")

    buffer_cmd = subparsers.add_parser("buffer", help="Show the local session buffer")
    buffer_cmd.add_argument("course_id")
    buffer_cmd.add_argument("--discard", action="store_true", help="Delete the buffer")

    args = parser.parse_args()
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
