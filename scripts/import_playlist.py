"""
Import a YouTube playlist as a course.

Every video becomes a lecture (a free resource linked to the course) in
playlist order. With AI enabled each lecture is scored and the course gets
a generated overview.

Usage:
    python -m scripts.import_playlist PLAYLIST_ID --name "CS50 C" --provider "Harvard edX" --category c
    python -m scripts.import_playlist PLAYLIST_ID --name ... --provider ... --no-ai --delay 1
"""

import argparse
import asyncio
import sys
from loguru import logger

from config.settings import settings
from backend.database import mongodb
from backend.services import BulkImportService, CourseData, ServiceError, youtube_service, groq_service
from shared.constants import CourseLevel, ResourceCategory


logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    level=settings.log_level,
)
logger.add(
    "logs/import.log",
    rotation="500 MB",
    retention="10 days",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
    level=settings.log_level,
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import a YouTube playlist as a CodeLearnn course")
    parser.add_argument("playlist_id", help="YouTube playlist id (PL...)")
    parser.add_argument("--name", required=True, help="Course name")
    parser.add_argument("--provider", required=True, help="Course provider, e.g. 'freeCodeCamp'")
    parser.add_argument(
        "--category",
        default=ResourceCategory.OTHER.value,
        choices=[c.value for c in ResourceCategory],
        help="Resource category for every lecture",
    )
    parser.add_argument(
        "--level",
        default=CourseLevel.BEGINNER.value,
        choices=[level.value for level in CourseLevel],
    )
    parser.add_argument("--description", default="")
    parser.add_argument("--target-audience", default="")
    parser.add_argument("--tag", action="append", default=[], dest="tags", help="Course tag (repeatable)")
    parser.add_argument("--external-url", default=None)
    parser.add_argument("--no-ai", action="store_true", help="Skip AI scoring (run update_video_scores later)")
    parser.add_argument(
        "--delay",
        type=float,
        default=settings.import_delay_seconds,
        help="Seconds to wait between videos",
    )
    return parser.parse_args(argv)


async def main(args: argparse.Namespace) -> int:
    course_data = CourseData(
        name=args.name,
        provider=args.provider,
        description=args.description,
        level=CourseLevel(args.level),
        target_audience=args.target_audience,
        tags=args.tags,
        external_url=args.external_url or f"https://www.youtube.com/playlist?list={args.playlist_id}",
    )
    service = BulkImportService(rate_limit_delay=args.delay)

    await mongodb.connect()
    try:
        result = await service.import_playlist(
            args.playlist_id,
            course_data,
            analyze_with_ai=not args.no_ai,
            category=ResourceCategory(args.category),
        )
    except ServiceError as e:
        logger.error(f"Import failed: {e.message}")
        return 1
    finally:
        await youtube_service.close()
        await groq_service.close()
        await mongodb.disconnect()

    logger.success(f"Course: {result.course.name} ({result.course.slug})")
    logger.info(f"Imported {len(result.successful)}/{result.total_processed} lectures")
    for lecture in result.successful:
        logger.info(f"  {lecture.lecture_number}: {lecture.title} [{lecture.score}/100]")
    for failure in result.failed:
        logger.warning(f"  {failure.lecture_number} failed: {failure.error}")
    if args.no_ai:
        logger.info("Scores were skipped; run `python -m scripts.update_video_scores` to evaluate them")
    return 0 if result.successful else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
