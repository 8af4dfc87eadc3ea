"""
Evaluate free resources that were imported without AI scoring.

Works in small batches to stay inside the Groq rate limits; run it again
until nothing remains.

Usage:
    python -m scripts.update_video_scores              # default batch and delay
    python -m scripts.update_video_scores 10 5         # 10 videos, 5 s apart
    python -m scripts.update_video_scores --category c-programming
"""

import argparse
import asyncio
import sys
from loguru import logger

from config.settings import settings
from backend.database import mongodb
from backend.services import bulk_import_service, youtube_service, groq_service
from shared.constants import ResourceCategory


logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
    level=settings.log_level,
)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Score videos that are still waiting for AI evaluation")
    parser.add_argument("batch_size", nargs="?", type=int, default=settings.score_update_batch_size)
    parser.add_argument("delay_seconds", nargs="?", type=float, default=settings.score_update_delay_seconds)
    parser.add_argument(
        "--category",
        default=None,
        choices=[c.value for c in ResourceCategory],
        help="Only score resources of this category",
    )
    args = parser.parse_args(argv)
    if args.batch_size < 1:
        parser.error("batch_size must be at least 1")
    return args


async def main(args: argparse.Namespace) -> int:
    if not settings.groq_api_keys:
        logger.error("No Groq API key configured (GROQ_API_KEY)")
        return 1

    await mongodb.connect()
    try:
        result = await bulk_import_service.update_pending_scores(
            batch_size=args.batch_size,
            delay=args.delay_seconds,
            category=args.category,
        )
    finally:
        await youtube_service.close()
        await groq_service.close()
        await mongodb.disconnect()

    print()
    print(f"Analyzed:  {result.analyzed}")
    print(f"Failed:    {result.failed}")
    print(f"Remaining: {result.remaining}")
    if result.remaining:
        print("Run the script again to continue with the next batch.")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(parse_args())))
