"""
Periodic sweep that keeps opportunity statuses in line with their dates.
Closes opportunities whose deadline passed and activates started ones.
"""

import asyncio
from datetime import datetime
from typing import Optional

from loguru import logger

from config.settings import settings
from backend.models import Opportunity
from backend.models.opportunity import derive_status
from shared.constants import OpportunityStatus


class OpportunityStatusService:
    """Background task re-deriving opportunity statuses."""

    def __init__(self, interval_seconds: Optional[int] = None):
        self.interval_seconds = interval_seconds or settings.opportunity_check_interval_seconds
        self._task = None
        self._running = False

    async def refresh_statuses(self) -> int:
        """Re-apply the date rules to dated, non-closed opportunities. Returns the number changed."""
        now = datetime.utcnow()
        logger.info("Checking opportunity statuses...")

        candidates = await Opportunity.find({
            "deadline": {"$ne": None},
            "status": {"$ne": OpportunityStatus.CLOSED.value},
        }).to_list()
        logger.debug(f"Found {len(candidates)} dated open opportunities")

        changed = 0
        for opportunity in candidates:
            new_status = derive_status(opportunity.status, opportunity.deadline, opportunity.start_date, now)
            if new_status == opportunity.status:
                continue

            logger.info(f"Opportunity {opportunity.id} ({opportunity.slug}): {opportunity.status.value} -> {new_status.value}")
            opportunity.status = new_status
            await opportunity.save()
            changed += 1

        if changed:
            logger.success(f"Updated status of {changed} opportunities")
        else:
            logger.info("No opportunity status changes")
        return changed

    async def _run_periodic_check(self):
        self._running = True
        logger.info(f"Starting opportunity status service (checking every {self.interval_seconds}s)")

        while self._running:
            try:
                await self.refresh_statuses()
            except Exception as e:
                logger.error(f"Error in periodic opportunity status check: {e}")

            await asyncio.sleep(self.interval_seconds)

    def start(self):
        """Start the status sweep."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run_periodic_check())
            logger.success("Opportunity status service started")

    async def stop(self):
        """Stop the status sweep."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Opportunity status service stopped")


# Global instance
opportunity_status_service = OpportunityStatusService()
