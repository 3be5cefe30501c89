"""
Live contribution feed.

A ContributionFeed turns the ledger change stream into a sequence of full,
ordered snapshots of one plan's records. Each subscription opens its own
change stream, so a feed can be subscribed to again after it ended or
failed. Store failures surface as StoreError. A subscription ends on any
failure, handing it to on_error or logging it; nothing is retried behind
the consumer's back.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from pymongo.errors import PyMongoError

from app.core.exceptions import StoreError
from app.models.contribution import ContributionRecord
from app.repositories.contribution_repo import ContributionRepository

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[ContributionRecord]], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


class Subscription:
    """Handle returned by ContributionFeed.subscribe."""

    def __init__(self, task: asyncio.Task):
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def unsubscribe(self) -> None:
        """Stop delivering snapshots. Safe to call more than once."""
        if not self._task.done():
            self._task.cancel()

    async def wait(self) -> None:
        """Wait until the subscription ends (unsubscribed, failed or closed)."""
        try:
            await self._task
        except asyncio.CancelledError:
            pass


class ContributionFeed:
    """Restartable stream of a plan's ledger, most recent record first."""

    def __init__(self, repo: ContributionRepository, plan_id: str):
        self.repo = repo
        self.plan_id = plan_id

    async def snapshots(self) -> AsyncIterator[List[ContributionRecord]]:
        """
        Yield the current record list, then a new list after every change
        that affects this plan. Runs until the consumer stops iterating or
        the store fails.
        """
        last: Optional[List[ContributionRecord]] = None
        try:
            async with self.repo.watch() as changes:
                # Read after the stream is open so no change falls in between
                records = await self.repo.list_for_plan(self.plan_id)
                last = records
                yield records

                async for _change in changes:
                    records = await self.repo.list_for_plan(self.plan_id)
                    if records != last:
                        last = records
                        yield records
        except PyMongoError as exc:
            logger.warning("Contribution feed for plan %s failed: %s", self.plan_id, exc)
            raise StoreError(f"Contribution feed interrupted: {exc}") from exc

    def subscribe(
        self,
        on_next: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None
    ) -> Subscription:
        """Deliver snapshots to `on_next` on a background task."""

        async def pump() -> None:
            try:
                async with aclosing(self.snapshots()) as snapshots:
                    async for records in snapshots:
                        await on_next(records)
            except Exception as exc:
                # Failures from the store or from on_next end the subscription
                if on_error is None:
                    logger.exception("Subscription to plan %s ended", self.plan_id)
                    return
                await on_error(exc)

        return Subscription(asyncio.create_task(pump()))
