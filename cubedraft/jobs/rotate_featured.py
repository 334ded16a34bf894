"""
Rotate the featured cubes when the rotation period has elapsed.

Meant to run daily from a scheduler. A run before the period is up is a
no-op, so running it more often is harmless.
"""

import asyncio
import logging
from datetime import UTC, datetime

from cubedraft.db.database import async_session_factory
from cubedraft.services.featured_queue import (
    RotationResult,
    SqlFeaturedQueueStore,
    rotate_featured,
)

logger = logging.getLogger(__name__)


async def run_rotation(now: datetime | None = None) -> RotationResult | None:
    """
    Rotate if due.

    The due check and the rotation are one versioned update, so
    overlapping runs rotate at most once per period.

    Returns:
        The rotation result, or None if no rotation was due
    """
    now = now or datetime.now(UTC)

    async with async_session_factory() as session:
        store = SqlFeaturedQueueStore(session)
        result = await rotate_featured(store, now, only_if_due=True)
        await session.commit()
        return result


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_rotation())


if __name__ == "__main__":
    main()
