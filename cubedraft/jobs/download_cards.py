"""
Download the Scryfall card bulk data.

The Card Index is built from this file at startup; rerun the job to pick
up newly released cards.
"""

import asyncio
import logging

from cubedraft.services.card_index import download_card_database

logger = logging.getLogger(__name__)


async def run_download() -> None:
    logger.info("Downloading card bulk data...")

    try:
        path = await download_card_database()
        logger.info("Saved card bulk data to %s", path)
    except Exception as e:
        logger.error("Failed to download card bulk data: %s", e)
        raise


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_download())


if __name__ == "__main__":
    main()
