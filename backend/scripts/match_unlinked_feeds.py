#!/usr/bin/env python3
"""
Match every enabled feed that has no agency yet

Usage:
    python scripts/match_unlinked_feeds.py [--create-missing]

Feeds that match nothing are flagged for review (no_agency). With
--create-missing an agency is created from the feed's own name and URL
instead.
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from transit_registry.core.config import settings
from transit_registry.db.session import session_scope
from transit_registry.db.store import SqlAlchemyStore
from transit_registry.services.agency_matching_service import AgencyMatchingService, MatchStatus

logger = logging.getLogger("match_unlinked_feeds")


async def match_unlinked_feeds(create_missing: bool = False) -> dict[str, int]:
    """Run the matcher over all unlinked feeds and commit the result"""
    async with session_scope() as session:
        service = AgencyMatchingService(SqlAlchemyStore(session))
        results = await service.match_unlinked(create_missing=create_missing)

    counts = {status.value: 0 for status in MatchStatus}
    for result in results:
        counts[result.status.value] += 1
    return counts


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Match unlinked feeds to agencies")
    parser.add_argument(
        "--create-missing",
        action="store_true",
        help="Create an agency from the feed's details when no agency matches"
    )

    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL)

    try:
        counts = asyncio.run(match_unlinked_feeds(create_missing=args.create_missing))
    except KeyboardInterrupt:
        logger.warning("Matching cancelled by user")
        sys.exit(1)
    except Exception:
        logger.exception("Matching failed")
        sys.exit(1)

    for status, count in counts.items():
        print(f"{status}: {count}")
