"""
Command-line entry point for Course Engine.
Validates configuration and checks that the remote data service answers.
"""

import asyncio
import sys
from typing import Optional

import httpx

from course_engine.core.config import Settings, get_settings, validate_settings
from course_engine.core.observability import get_structured_logger
from course_engine.services.sync_client import SyncClient


async def startup_check(settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None) -> bool:
    """Log configuration issues and probe the remote service. True when usable."""
    settings = settings or get_settings()
    logger = get_structured_logger(settings.log_level)

    logger.info(f"Starting {settings.app_name} {settings.app_version}...")

    issues = validate_settings(settings)
    if issues:
        logger.warning(f"Configuration issues: {issues}")

    async with SyncClient(settings, client=client) as sync:
        healthy = await sync.check_connection()

    if healthy:
        logger.info("Remote data service reachable")
    else:
        logger.error(f"Remote data service unreachable at {settings.rest_base_url}")
    return healthy and not issues


def main() -> int:
    return 0 if asyncio.run(startup_check()) else 1


if __name__ == "__main__":
    sys.exit(main())
