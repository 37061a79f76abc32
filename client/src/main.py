#!/usr/bin/env python3
"""
Headless entry point for the room client.

Connects, joins the default room and keeps the session ticking until the
server closes the socket. Chat and status lines reach the log through
the message router.
"""

import asyncio

from .config import get_config
from .core.event_bus import EventType
from .logging_config import get_logger, setup_logging
from .session import ClientSession

logger = get_logger(__name__)

TICK_INTERVAL = 1 / 30


async def run(session: ClientSession) -> None:
    """Run a session until its socket closes."""
    closed = asyncio.Event()

    session.event_bus.subscribe(EventType.DISCONNECTED, lambda event: closed.set())

    if not await session.start():
        logger.error(f"Could not connect to {session.config.server.websocket_url}")
        await session.stop()
        return

    try:
        while not closed.is_set():
            session.tick()
            await asyncio.sleep(TICK_INTERVAL)
    finally:
        logger.info("Shutting down client...")
        await session.stop()


async def main():
    """Main entry point."""
    config = get_config()
    setup_logging(config.debug.log_level)
    await run(ClientSession(config=config))


if __name__ == "__main__":
    asyncio.run(main())
