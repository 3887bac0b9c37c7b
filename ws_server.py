"""Entrypoint for the CPReady WebSocket bridge."""

import asyncio

from cpready.server import main


if __name__ == "__main__":
    asyncio.run(main())
