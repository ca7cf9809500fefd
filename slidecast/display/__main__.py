"""Run a display client: python -m slidecast.display"""

import asyncio
import logging

from slidecast.display.app import DisplayClient
from slidecast.display.config import DisplaySettings


async def _run(client: DisplayClient) -> None:
    client.install_signal_handlers()
    await client.run()


def main() -> None:
    config = DisplaySettings()
    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    client = DisplayClient(config)
    try:
        asyncio.run(_run(client))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("Display client stopped")


if __name__ == "__main__":
    main()
