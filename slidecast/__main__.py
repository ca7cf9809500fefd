"""Run the Slidecast server: python -m slidecast"""

import uvicorn

from slidecast.config import settings


def main():
    uvicorn.run(
        "slidecast.main:app",
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
