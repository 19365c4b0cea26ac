"""Run the machinetags API with uvicorn."""

import uvicorn

from machinetags.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "machinetags.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.app_log_level.lower(),
        reload=not settings.is_production and settings.app_debug,
    )


if __name__ == "__main__":
    main()
