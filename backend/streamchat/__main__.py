"""Run the API with uvicorn: ``python -m streamchat``."""

import uvicorn

from streamchat.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "streamchat.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
