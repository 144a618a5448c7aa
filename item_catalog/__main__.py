"""Run the API with uvicorn: ``python -m item_catalog``."""

import uvicorn

from .config import get_settings
from .log import configure_logging
from .main import create_app


def main() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
