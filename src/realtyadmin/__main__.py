from aiohttp import web

from .config import get_settings
from .log import configure_logging
from .server import create_app


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    web.run_app(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
