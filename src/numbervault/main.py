"""Application entry point for numbervault backend server."""

from numbervault.app import App
from numbervault.config import Config
from numbervault.logging import setup_logging
from numbervault.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
