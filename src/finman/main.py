"""Application entry point for FinMan backend server."""

from finman.app import App
from finman.config import Config
from finman.logging import setup_logging
from finman.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
