"""Entry point for embedding the comment engine in a view layer."""

from songcamp.app import App
from songcamp.config import Config
from songcamp.logging import setup_logging


def create_app(config: Config | None = None) -> App:
    config = config or Config()
    setup_logging(config.debug)
    return App(config)
