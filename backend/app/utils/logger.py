import logging


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; handlers and format are set up once in app.main."""
    return logging.getLogger(name)
