import logging

LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root handler for the API process. SQL echo stays at WARNING unless debugging."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    if level.upper() != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
