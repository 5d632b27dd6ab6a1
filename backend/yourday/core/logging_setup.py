import logging
import sys

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a single stderr handler.

    Call once at startup, before the first log line.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # SQL echo is controlled by the engine, not the log level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
