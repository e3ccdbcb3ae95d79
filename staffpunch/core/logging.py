# staffpunch/core/logging.py
import logging

from staffpunch.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once; repeated calls only adjust the level."""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if not any(getattr(h, "_staffpunch", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._staffpunch = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    # SQL echo is noise outside debugging
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
