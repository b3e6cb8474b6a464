import logging
import sys

from billbook.settings import settings

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Libraries that log every migration step or statement at INFO.
QUIET_LOGGERS = ("alembic", "sqlalchemy.engine")


def _formatter() -> logging.Formatter:
    if not settings.log_json:
        return logging.Formatter(TEXT_FORMAT)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(fmt=JSON_FORMAT, rename_fields={"asctime": "timestamp", "levelname": "level"})


def configure_logging(level: str | None = None) -> None:
    """Send all bill book logs to one stderr handler.

    ``level`` overrides ``settings.log_level``. Alembic's ``fileConfig``
    replaces the root handlers while migrating, so call ``reconfigure()``
    again once ``initialize_db`` has run.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, (level or settings.log_level).upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


reconfigure = configure_logging
