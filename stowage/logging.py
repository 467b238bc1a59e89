import logging
import sys

from stowage.settings import settings

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FIELDS = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Chatty per-request loggers from the storage and fetch clients.
QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "httpx", "httpcore")


def _formatter(json_output: bool) -> logging.Formatter:
    if not json_output:
        return logging.Formatter(TEXT_FORMAT)

    from pythonjsonlogger.json import JsonFormatter

    return JsonFormatter(
        fmt=JSON_FIELDS,
        rename_fields={"asctime": "timestamp", "levelname": "level"},
    )


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Install a single stderr handler on the root logger.

    ``level`` and ``json_output`` default to ``STOWAGE_LOG_LEVEL`` and
    ``STOWAGE_LOG_JSON``. Unknown level names fall back to INFO.
    """
    name = (level or settings.log_level).upper()
    use_json = settings.log_json if json_output is None else json_output

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(use_json))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(name, logging.INFO))

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
