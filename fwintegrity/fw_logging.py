"""
Logging setup for fwintegrity.

A default configuration writing to stderr is installed on import, so the
measurement sets and reports written to stdout stay parseable. On top of it
init_logging applies the ``logging`` component configuration, written in the
usual ``logger_*``/``handler_*``/``formatter_*`` section layout and turned
into a dictConfig schema. A broken logging.conf leaves the previous setup in
place.
"""

import logging
from configparser import RawConfigParser
from contextlib import contextmanager
from logging import Logger
from logging import config as logging_config
from typing import Any, Dict, Generator, List, Optional, Tuple

from fwintegrity import config

LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"default": {"format": LOG_FORMAT, "datefmt": LOG_DATEFMT}},
    "handlers": {
        "stderr": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "default",
            "stream": "ext://sys.stderr",
        }
    },
    "loggers": {"fwintegrity": {"level": "INFO"}},
    "root": {"level": "INFO", "handlers": ["stderr"]},
}

logging_config.dictConfig(DEFAULT_LOGGING_CONFIG)

_STREAMS = {"sys.stdout": "ext://sys.stdout", "sys.stderr": "ext://sys.stderr"}
_STREAM_HANDLERS = ("StreamHandler", "logging.StreamHandler")
_FILE_HANDLERS = ("FileHandler", "logging.FileHandler")


def _handler_args(args: str) -> List[str]:
    """Split an ``args`` option such as ``(sys.stderr,)`` or ``('/var/log/fwintegrity.log',)``."""
    args = args.strip()
    if not (args.startswith("(") and args.endswith(")")):
        raise ValueError(f"Invalid handler args: {args}")
    return [arg.strip().strip("'\"") for arg in args[1:-1].split(",") if arg.strip()]


def _handler_config(options: Dict[str, str]) -> Dict[str, Any]:
    handler_class = options.get("class", "logging.StreamHandler").strip()
    args = _handler_args(options.get("args", "()"))
    handler: Dict[str, Any] = {"level": options.get("level", "NOTSET").upper()}

    if handler_class in _STREAM_HANDLERS:
        handler["class"] = "logging.StreamHandler"
        stream = args[0] if args else "sys.stderr"
        if stream not in _STREAMS:
            raise ValueError(f"Unsupported stream for a StreamHandler: {stream}")
        handler["stream"] = _STREAMS[stream]
    elif handler_class in _FILE_HANDLERS:
        if not args:
            raise ValueError("A FileHandler needs a file name in args")
        handler["class"] = "logging.FileHandler"
        handler["filename"] = args[0]
    else:
        raise ValueError(f"Unsupported handler class: {handler_class}")

    if options.get("formatter"):
        handler["formatter"] = options["formatter"].strip()
    return handler


def to_dict_config(raw_config: RawConfigParser) -> Dict[str, Any]:
    """Translate logging.conf sections into a logging.config.dictConfig schema.

    :raises ValueError: for handler classes or args other than a stream or file
    """
    formatters: Dict[str, Any] = {}
    handlers: Dict[str, Any] = {}
    loggers: Dict[str, Any] = {}
    root: Optional[Dict[str, Any]] = None

    for section in raw_config.sections():
        kind, _, name = section.partition("_")
        options = dict(raw_config.items(section))
        if kind == "formatter":
            formatters[name] = {"format": options.get("format", "%(message)s"), "datefmt": options.get("datefmt")}
        elif kind == "handler":
            handlers[name] = _handler_config(options)
        elif kind == "logger":
            logger_config: Dict[str, Any] = {
                "level": options.get("level", "NOTSET").upper(),
                "handlers": [h.strip() for h in options.get("handlers", "").split(",") if h.strip()],
            }
            if name == "root":
                root = logger_config
            else:
                logger_config["propagate"] = options.get("propagate", "1").strip() == "1"
                loggers[name] = logger_config

    # Dangling references are dropped rather than rejected
    for handler in handlers.values():
        if handler.get("formatter") not in formatters:
            handler.pop("formatter", None)
    for logger_config in list(loggers.values()) + ([root] if root else []):
        logger_config["handlers"] = [h for h in logger_config["handlers"] if h in handlers]

    dict_config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers,
    }
    if root is not None:
        dict_config["root"] = root
    return dict_config


@contextmanager
def _restore_on_error() -> Generator[None, None, None]:
    """Put every logger back the way it was if the body raises."""
    loggers = [logging.getLogger()] + [
        lg for lg in logging.Logger.manager.loggerDict.values() if isinstance(lg, logging.Logger)
    ]
    saved: List[Tuple[Logger, List[logging.Handler], int, bool, bool]] = [
        (lg, list(lg.handlers), lg.level, lg.propagate, lg.disabled) for lg in loggers
    ]
    try:
        yield
    except Exception:
        for lg, handlers, level, propagate, disabled in saved:
            lg.handlers = handlers
            lg.setLevel(level)
            lg.propagate = propagate
            lg.disabled = disabled
        raise


def _logging_config() -> Optional[RawConfigParser]:
    try:
        return config.get_config("logging")
    except ValueError as e:
        logging.getLogger("fwintegrity").error("Unable to read the logging configuration: %s", e)
        return None


def init_logging(loggername: str) -> Logger:
    """Return the logger fwintegrity.<loggername>, applying logging.conf when present."""
    logger = logging.getLogger(f"fwintegrity.{loggername}")

    raw_config = _logging_config()
    if raw_config is not None and raw_config.sections():
        try:
            with _restore_on_error():
                logging_config.dictConfig(to_dict_config(raw_config))
        except ValueError as e:
            logger.error("Logging configuration error, keeping the previous one: %s", e)

    return logger


def set_verbose(verbose: bool) -> None:
    """Lower the fwintegrity loggers and the root handlers to DEBUG.

    Without verbose the levels from the logging configuration are kept.
    """
    if not verbose:
        return
    logging.getLogger("fwintegrity").setLevel(logging.DEBUG)
    for handler in logging.getLogger().handlers:
        handler.setLevel(logging.DEBUG)
