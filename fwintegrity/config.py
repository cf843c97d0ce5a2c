"""
Configuration lookup for fwintegrity.

Each component reads the first base file found in CONFIG_FILES and then the
snippets of its ``.conf.d`` directories, in file name order. When
FWINTEGRITY_<COMPONENT>_CONFIG points to a file, that file alone is used.
A single option can be overridden with FWINTEGRITY_<COMPONENT>_<OPTION>.

Every option has a built-in default, so a host without any configuration
file still works.
"""

import ast
import logging
import os
from configparser import Error as ConfigParserError
from configparser import RawConfigParser
from typing import Any, Dict, List, Optional

base_logger = logging.getLogger("fwintegrity.config")

WORK_DIR = os.getenv("FWINTEGRITY_DIR", "/var/lib/fwintegrity")

# sysfs locations exported by the Linux kernel
EFIVARS_DIR = "/sys/firmware/efi/efivars"
ACPI_TABLES_DIR = "/sys/firmware/acpi/tables"

# ACPI tables measured unless configured otherwise
DEFAULT_ACPI_TABLES = ["SLIC"]

DEFAULT_HASH_ALGORITHM = "sha256"

DEFAULT_BASELINE_PATH = os.path.join(WORK_DIR, "baseline.txt")

COMPONENTS = ("fwintegrity", "logging")

# /etc wins over /usr/etc for the base file
CONFIG_FILES = {c: [f"/etc/fwintegrity/{c}.conf", f"/usr/etc/fwintegrity/{c}.conf"] for c in COMPONENTS}

# Snippets in /etc are read last so they override the ones in /usr/etc
CONFIG_SNIPPETS_DIRS = {c: [f"/usr/etc/fwintegrity/{c}.conf.d", f"/etc/fwintegrity/{c}.conf.d"] for c in COMPONENTS}

CONFIG_ENV = {c: os.environ.get(f"FWINTEGRITY_{c.upper()}_CONFIG", "") for c in COMPONENTS}

_config: Dict[str, RawConfigParser] = {}


def _read_base_file(parser: RawConfigParser, candidates: List[str]) -> Optional[str]:
    for path in candidates:
        if parser.read(path):
            return path
        if os.path.exists(path):
            base_logger.error("Config file %s exists but could not be read", path)
    return None


def _read_snippets(parser: RawConfigParser, directories: List[str]) -> None:
    for directory in directories:
        if not os.path.isdir(directory):
            continue
        snippets = sorted(
            os.path.join(directory, name)
            for name in os.listdir(directory)
            if os.path.isfile(os.path.join(directory, name))
        )
        applied = parser.read(snippets)
        for snippet in set(snippets) - set(applied):
            base_logger.error("Config snippet %s exists but could not be read", snippet)
        if applied:
            base_logger.info("Applied configuration snippets from %s", directory)


def get_config(component: str) -> RawConfigParser:
    """Return the parsed configuration of component, reading it on first use."""
    if component in _config:
        return _config[component]

    if component not in CONFIG_FILES:
        raise ValueError(f"Unknown configuration component '{component}'")

    parser = RawConfigParser()
    env_file = CONFIG_ENV.get(component, "")
    try:
        if env_file and os.path.isfile(env_file):
            parser.read(env_file)
            base_logger.info("Reading %s configuration from %s", component, env_file)
        else:
            if env_file:
                base_logger.info("Configuration file %s for %s not found, using installed files", env_file, component)
            base_file = _read_base_file(parser, CONFIG_FILES[component])
            if base_file:
                base_logger.info("Reading %s configuration from %s", component, base_file)
                _read_snippets(parser, CONFIG_SNIPPETS_DIRS.get(component, []))
    except ConfigParserError as e:
        raise ValueError(f"Invalid {component} configuration: {e}") from e

    _config[component] = parser
    return parser


def _env_override(component: str, option: str, section: Optional[str]) -> Optional[str]:
    parts = ["FWINTEGRITY", component, section, option]
    env_name = "_".join(p.upper() for p in parts if p)
    value = os.environ.get(env_name)
    if value is not None:
        base_logger.info("Option %s of %s.conf overridden by %s", option, component, env_name)
    return value


def get(component: str, option: str, section: Optional[str] = None, fallback: str = "") -> str:
    value = _env_override(component, option, section)
    if value is None:
        value = get_config(component).get(section or component, option, fallback=fallback)
    return value.strip('" ')


def getlist(
    component: str, option: str, section: Optional[str] = None, fallback: Optional[List[Any]] = None
) -> List[Any]:
    """Read an option holding a Python list literal, e.g. ``["SLIC", "MSDM"]``.

    :raises ValueError: if the option is not a list, or is unset without fallback
    """
    raw = get(component, option, section)
    if not raw:
        if fallback is None:
            raise ValueError(f"Option '{option}' of component '{component}' is not set")
        return list(fallback)

    try:
        value = ast.literal_eval(raw)
    except (ValueError, SyntaxError) as e:
        raise ValueError(f"Option '{option}' of component '{component}' is not a valid list: {raw}") from e

    if not isinstance(value, list):
        raise ValueError(f"Option '{option}' of component '{component}' should be a list, got {raw}")
    return [i.strip() if isinstance(i, str) else i for i in value]
