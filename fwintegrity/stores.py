"""Sources of raw firmware state.

The collector only needs ``get`` on two kinds of store: UEFI variables by
(namespace GUID, name) and ACPI tables by name. Both return ``None`` when the
item is absent or cannot be read, and the raw bytes otherwise.
"""

import abc
import os
from typing import Dict, Optional, Tuple

from fwintegrity import fw_logging
from fwintegrity.common import validators

logger = fw_logging.init_logging("stores")

EFI_GLOBAL_VARIABLE_GUID = "8be4df61-93ca-11d2-aa0d-00e098032b8c"
EFI_IMAGE_SECURITY_DATABASE_GUID = "d719b2cb-3d3a-4596-a3bc-dad00e67656f"

# efivarfs prefixes every variable with its 32-bit attribute mask
EFIVAR_ATTRIBUTES_SIZE = 4


class VariableStore(abc.ABC):
    @abc.abstractmethod
    def get(self, guid: str, name: str) -> Optional[bytes]:
        """Return the payload of the variable or None if it does not exist."""


class TableStore(abc.ABC):
    @abc.abstractmethod
    def get(self, name: str) -> Optional[bytes]:
        """Return the table contents or None if it does not exist."""


def _read_file(path: str) -> Optional[bytes]:
    try:
        with open(path, "rb") as f:
            return f.read()
    except (FileNotFoundError, NotADirectoryError):
        return None
    except IsADirectoryError:
        logger.debug("%s is a directory, not a readable item", path)
        return None
    except PermissionError:
        logger.debug("Not permitted to read %s", path)
        return None


class EfivarStore(VariableStore):
    """UEFI variables exposed by efivarfs, usually /sys/firmware/efi/efivars."""

    def __init__(self, efivars_dir: str):
        self.efivars_dir = efivars_dir

    def path(self, guid: str, name: str) -> str:
        return os.path.join(self.efivars_dir, f"{name}-{guid.lower()}")

    def get(self, guid: str, name: str) -> Optional[bytes]:
        if not validators.valid_uuid(guid):
            raise ValueError(f"Invalid variable namespace GUID: {guid}")

        data = _read_file(self.path(guid, name))
        if data is None:
            return None
        if len(data) < EFIVAR_ATTRIBUTES_SIZE:
            logger.warning("Variable %s-%s is shorter than its attribute header, ignoring it", name, guid)
            return None
        return data[EFIVAR_ATTRIBUTES_SIZE:]


class AcpiTableStore(TableStore):
    """ACPI tables exposed by the kernel, usually /sys/firmware/acpi/tables."""

    def __init__(self, tables_dir: str):
        self.tables_dir = tables_dir

    def get(self, name: str) -> Optional[bytes]:
        return _read_file(os.path.join(self.tables_dir, name))


class DictVariableStore(VariableStore):
    """In-memory variable store keyed by (guid, name)."""

    def __init__(self, variables: Optional[Dict[Tuple[str, str], bytes]] = None):
        self.variables = {(guid.lower(), name): data for (guid, name), data in (variables or {}).items()}

    def set(self, guid: str, name: str, data: bytes) -> None:
        self.variables[(guid.lower(), name)] = data

    def get(self, guid: str, name: str) -> Optional[bytes]:
        return self.variables.get((guid.lower(), name))


class DictTableStore(TableStore):
    """In-memory ACPI table store keyed by table name."""

    def __init__(self, tables: Optional[Dict[str, bytes]] = None):
        self.tables = dict(tables or {})

    def get(self, name: str) -> Optional[bytes]:
        return self.tables.get(name)
