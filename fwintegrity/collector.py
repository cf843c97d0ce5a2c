"""Collect measurements of UEFI variables and ACPI tables."""

from typing import Iterable, List, Optional, Tuple

from fwintegrity import config, fw_logging
from fwintegrity.common.algorithms import Hash
from fwintegrity.common.exception import NoMeasurements
from fwintegrity.measurement_set import MeasurementSet
from fwintegrity.stores import (
    EFI_GLOBAL_VARIABLE_GUID,
    EFI_IMAGE_SECURITY_DATABASE_GUID,
    AcpiTableStore,
    EfivarStore,
    TableStore,
    VariableStore,
)

logger = fw_logging.init_logging("collector")

# Boot configuration and Secure Boot key databases
IMPORTANT_VARIABLES: List[Tuple[str, str]] = [
    (EFI_GLOBAL_VARIABLE_GUID, "BootOrder"),
    (EFI_GLOBAL_VARIABLE_GUID, "BootCurrent"),
    (EFI_GLOBAL_VARIABLE_GUID, "KEK"),
    (EFI_GLOBAL_VARIABLE_GUID, "PK"),
    (EFI_IMAGE_SECURITY_DATABASE_GUID, "db"),
    (EFI_IMAGE_SECURITY_DATABASE_GUID, "dbx"),
]

# Boot0000 to Boot00FE
BOOT_ENTRY_SLOTS = 0xFF


def boot_entry_names() -> List[str]:
    return [f"Boot{i:04X}" for i in range(BOOT_ENTRY_SLOTS)]


class Collector:
    """Measure the firmware state supplied by a variable store and a table store.

    Items that are missing are skipped, so the same collector works on
    machines without UEFI or without ACPI. Only a run that measures nothing
    at all is an error.
    """

    def __init__(
        self,
        variable_store: VariableStore,
        table_store: TableStore,
        algorithm: Hash = Hash.SHA256,
        acpi_tables: Optional[Iterable[str]] = None,
    ):
        self.variable_store = variable_store
        self.table_store = table_store
        self.algorithm = algorithm
        self.acpi_tables = list(acpi_tables) if acpi_tables is not None else list(config.DEFAULT_ACPI_TABLES)

    @classmethod
    def from_config(cls) -> "Collector":
        efivars_dir = config.get("fwintegrity", "efivars_dir", fallback=config.EFIVARS_DIR)
        tables_dir = config.get("fwintegrity", "acpi_tables_dir", fallback=config.ACPI_TABLES_DIR)
        algorithm = Hash(config.get("fwintegrity", "hash_algorithm", fallback=config.DEFAULT_HASH_ALGORITHM))
        tables = config.getlist("fwintegrity", "acpi_tables", fallback=config.DEFAULT_ACPI_TABLES)
        return cls(EfivarStore(efivars_dir), AcpiTableStore(tables_dir), algorithm=algorithm, acpi_tables=tables)

    def measure_uefi(self, mset: MeasurementSet) -> None:
        # important keys, presence is enough
        for guid, name in IMPORTANT_VARIABLES:
            blob = self.variable_store.get(guid, name)
            if blob is None:
                logger.debug("UEFI variable %s-%s not found", name, guid)
                continue
            mset.add_measurement(f"UEFI:{name}", blob, self.algorithm)

        # Boot####
        for name in boot_entry_names():
            blob = self.variable_store.get(EFI_GLOBAL_VARIABLE_GUID, name)
            if blob:
                mset.add_measurement(f"UEFI:{name}", blob, self.algorithm)

    def measure_acpi(self, mset: MeasurementSet) -> None:
        for name in self.acpi_tables:
            blob = self.table_store.get(name)
            if not blob:
                logger.debug("ACPI table %s not found or empty", name)
                continue
            mset.add_measurement(f"ACPI:{name}", blob, self.algorithm)

    def measure(self, mset: MeasurementSet) -> None:
        """Add all available measurements to mset.

        :raises NoMeasurements: if mset is still empty afterwards
        """
        self.measure_uefi(mset)
        self.measure_acpi(mset)

        # nothing of use
        if mset.size() == 0:
            raise NoMeasurements()

        logger.debug("Collected %d measurements using %s", mset.size(), self.algorithm)

    def collect(self) -> MeasurementSet:
        mset = MeasurementSet()
        self.measure(mset)
        return mset
