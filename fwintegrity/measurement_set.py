"""Named digests of platform state.

A measurement set maps a namespaced identifier such as ``UEFI:BootOrder`` or
``ACPI:SLIC`` to the lowercase hex digest of the measured blob. Keys and
values are plain ``str`` objects owned by the set, so nothing a caller does
to its own buffers afterwards changes an entry.
"""

from typing import Dict, ItemsView, Iterator, Optional

from fwintegrity.common.algorithms import Hash


class MeasurementSet:
    """Mapping of measurement identifier to digest.

    Insertion order carries no meaning; iteration is sorted by identifier so
    that anything derived from a set is stable across runs.
    """

    _entries: Dict[str, str]

    def __init__(self) -> None:
        self._entries = {}

    def add_checksum(self, identifier: str, digest: str) -> None:
        """Insert or replace the digest stored for identifier."""
        self._entries[str(identifier)] = str(digest)

    def add_measurement(self, identifier: str, blob: bytes, algorithm: Hash = Hash.SHA256) -> None:
        self.add_checksum(identifier, algorithm.hexdigest(blob))

    def get(self, identifier: str) -> Optional[str]:
        return self._entries.get(identifier)

    def size(self) -> int:
        return len(self._entries)

    def items(self) -> ItemsView[str, str]:
        return dict(sorted(self._entries.items())).items()

    def to_dict(self) -> Dict[str, str]:
        return dict(sorted(self._entries.items()))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def __getitem__(self, identifier: str) -> str:
        return self._entries[identifier]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MeasurementSet):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"MeasurementSet({self.to_dict()!r})"
