"""Compare a fresh measurement set against a baseline."""

import enum
from typing import Any, Dict, List, Optional

from fwintegrity import fw_logging
from fwintegrity.common.exception import IntegrityMismatch
from fwintegrity.failure import Component, Failure, SeverityPolicy
from fwintegrity.measurement_set import MeasurementSet

logger = fw_logging.init_logging("compare")

MISSING = "MISSING"


class ChangeKind(enum.Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class ChangeRecord:
    """Difference for a single identifier.

    ``old`` is the baseline digest and ``new`` the current one; the side that
    does not exist is None.
    """

    kind: ChangeKind
    identifier: str
    old: Optional[str]
    new: Optional[str]

    def __init__(self, kind: ChangeKind, identifier: str, old: Optional[str] = None, new: Optional[str] = None):
        self.kind = kind
        self.identifier = identifier
        self.old = old
        self.new = new

    @property
    def namespace(self) -> str:
        return self.identifier.split(":", 1)[0] if ":" in self.identifier else ""

    def render(self) -> str:
        old = self.old if self.old is not None else MISSING
        new = self.new if self.new is not None else MISSING
        return f"{self.identifier}={old}->{new}"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "id": self.identifier, "old": self.old, "new": self.new}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeRecord):
            return NotImplemented
        return (self.kind, self.identifier, self.old, self.new) == (other.kind, other.identifier, other.old, other.new)

    def __repr__(self) -> str:
        return f"ChangeRecord({self.kind.name}, {self.render()!r})"


def diff(current: MeasurementSet, baseline: MeasurementSet) -> List[ChangeRecord]:
    """Return the changes from baseline to current, empty if they are equivalent."""
    records: List[ChangeRecord] = []

    # look at what we have now
    for identifier, digest in current.items():
        old = baseline.get(identifier)
        if old is None:
            records.append(ChangeRecord(ChangeKind.ADDED, identifier, new=digest))
        elif old != digest:
            records.append(ChangeRecord(ChangeKind.CHANGED, identifier, old=old, new=digest))

    # look at what we had then
    for identifier, digest in baseline.items():
        if identifier not in current:
            records.append(ChangeRecord(ChangeKind.REMOVED, identifier, old=digest))

    return records


def render(records: List[ChangeRecord]) -> str:
    return ", ".join(record.render() for record in records)


def compare(current: MeasurementSet, baseline: MeasurementSet) -> None:
    """Check current against baseline.

    :raises IntegrityMismatch: with the rendered diff as message if anything was
        added, removed or changed
    """
    records = diff(current, baseline)
    if records:
        message = render(records)
        logger.debug("Measurements differ from baseline: %s", message)
        raise IntegrityMismatch(message, records)


def diff_to_failure(records: List[ChangeRecord], policy: Optional[SeverityPolicy] = None) -> Failure:
    """Tag every record as an event with id integrity.<namespace>.<kind>."""
    failure = Failure(Component.INTEGRITY, policy)
    for record in records:
        sub_components = [record.namespace.lower()] if record.namespace else None
        failure.add_event(
            record.kind.value,
            {"id": record.identifier, "old": record.old, "new": record.new},
            sub_components,
        )
    return failure
