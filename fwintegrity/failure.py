"""Severity ranking of the drift found when comparing measurements.

Every change record becomes an event with an id such as
``integrity.uefi.changed``. A severity policy maps event ids to labels with
an ordered list of regular expressions, the first full match wins. The
``severity_labels`` and ``severity_policy`` options of the ``fwintegrity``
section replace the built-in policy, which ranks every event as the most
severe label.
"""

import enum
import functools
import json
import re
from typing import Dict, List, Optional, Pattern, Tuple

from fwintegrity import config, fw_logging

logger = fw_logging.init_logging("failure")

# From lowest to highest severity
DEFAULT_SEVERITY_LABELS = ["info", "notice", "warning", "error", "critical", "alert", "emergency"]


@functools.total_ordering
class SeverityLabel:
    """A named severity. Only compare labels coming from the same policy."""

    def __init__(self, name: str, severity: int):
        self.name = name
        self.severity = severity

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SeverityLabel):
            return NotImplemented
        return self.severity < other.severity

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SeverityLabel):
            return NotImplemented
        return self.severity == other.severity

    def __hash__(self) -> int:
        return hash(self.severity)

    def __repr__(self) -> str:
        return f"SeverityLabel({self.name!r}, {self.severity})"


class SeverityPolicy:
    def __init__(self, labels: Optional[List[str]] = None, rules: Optional[List[Dict[str, str]]] = None):
        names = labels or DEFAULT_SEVERITY_LABELS
        self.labels = {name: SeverityLabel(name, level) for level, name in enumerate(names)}
        self.max_label = self.labels[names[-1]]

        if not rules:
            rules = [{"event_id": ".*", "severity_label": self.max_label.name}]
        self._rules: List[Tuple[Pattern[str], str]] = []
        for rule in rules:
            if not isinstance(rule, dict) or "event_id" not in rule or "severity_label" not in rule:
                raise ValueError(f"Severity rule {rule!r} needs an event_id and a severity_label")
            try:
                self._rules.append((re.compile(rule["event_id"]), rule["severity_label"]))
            except re.error as e:
                raise ValueError(f"Severity rule {rule!r} has an invalid event_id: {e}") from e

    @classmethod
    def from_config(cls) -> "SeverityPolicy":
        """
        :raises ValueError: if the configured labels or rules are malformed
        """
        labels = config.getlist("fwintegrity", "severity_labels", fallback=[])
        rules = config.getlist("fwintegrity", "severity_policy", fallback=[])
        return cls(labels, rules)

    def label_for(self, event_id: str) -> SeverityLabel:
        for regex, label_name in self._rules:
            if not regex.fullmatch(event_id):
                continue
            label = self.labels.get(label_name)
            if label is None:
                logger.error("Severity label %s is not defined, using %s", label_name, self.max_label.name)
                return self.max_label
            return label

        logger.warning("No severity rule matches %s, using %s", event_id, self.max_label.name)
        return self.max_label


class Component(enum.Enum):
    INTEGRITY = "integrity"


class Event:
    """One difference between the measurements and the baseline."""

    def __init__(self, event_id: str, context: Dict[str, Optional[str]], severity_label: SeverityLabel):
        self.event_id = event_id
        self.context = json.dumps(context, sort_keys=True)
        self.severity_label = severity_label


class Failure:
    """All events of one comparison, ranked by a severity policy."""

    def __init__(self, component: Component, policy: Optional[SeverityPolicy] = None):
        self._component = component
        self._policy = policy or SeverityPolicy()
        self.events: List[Event] = []
        # First event seen with the highest severity
        self.highest_severity_event: Optional[Event] = None
        self.highest_severity: Optional[SeverityLabel] = None

    def add_event(
        self, event_id: str, context: Dict[str, Optional[str]], sub_components: Optional[List[str]] = None
    ) -> Event:
        full_id = ".".join([self._component.value, *(sub_components or []), event_id])
        event = Event(full_id, context, self._policy.label_for(full_id))

        if self.highest_severity is None or event.severity_label > self.highest_severity:
            self.highest_severity = event.severity_label
            self.highest_severity_event = event
        self.events.append(event)
        return event

    def get_event_ids(self) -> List[str]:
        return [event.event_id for event in self.events]

    def __bool__(self) -> bool:
        return bool(self.events)
