"""Line oriented text form of a measurement set.

Each entry is one ``identifier=digest`` line. Lines are sorted by identifier
so that saving the same measurements twice produces identical files. Blank
lines and lines starting with ``#`` are ignored when reading, which keeps
baseline files editable by hand.
"""

from typing import Dict, Optional

from fwintegrity.common.exception import ParseError
from fwintegrity.measurement_set import MeasurementSet


def to_string(mset: MeasurementSet) -> Optional[str]:
    """Serialize mset, or return None if it has no entries."""
    if mset.size() == 0:
        return None
    return "\n".join(f"{identifier}={digest}" for identifier, digest in mset.items())


def from_string(mset: MeasurementSet, text: str) -> None:
    """Parse text and add every entry to mset.

    Nothing is added unless the whole text parses.

    :raises ParseError: if a line is not a comment, not blank, and has no '='
    """
    staged: Dict[str, str] = {}
    for line in text.split("\n"):
        line = line.rstrip("\r")
        if not line or line.startswith("#"):
            continue
        tokens = line.split("=", 1)
        if len(tokens) != 2:
            raise ParseError(text)
        staged[tokens[0]] = tokens[1]

    for identifier, digest in staged.items():
        mset.add_checksum(identifier, digest)
