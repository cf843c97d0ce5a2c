"""Syntax checks for GUIDs, measurement identifiers and digests."""

import re
from typing import Optional

from fwintegrity.common.algorithms import Hash


def valid_uuid(uuid: Optional[str]) -> bool:
    """Check if the string is a valid UUID."""
    if not uuid:
        return False
    return bool(
        re.fullmatch(
            r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}",
            uuid,
            re.I,
        )
    )


def valid_identifier(identifier: Optional[str]) -> bool:
    """Check if the string is a namespaced measurement id such as UEFI:BootOrder."""
    if not identifier:
        return False
    return bool(re.fullmatch(r"[A-Za-z0-9_]+:[^\n=]+", identifier))


def valid_digest(digest: Optional[str], algorithm: Optional[Hash] = None) -> bool:
    """Check if the string is a lowercase hex digest, of the algorithm size if given."""
    if not digest or not re.fullmatch(r"[0-9a-f]+", digest):
        return False
    if algorithm is not None:
        return len(digest) == algorithm.get_hex_size()
    return True
