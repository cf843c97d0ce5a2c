import datetime
import os
from typing import Optional

from fwintegrity import config, fs_util, fw_logging
from fwintegrity.common import validators
from fwintegrity.common.algorithms import Hash
from fwintegrity.common.exception import NoMeasurements, ParseError
from fwintegrity.measurement_set import MeasurementSet
from fwintegrity.serialize import from_string, to_string

logger = fw_logging.init_logging("baseline")


def default_path() -> str:
    return config.get("fwintegrity", "baseline_path", fallback=config.DEFAULT_BASELINE_PATH)


def save_baseline(mset: MeasurementSet, path: Optional[str] = None) -> str:
    """Write mset to path (or the configured baseline path) and return the path used."""
    if path is None:
        path = default_path()

    text = to_string(mset)
    if text is None:
        raise NoMeasurements()

    now = datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    header = f"# fwintegrity baseline, {mset.size()} measurements, created {now}\n"

    fs_util.ensure_dir(os.path.dirname(path))
    fs_util.atomic_write(path, header + text + "\n")
    logger.info("Saved %d measurements to %s", mset.size(), path)
    return path


def load_baseline(path: Optional[str] = None, algorithm: Optional[Hash] = None) -> MeasurementSet:
    """Read a baseline file.

    When algorithm is given, digests of another size are logged as unusual.

    :raises FileNotFoundError: if there is no baseline at path
    :raises ParseError: if the file is malformed or holds no measurements
    """
    if path is None:
        path = default_path()

    # Purposefully die if path doesn't exist
    with open(path, encoding="utf-8") as f:
        text = f.read()

    mset = MeasurementSet()
    from_string(mset, text)
    if mset.size() == 0:
        raise ParseError(text)

    for identifier, digest in mset.items():
        if not validators.valid_identifier(identifier) or not validators.valid_digest(digest):
            logger.warning("Baseline %s has unusual entry %s=%s", path, identifier, digest)
        elif algorithm is not None and not validators.valid_digest(digest, algorithm):
            logger.warning("Baseline %s entry %s is not a %s digest", path, identifier, algorithm)

    logger.debug("Loaded %d measurements from %s", mset.size(), path)
    return mset
