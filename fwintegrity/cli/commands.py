"""
Subcommands of the fwintegrity tool.

Every command returns None on failure, which the entry point turns into a
non-zero exit code.
"""

import argparse
import json
import sys
from typing import TYPE_CHECKING, Any, Dict, List, Optional, TextIO

import yaml

from fwintegrity import baseline, fw_logging
from fwintegrity.collector import Collector
from fwintegrity.common.exception import IntegrityMismatch, NoMeasurements, ParseError
from fwintegrity.compare import ChangeRecord, compare, diff_to_failure
from fwintegrity.failure import SeverityPolicy
from fwintegrity.measurement_set import MeasurementSet
from fwintegrity.serialize import to_string

if TYPE_CHECKING:
    _SubparserType = argparse._SubParsersAction[argparse.ArgumentParser]  # pylint: disable=protected-access
else:
    _SubparserType = Any

logger = fw_logging.init_logging("cli")

FORMATS = ["text", "json", "yaml"]


def _collector() -> Optional[Collector]:
    try:
        return Collector.from_config()
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return None


def _collect(collector: Collector) -> Optional[MeasurementSet]:
    try:
        return collector.collect()
    except NoMeasurements:
        logger.error("No measurements available: neither UEFI variables nor ACPI tables could be read")
        return None
    except OSError as e:
        logger.error("Unable to read firmware state: %s", e)
        return None


def write_measurements(mset: MeasurementSet, fmt: str, output: TextIO) -> None:
    if fmt == "json":
        json.dump(mset.to_dict(), output, indent=2)
        output.write("\n")
    elif fmt == "yaml":
        yaml.safe_dump(mset.to_dict(), output, default_flow_style=False)
    else:
        output.write(f"{to_string(mset)}\n")


def write_records(records: List[ChangeRecord], fmt: str, output: TextIO) -> None:
    if fmt == "json":
        json.dump([r.to_dict() for r in records], output, indent=2)
        output.write("\n")
    elif fmt == "yaml":
        yaml.safe_dump([r.to_dict() for r in records], output, default_flow_style=False)
    else:
        for record in records:
            output.write(f"{record.render()}\n")


def measure(args: argparse.Namespace) -> Optional[MeasurementSet]:
    """Collect and print the current measurements."""
    collector = _collector()
    if collector is None:
        return None
    mset = _collect(collector)
    if mset is None:
        return None
    write_measurements(mset, args.format, args.output)
    return mset


def save(args: argparse.Namespace) -> Optional[str]:
    """Collect the current measurements and store them as the baseline."""
    collector = _collector()
    if collector is None:
        return None
    mset = _collect(collector)
    if mset is None:
        return None
    try:
        return baseline.save_baseline(mset, args.baseline)
    except OSError as e:
        logger.error("Unable to save baseline: %s", e)
        return None


def check(args: argparse.Namespace) -> Optional[Dict[str, Any]]:
    """Collect the current measurements and compare them against the baseline."""
    collector = _collector()
    if collector is None:
        return None
    try:
        policy = SeverityPolicy.from_config()
    except ValueError as e:
        logger.error("Invalid severity configuration: %s", e)
        return None

    try:
        reference = baseline.load_baseline(args.baseline, collector.algorithm)
    except (OSError, ParseError) as e:
        logger.error("Unable to load baseline: %s", e)
        return None

    mset = _collect(collector)
    if mset is None:
        return None

    try:
        compare(mset, reference)
    except IntegrityMismatch as e:
        failure = diff_to_failure(e.records, policy)
        highest = failure.highest_severity_event
        logger.error(
            "Measurements do not match baseline: %d differences, highest severity %s (%s)",
            len(e.records),
            highest.severity_label.name if highest else "none",
            highest.event_id if highest else "none",
        )
        write_records(e.records, args.format, args.output)
        return None

    logger.info("Measurements match baseline (%d entries)", mset.size())
    return {"matched": mset.size()}



def get_arg_parser(subparsers: _SubparserType, parent_parser: argparse.ArgumentParser) -> None:
    """Perform the setup of the command-line arguments for the subcommands."""
    measure_p = subparsers.add_parser("measure", help="print the current measurements", parents=[parent_parser])
    measure_p.add_argument("--format", choices=FORMATS, default="text", help="output format")
    measure_p.add_argument(
        "-o",
        "--output",
        type=argparse.FileType("w"),
        default=sys.stdout,
        help="Output path for the measurements",
    )
    measure_p.set_defaults(func=measure)

    save_p = subparsers.add_parser("save", help="store the current measurements as baseline", parents=[parent_parser])
    save_p.add_argument("-b", "--baseline", default=None, help="baseline path, defaults to the configured one")
    save_p.set_defaults(func=save)

    compare_p = subparsers.add_parser(
        "compare", help="compare the current measurements against the baseline", parents=[parent_parser]
    )
    compare_p.add_argument("-b", "--baseline", default=None, help="baseline path, defaults to the configured one")
    compare_p.add_argument("--format", choices=FORMATS, default="text", help="format of the difference report")
    compare_p.add_argument(
        "-o",
        "--output",
        type=argparse.FileType("w"),
        default=sys.stdout,
        help="Output path for the difference report",
    )
    compare_p.set_defaults(func=check)
