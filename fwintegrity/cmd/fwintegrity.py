#!/usr/bin/env python3
# PYTHON_ARGCOMPLETE_OK

"""
Measure UEFI variables and ACPI tables and compare them against a stored
baseline.

Exit status is 0 when the command succeeded (for ``compare``: the firmware
state matches the baseline) and 1 otherwise.
"""

import argparse
import os
import sys
from typing import List, Optional

try:
    import argcomplete
except ModuleNotFoundError:
    argcomplete = None

from fwintegrity import fw_logging
from fwintegrity.cli import commands

logger = fw_logging.init_logging("fwintegrity")


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="log debug messages")

    parser = argparse.ArgumentParser(
        prog="fwintegrity", description="Detect changes to UEFI variables and ACPI tables."
    )
    commands.get_arg_parser(parser.add_subparsers(title="commands"), common)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    if argcomplete:
        argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(0)

    fw_logging.set_verbose(args.verbose)

    try:
        if args.func(args) is None:
            sys.exit(1)
    except BrokenPipeError:
        # The reader went away; silence the flush of stdout at interpreter exit
        os.dup2(os.open(os.devnull, os.O_WRONLY), sys.stdout.fileno())
        sys.exit(1)


if __name__ == "__main__":
    main()
