"""Generate headers from a declaration dump.

Usage::

    python -m dumpheaders StructureConfig.json [--output-dir DIR] [--no-compress]
    python -m dumpheaders StructureConfig.json --format json

Formats other than ``headers`` are the registered writers outside
:data:`~dumpheaders.writers.HEADER_WRITERS`.
"""

from __future__ import annotations

import argparse
import logging
import sys

from dumpheaders.config import load_config
from dumpheaders.errors import DumpHeadersError
from dumpheaders.pipeline import build_closure, load_inputs, run_config, write_artifacts
from dumpheaders.writers import HEADER_WRITERS, get_writer, list_writers

logger = logging.getLogger("dumpheaders")


def main(argv: list[str] | None = None) -> int:
    formats = [name for name in list_writers() if name not in HEADER_WRITERS]
    parser = argparse.ArgumentParser(
        prog="dumpheaders",
        description="Convert a reverse-engineered type dump into C++ headers.",
        epilog="formats:\n" + "\n".join(f"  {name:<10}{get_writer(name).format_description}" for name in formats),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("config", help="JSON configuration file (e.g. StructureConfig.json)")
    parser.add_argument(
        "--output-dir",
        help="Directory for the generated headers (default: <charonDirectory>/headers)",
    )
    parser.add_argument(
        "--no-compress",
        action="store_true",
        help="Keep placeholder members instead of collapsing them into arrays",
    )
    parser.add_argument(
        "--format",
        choices=["headers", *formats],
        default="headers",
        help="Write the headers (default) or print the resolved closure in another format",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        if args.no_compress:
            config.compress_file = False

        if args.format != "headers":
            closure = build_closure(load_inputs(config))
            print(get_writer(args.format).write(closure))
            return 0

        artifacts = run_config(config)
        for path in write_artifacts(artifacts, args.output_dir or config.output_directory):
            logger.info("Wrote %s", path)
    except DumpHeadersError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
