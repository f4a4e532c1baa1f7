# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""CLI entry point for the Thrift IDL compiler."""

import argparse
import dataclasses
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Tuple

from thrift_compiler.config import CompilerConfig
from thrift_compiler.engine import Engine, Result, initialize
from thrift_compiler.errors import ConfigError, ErrorReport, InitializationError

logger = logging.getLogger(__name__)


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="thriftc",
        description="Thrift IDL parser, formatter and JSON AST transcoder",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # parse command
    parse_parser = subparsers.add_parser(
        "parse",
        help="Parse Thrift IDL files into JSON ASTs",
    )
    parse_parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        metavar="FILE",
        help="Thrift IDL files to parse ('-' reads stdin)",
    )
    parse_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file, or directory when several files are given (default: stdout)",
    )

    # write command
    write_parser = subparsers.add_parser(
        "write",
        help="Render a JSON AST as canonical Thrift IDL",
    )
    write_parser.add_argument(
        "file",
        type=Path,
        metavar="FILE",
        help="JSON AST file ('-' reads stdin)",
    )
    write_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Output file (default: stdout)",
    )

    # format command
    format_parser = subparsers.add_parser(
        "format",
        help="Rewrite Thrift IDL files in canonical form",
    )
    format_parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        metavar="FILE",
        help="Thrift IDL files to format",
    )
    mode = format_parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--check",
        action="store_true",
        help="Exit with status 1 if any file is not already canonical",
    )
    mode.add_argument(
        "--in-place",
        action="store_true",
        help="Overwrite the files with their canonical form",
    )

    # scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Parse every .thrift file under a directory",
    )
    scan_parser.add_argument(
        "directory",
        type=Path,
        metavar="DIR",
        help="Directory to search recursively",
    )
    scan_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Directory for JSON ASTs, mirroring the input tree",
    )
    scan_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=4,
        help="Number of files parsed in parallel (default: 4)",
    )

    return parser.parse_args(args)


def read_input(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def write_output(text: str, path: Optional[Path]):
    if path is None:
        sys.stdout.write(text)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def report_error(error: ErrorReport, filename: str):
    print(error.render(filename), file=sys.stderr)


def cmd_parse(args: argparse.Namespace, engine: Engine) -> int:
    """Parse IDL files and emit their JSON ASTs."""
    many = len(args.files) > 1
    success = True
    for file_path in args.files:
        try:
            source = read_input(file_path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {file_path}: {e}", file=sys.stderr)
            success = False
            continue

        result = engine.parse_json(source, str(file_path))
        if not result.ok:
            report_error(result.error, str(file_path))
            success = False
            continue

        target = args.output
        if target is not None and many:
            target = target / f"{file_path.stem}.json"
        write_output(result.value + "\n", target)
        if target is not None:
            logger.info("Wrote %s", target)
    return 0 if success else 1


def cmd_write(args: argparse.Namespace, engine: Engine) -> int:
    """Render a JSON AST file as IDL."""
    try:
        text = read_input(args.file)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading {args.file}: {e}", file=sys.stderr)
        return 1

    result = engine.write(text)
    if not result.ok:
        report_error(result.error, str(args.file))
        return 1
    write_output(result.value, args.output)
    return 0


def cmd_format(args: argparse.Namespace, engine: Engine) -> int:
    """Print, check, or rewrite IDL files in canonical form."""
    success = True
    for file_path in args.files:
        try:
            source = read_input(file_path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error reading {file_path}: {e}", file=sys.stderr)
            success = False
            continue

        result = engine.parse(source, str(file_path))
        if result.ok:
            result = engine.write(result.value)
        if not result.ok:
            report_error(result.error, str(file_path))
            success = False
            continue

        formatted = result.value
        if args.check:
            if formatted != source:
                print(f"would reformat {file_path}")
                success = False
        elif args.in_place:
            if formatted != source:
                file_path.write_text(formatted, encoding="utf-8")
                logger.info("Reformatted %s", file_path)
        else:
            sys.stdout.write(formatted)
    return 0 if success else 1


def scan_file(
    engine: Engine, file_path: Path, root: Path, output: Optional[Path]
) -> Tuple[Path, Result]:
    """Parse one file for ``scan``, writing its JSON AST under ``output``."""
    try:
        source = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        error = ErrorReport(kind="IOError", message=str(e), code="io::read_failed")
        return file_path, Result(error=error)

    result = engine.parse_json(source, str(file_path))
    if result.ok and output is not None:
        target = (output / file_path.relative_to(root)).with_suffix(".json")
        write_output(result.value + "\n", target)
    return file_path, result


def cmd_scan(args: argparse.Namespace, engine: Engine) -> int:
    """Parse every .thrift file under a directory tree."""
    root: Path = args.directory
    if not root.is_dir():
        print(f"Error: Not a directory: {root}", file=sys.stderr)
        return 1
    if args.jobs < 1:
        print("Error: --jobs must be at least 1", file=sys.stderr)
        return 1

    files = sorted(p for p in root.rglob("*.thrift") if p.is_file())
    logger.info("Scanning %d file(s) under %s", len(files), root)

    with ThreadPoolExecutor(max_workers=args.jobs) as pool:
        results = list(
            pool.map(lambda p: scan_file(engine, p, root, args.output), files)
        )

    failures = [(path, result) for path, result in results if not result.ok]
    for path, result in failures:
        report_error(result.error, str(path))

    print(f"Scanned {len(files)} file(s): {len(files) - len(failures)} ok, {len(failures)} failed")
    return 1 if failures else 0


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    if parsed.command is None:
        print("Usage: thriftc <command> [options]", file=sys.stderr)
        print("Commands: parse, write, format, scan", file=sys.stderr)
        print("Use 'thriftc <command> --help' for more information", file=sys.stderr)
        return 1

    try:
        config = CompilerConfig.from_env()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if parsed.verbose:
        level = "DEBUG" if parsed.verbose > 1 else "INFO"
        config = dataclasses.replace(config, log_level=level)

    logging.basicConfig(
        level=config.level, format="%(asctime)s - %(levelname)s - %(message)s"
    )

    try:
        engine = initialize(config)
    except InitializationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    commands = {
        "parse": cmd_parse,
        "write": cmd_write,
        "format": cmd_format,
        "scan": cmd_scan,
    }
    return commands[parsed.command](parsed, engine)


if __name__ == "__main__":
    sys.exit(main())
