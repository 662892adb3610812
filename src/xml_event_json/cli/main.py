"""Main CLI entry point for the xml-event-json command-line tool.

Provides batch conversion of XML files into compact JSON documents and a
check command that reports which files convert cleanly.
"""

import argparse
import json
import logging
import sys
from concurrent.futures import ProcessPoolExecutor
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from xml_event_json import __version__
from xml_event_json.api import try_convert
from xml_event_json.shared.config import ConfigError, ConversionConfig
from xml_event_json.shared.logging import get_logger

XML_SUFFIXES = {".xml"}


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.conversion_config = ConversionConfig.default()
        self.max_workers = None  # Sequential unless requested
        self.output_format = "text"

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Besides the conversion fields, the file may name a ``preset``
        ("default" or "legacy") and set ``max_workers`` and ``output_format``.
        """
        config = cls()
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {config_path} must hold an object")

        preset = data.get("preset", "default")
        if preset == "legacy":
            config.conversion_config = ConversionConfig.legacy()
        elif preset != "default":
            raise ConfigError(f"Unknown preset: {preset}")

        overrides = {
            key: value for key, value in data.items()
            if key in ConversionConfig.__dataclass_fields__
        }
        if overrides:
            config.conversion_config = config.conversion_config.override(**overrides)

        config.max_workers = data.get("max_workers", config.max_workers)
        config.output_format = data.get("output_format", config.output_format)
        return config


def _convert_path(path: str, config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Convert one file; module level so it can run in a worker process."""
    result = try_convert(Path(path), ConversionConfig.from_dict(config_data))
    summary = result.summary()
    summary["file"] = path
    summary["document"] = result.document
    return summary


class ConversionProcessor:
    """Core file processing logic for CLI operations."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Convert a single XML file and return a summary with the document."""
        return _convert_path(str(file_path), self.config.conversion_config.to_dict())

    def find_xml_files(self, path: Path, recursive: bool = True) -> Iterator[Path]:
        """Find XML files in path; explicit file arguments are always included."""
        if path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for candidate in sorted(candidates):
                if candidate.is_file() and candidate.suffix.lower() in XML_SUFFIXES:
                    yield candidate
        else:
            # Missing files are reported by the conversion itself
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = True) -> List[Dict[str, Any]]:
        """Convert multiple XML files, in parallel when workers are configured."""
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_xml_files(path, recursive))

        if not all_files:
            return []

        self.logger.info(
            "Starting batch conversion",
            extra={"file_count": len(all_files), "max_workers": self.config.max_workers}
        )

        if len(all_files) == 1 or not self.config.max_workers or self.config.max_workers == 1:
            return [self.process_single_file(file_path) for file_path in all_files]

        config_data = self.config.conversion_config.to_dict()
        with ProcessPoolExecutor(max_workers=self.config.max_workers) as executor:
            # map keeps input order
            return list(executor.map(
                _convert_path,
                [str(file_path) for file_path in all_files],
                [config_data] * len(all_files),
            ))


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-event-json",
        description="Convert XML documents to compact JSON without building a tree"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert XML files to JSON")
    convert_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to convert"
    )
    _add_common_options(convert_parser)
    output_group = convert_parser.add_mutually_exclusive_group()
    output_group.add_argument(
        "--output", "-o",
        type=Path,
        help="Write documents, one per line, to this file (default: stdout)"
    )
    output_group.add_argument(
        "--output-dir", "-d",
        type=Path,
        help="Write one .json file per input into this directory"
    )
    convert_parser.add_argument(
        "--legacy",
        action="store_true",
        help="Use '#text' as the text field name"
    )
    convert_parser.add_argument(
        "--text-key",
        help="Field name for text next to attributes or children (default: text)"
    )
    convert_parser.add_argument(
        "--attribute-prefix",
        help="Prefix for attribute field names (default: @)"
    )
    convert_parser.add_argument(
        "--keep-whitespace",
        action="store_true",
        help="Do not trim surrounding whitespace from text"
    )
    convert_parser.add_argument(
        "--ensure-ascii",
        action="store_true",
        help="Escape non-ASCII characters in the output"
    )

    # Check command
    check_parser = subparsers.add_parser(
        "check", help="Report which XML files convert cleanly"
    )
    check_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="XML files or directories to check"
    )
    _add_common_options(check_parser)
    check_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Report format (default: text)"
    )

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def _add_common_options(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively search directories"
    )
    subparser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    subparser.add_argument(
        "--workers", "-w",
        type=int,
        help="Number of parallel worker processes"
    )


def load_cli_config(args: argparse.Namespace) -> CLIConfig:
    """Build the CLI configuration from the config file and command-line flags."""
    config = CLIConfig.from_file(args.config) if args.config else CLIConfig()

    overrides: Dict[str, Any] = {}
    if getattr(args, "legacy", False):
        overrides["text_key"] = ConversionConfig.legacy().text_key
    if getattr(args, "text_key", None):
        overrides["text_key"] = args.text_key
    if getattr(args, "attribute_prefix", None) is not None:
        overrides["attribute_prefix"] = args.attribute_prefix
    if getattr(args, "keep_whitespace", False):
        overrides["strip_text"] = False
    if getattr(args, "ensure_ascii", False):
        overrides["ensure_ascii"] = True
    if overrides:
        config.conversion_config = config.conversion_config.override(**overrides)

    if args.workers:
        config.max_workers = args.workers
    return config


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format check results for output."""
    if format_type == "json":
        report = [
            {key: value for key, value in result.items() if key != "document"}
            for result in results
        ]
        return json.dumps(report, indent=2)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))
    lines.append(f"Checked {len(results)} files, {successful} converted")
    lines.append("-" * 60)

    for result in results:
        if result.get("success", False):
            lines.append(f"OK   {result['file']}")
            lines.append(
                f"     Events: {result.get('events_processed', 0)}, "
                f"Output: {result.get('output_length', 0)} chars, "
                f"Time: {result.get('processing_time_ms', 0):.1f}ms"
            )
        else:
            lines.append(f"FAIL {result['file']}")
            lines.append(f"     {result.get('error_type')}: {result.get('error')}")

    return "\n".join(lines)


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    config = load_cli_config(args)
    processor = ConversionProcessor(config)
    results = processor.batch_process(args.paths, args.recursive)
    if not results:
        print("No XML files found", file=sys.stderr)
        return 1

    documents = []
    for result in results:
        if not result["success"]:
            print(f"Failed to convert {result['file']}: {result['error']}", file=sys.stderr)
            continue
        if args.output_dir:
            args.output_dir.mkdir(parents=True, exist_ok=True)
            target = args.output_dir / (Path(result["file"]).stem + ".json")
            target.write_text(result["document"], encoding="utf-8")
            if not args.quiet:
                print(f"Converted: {result['file']} -> {target}", file=sys.stderr)
        else:
            documents.append(result["document"])

    if documents:
        output = "\n".join(documents) + "\n"
        if args.output:
            args.output.write_text(output, encoding="utf-8")
            if not args.quiet:
                print(f"Results written to {args.output}", file=sys.stderr)
        else:
            sys.stdout.write(output)

    successful = sum(1 for r in results if r["success"])
    return 0 if successful == len(results) else 1


def cmd_check(args: argparse.Namespace) -> int:
    """Handle check command."""
    config = load_cli_config(args)
    processor = ConversionProcessor(config)
    results = processor.batch_process(args.paths, args.recursive)

    print(format_results(results, args.format))

    if not results:
        return 1
    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "convert":
            return cmd_convert(args)
        if args.command == "check":
            return cmd_check(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    except (ConfigError, OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
