"""Tests for the CLI main module."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from xml_event_json.cli.main import (
    CLIConfig,
    ConversionProcessor,
    create_argument_parser,
    format_results,
    load_cli_config,
    main,
)
from xml_event_json.shared.config import ConfigError


@pytest.fixture
def xml_dir(tmp_path):
    """Directory with two valid documents, one broken one and a non-XML file."""
    (tmp_path / "one.xml").write_text("<a>1</a>", encoding="utf-8")
    (tmp_path / "two.xml").write_text('<b x="2"/>', encoding="utf-8")
    (tmp_path / "notes.txt").write_text("not xml", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "broken.xml").write_text("<c><d></c>", encoding="utf-8")
    return tmp_path


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig()
        assert config.conversion_config.text_key == "text"
        assert config.max_workers is None
        assert config.output_format == "text"

    def test_config_from_file(self, tmp_path):
        """Test loading configuration from file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "preset": "legacy",
            "attribute_prefix": "_",
            "max_workers": 4,
            "output_format": "json",
        }), encoding="utf-8")
        config = CLIConfig.from_file(path)
        assert config.conversion_config.text_key == "#text"
        assert config.conversion_config.attribute_prefix == "_"
        assert config.max_workers == 4
        assert config.output_format == "json"

    def test_unknown_preset(self, tmp_path):
        """Test that unknown presets are rejected."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"preset": "fastest"}), encoding="utf-8")
        with pytest.raises(ConfigError):
            CLIConfig.from_file(path)

    def test_flags_override_file(self, tmp_path):
        """Test that command-line flags win over the configuration file."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"preset": "legacy"}), encoding="utf-8")
        parser = create_argument_parser()
        args = parser.parse_args([
            "convert", "doc.xml", "--config", str(path), "--text-key", "value",
            "--keep-whitespace", "--ensure-ascii", "-w", "2",
        ])
        config = load_cli_config(args)
        assert config.conversion_config.text_key == "value"
        assert config.conversion_config.strip_text is False
        assert config.conversion_config.ensure_ascii is True
        assert config.max_workers == 2


class TestConversionProcessor:
    """Test file discovery and batch conversion."""

    def test_find_files_flat(self, xml_dir):
        """Test that only XML files directly in the directory are found."""
        processor = ConversionProcessor(CLIConfig())
        found = [p.name for p in processor.find_xml_files(xml_dir, recursive=False)]
        assert found == ["one.xml", "two.xml"]

    def test_find_files_recursive(self, xml_dir):
        """Test recursive discovery."""
        processor = ConversionProcessor(CLIConfig())
        found = {p.name for p in processor.find_xml_files(xml_dir, recursive=True)}
        assert found == {"one.xml", "two.xml", "broken.xml"}

    def test_explicit_file(self, tmp_path):
        """Test that explicit file arguments are always used."""
        processor = ConversionProcessor(CLIConfig())
        path = tmp_path / "data.txt"
        assert list(processor.find_xml_files(path)) == [path]

    def test_process_single_file(self, xml_dir):
        """Test the summary of a single conversion."""
        processor = ConversionProcessor(CLIConfig())
        result = processor.process_single_file(xml_dir / "two.xml")
        assert result["success"] is True
        assert result["document"] == '{"b":{"@x":"2"}}'
        assert result["file"] == str(xml_dir / "two.xml")

    def test_batch_process(self, xml_dir):
        """Test that failures are reported next to successes."""
        processor = ConversionProcessor(CLIConfig())
        results = processor.batch_process([xml_dir], recursive=True)
        assert len(results) == 3
        failed = [r for r in results if not r["success"]]
        assert len(failed) == 1
        assert failed[0]["error_type"] == "TokenizationFailureError"


class TestArgumentParser:
    """Test argument parsing."""

    def test_convert_arguments(self):
        """Test parsing of convert options."""
        args = create_argument_parser().parse_args(
            ["convert", "a.xml", "b.xml", "-r", "-o", "out.jsonl", "--legacy"]
        )
        assert args.command == "convert"
        assert args.paths == [Path("a.xml"), Path("b.xml")]
        assert args.recursive is True
        assert args.output == Path("out.jsonl")
        assert args.legacy is True

    def test_output_options_exclusive(self):
        """Test that -o and -d cannot be combined."""
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(
                ["convert", "a.xml", "-o", "x", "-d", "y"]
            )

    def test_check_arguments(self):
        """Test parsing of check options."""
        args = create_argument_parser().parse_args(["check", "a.xml", "--format", "json"])
        assert args.command == "check"
        assert args.format == "json"


class TestFormatResults:
    """Test report formatting."""

    RESULTS = [
        {"file": "a.xml", "success": True, "events_processed": 4,
         "output_length": 9, "processing_time_ms": 1.5, "document": '{"a":"1"}'},
        {"file": "b.xml", "success": False, "error": "bad",
         "error_type": "TokenizationFailureError", "document": None},
    ]

    def test_text(self):
        """Test the text report."""
        output = format_results(self.RESULTS, "text")
        assert "Checked 2 files, 1 converted" in output
        assert "OK   a.xml" in output
        assert "FAIL b.xml" in output
        assert "TokenizationFailureError: bad" in output

    def test_json(self):
        """Test that the JSON report omits documents."""
        report = json.loads(format_results(self.RESULTS, "json"))
        assert len(report) == 2
        assert "document" not in report[0]

    def test_empty(self):
        """Test the text report without results."""
        assert format_results([], "text") == "No results to display."


class TestMain:
    """Test the CLI entry point."""

    def test_no_command(self, capsys):
        """Test that help is shown without a command."""
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_convert_to_stdout(self, xml_dir, capsys):
        """Test conversion of files to standard output."""
        exit_code = main(["convert", str(xml_dir / "one.xml"), str(xml_dir / "two.xml")])
        assert exit_code == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines == ['{"a":"1"}', '{"b":{"@x":"2"}}']

    def test_convert_to_file(self, xml_dir, tmp_path):
        """Test conversion into an output file."""
        output = tmp_path / "out.jsonl"
        exit_code = main(["convert", str(xml_dir), "-o", str(output)])
        assert exit_code == 0
        assert output.read_text(encoding="utf-8").splitlines() == [
            '{"a":"1"}', '{"b":{"@x":"2"}}'
        ]

    def test_convert_to_directory(self, xml_dir, tmp_path):
        """Test conversion into one file per input."""
        out_dir = tmp_path / "json"
        exit_code = main(["convert", str(xml_dir / "one.xml"), "-d", str(out_dir)])
        assert exit_code == 0
        assert (out_dir / "one.json").read_text(encoding="utf-8") == '{"a":"1"}'

    def test_convert_with_failure(self, xml_dir, capsys):
        """Test that a failed input gives exit code 1."""
        exit_code = main(["convert", str(xml_dir), "-r"])
        assert exit_code == 1
        captured = capsys.readouterr()
        assert "broken.xml" in captured.err
        assert len(captured.out.splitlines()) == 2

    def test_convert_legacy(self, tmp_path, capsys):
        """Test the legacy text field name."""
        path = tmp_path / "doc.xml"
        path.write_text('<a x="1">hi</a>', encoding="utf-8")
        assert main(["convert", str(path), "--legacy"]) == 0
        assert capsys.readouterr().out.strip() == '{"a":{"@x":"1","#text":"hi"}}'

    def test_convert_missing_file(self, tmp_path, capsys):
        """Test that a missing input is reported."""
        assert main(["convert", str(tmp_path / "missing.xml")]) == 1
        assert "missing.xml" in capsys.readouterr().err

    def test_convert_no_files(self, tmp_path, capsys):
        """Test an empty directory."""
        assert main(["convert", str(tmp_path)]) == 1
        assert "No XML files found" in capsys.readouterr().err

    def test_check(self, xml_dir, capsys):
        """Test the check report."""
        exit_code = main(["check", str(xml_dir), "-r", "--format", "json"])
        assert exit_code == 1
        report = json.loads(capsys.readouterr().out)
        assert sum(1 for entry in report if entry["success"]) == 2

    def test_invalid_config(self, tmp_path, capsys):
        """Test that an invalid configuration file is reported."""
        path = tmp_path / "config.json"
        path.write_text("{broken", encoding="utf-8")
        assert main(["check", str(tmp_path), "--config", str(path)]) == 1
        assert "Error" in capsys.readouterr().err

    def test_keyboard_interrupt(self, xml_dir, capsys):
        """Test the exit code on interruption."""
        with patch("xml_event_json.cli.main.cmd_convert", side_effect=KeyboardInterrupt):
            assert main(["convert", str(xml_dir)]) == 130
        assert "interrupted" in capsys.readouterr().err
