"""
Unit Tests - Command Line
"""
import pytest

from ecom_synth.cli import build_parser, main


class TestParser:
    """Tests for argument parsing"""

    def test_defaults(self):
        """Test defaults come from settings"""
        args = build_parser().parse_args([])

        assert args.scale in ("small", "medium", "large", "planning")
        assert args.formats is None
        assert args.list_scales is False

    def test_repeatable_format(self):
        """Test --format may be given more than once"""
        args = build_parser().parse_args(["-f", "csv", "--format", "sql"])

        assert args.formats == ["csv", "sql"]

    def test_unknown_scale_exits(self):
        """Test an unknown scale is a usage error"""
        with pytest.raises(SystemExit) as exc:
            main(["--scale", "gigantic"])

        assert exc.value.code == 2


class TestMain:
    """Tests for the CLI entry point"""

    def test_list_scales(self, capsys):
        """Test --list-scales prints presets and exits cleanly"""
        assert main(["--list-scales"]) == 0

        out = capsys.readouterr().out
        assert "small" in out
        assert "planning" in out

    def test_generate_and_export(self, tmp_path, capsys):
        """Test a small run exports files and prints the summary"""
        code = main([
            "--scale", "small",
            "--format", "csv",
            "--seed", "42",
            "--output-dir", str(tmp_path),
            "--validate",
        ])

        assert code == 0
        assert (tmp_path / "csv" / "orders.csv").exists()
        assert not (tmp_path / "sql").exists()
        assert "TOTAL" in capsys.readouterr().out
