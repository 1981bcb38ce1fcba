"""
Missing Data Deck - Integration Tests for the command line
"""

import json

import pytest

from app import build_parser, main


@pytest.mark.integration
class TestCli:

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_unknown_theme_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["build", "--theme", "neon"])

    def test_info(self, capsys):
        assert main(["info"]) == 0
        info = json.loads(capsys.readouterr().out)
        assert info["dataset"]["rows"] > 0
        assert "monthly_income" in info["dataset"]["columns"]

    def test_missing_data_file(self, tmp_path, output_dir, capsys):
        code = main(["build", "--data", str(tmp_path / "nope.csv"), "--output", str(output_dir)])
        assert code == 1
        assert "nope.csv" in capsys.readouterr().err

    def test_unknown_format(self, attrition_csv, output_dir):
        code = main(["build", "--data", str(attrition_csv), "--output", str(output_dir), "--format", "pptx"])
        assert code == 1
        assert not any(output_dir.iterdir())

    @pytest.mark.slow
    def test_build_markdown(self, attrition_csv, output_dir, capsys):
        code = main([
            "build",
            "--data", str(attrition_csv),
            "--output", str(output_dir),
            "--format", "markdown",
            "--imputations", "2",
            "--seed", "5",
        ])
        assert code == 0
        deck = output_dir / "missing_data.md"
        assert deck.exists()
        assert f"markdown: {deck}" in capsys.readouterr().out
        assert (output_dir / "missing_data_assets").is_dir()
