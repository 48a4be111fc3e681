"""
Tests for the command-line interface.
"""

import json

import pytest
from rich.console import Console

from report_templates import cli


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Plain, wide console output and no global logging changes."""
    monkeypatch.setattr(cli, "console", Console(width=500, color_system=None))
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


class TestGenerateCommand:
    def test_generate(self, tmp_path, template_sources, capsys):
        output = tmp_path / "out"

        exit_code = cli.main(
            [
                "generate",
                str(template_sources),
                "--output",
                str(output),
                "--package",
                "acme.reports",
                "--parent",
                "tests=tests.support:TitledTemplate",
            ]
        )

        captured = capsys.readouterr().out
        assert exit_code == 0
        assert "acme.reports.tests.FailuresTemplate" in captured
        assert "tests.support.TitledTemplate" in captured
        assert "Generated 3 module(s)" in captured
        assert (output / "acme" / "reports" / "coverage" / "SummaryTemplate.py").is_file()

    def test_generate_from_config_file(self, tmp_path, template_sources, capsys):
        config_file = tmp_path / "reports.json"
        config_file.write_text(
            json.dumps(
                {"source_dirs": [str(template_sources)], "output_dir": str(tmp_path / "out")}
            ),
            encoding="utf-8",
        )

        assert cli.main(["generate", "--config", str(config_file)]) == 0
        assert (tmp_path / "out" / "reports" / "templates" / "tests").is_dir()

    def test_generate_without_sources(self, capsys):
        assert cli.main(["generate"]) == 1
        assert "No template source directories given" in capsys.readouterr().out

    def test_generate_processing_error(self, tmp_path, template_sources, capsys):
        exit_code = cli.main(
            [
                "generate",
                str(template_sources),
                "--output",
                str(tmp_path / "out"),
                "--parent",
                "tests=tests.support:OverloadedTemplate",
            ]
        )

        assert exit_code == 1
        assert "Error:" in capsys.readouterr().out

    def test_malformed_parent_option(self, template_sources, capsys):
        assert cli.main(["generate", str(template_sources), "--parent", "oops"]) == 1
        assert "Expected TYPE=module:Class" in capsys.readouterr().out

    def test_empty_source_directory(self, tmp_path, capsys):
        exit_code = cli.main(["generate", str(tmp_path), "--output", str(tmp_path / "out")])

        assert exit_code == 0
        assert "No templates found." in capsys.readouterr().out


class TestCompileCommand:
    def test_compile_to_file(self, tmp_path, capsys):
        template = tmp_path / "weekly-summary.pyt"
        template.write_text("Week <%= 1 %>\n", encoding="utf-8")
        output = tmp_path / "Weekly.py"

        exit_code = cli.main(
            ["compile", str(template), "--package", "acme", "--output", str(output)]
        )

        source = output.read_text(encoding="utf-8")
        assert exit_code == 0
        assert "class WeeklySummaryTemplate(Template[\"WeeklySummaryTemplate\"]):" in source
        assert '"""acme.WeeklySummaryTemplate"""' in source

    def test_compile_to_console(self, tmp_path, capsys):
        template = tmp_path / "note.pyt"
        template.write_text("hi", encoding="utf-8")

        assert cli.main(["compile", str(template), "--class-name", "Note"]) == 0
        assert 'self.out("hi")' in capsys.readouterr().out

    def test_compile_missing_file(self, tmp_path, capsys):
        assert cli.main(["compile", str(tmp_path / "absent.pyt")]) == 1
        assert "File not found" in capsys.readouterr().out


class TestInspectCommands:
    def test_parse(self, tmp_path, capsys):
        template = tmp_path / "t.pyt"
        template.write_text("import json;\nA<%= b %><% c = 1 %>", encoding="utf-8")

        assert cli.main(["parse", str(template)]) == 0

        captured = capsys.readouterr().out
        for kind in ("IMPORT", "TEXT", "EXPRESSION", "CODE"):
            assert kind in captured
        assert "4 part(s)" in captured

    def test_signature(self, capsys):
        assert cli.main(["signature", "tests.support:TitledTemplate"]) == 0

        captured = capsys.readouterr().out
        assert "writer, title, level" in captured
        assert "tests.support.Level" in captured

    def test_signature_of_overloaded_parent(self, capsys):
        assert cli.main(["signature", "tests.support:OverloadedTemplate"]) == 1
        assert "Expected single constructor" in capsys.readouterr().out

    def test_signature_bad_spec(self, capsys):
        assert cli.main(["signature", "not-a-spec"]) == 1
        assert "Expected 'module:Name'" in capsys.readouterr().out


def test_command_required(capsys):
    with pytest.raises(SystemExit):
        cli.main([])
