"""
Pytest configuration and shared fixtures for report template tests.
"""

import io
import logging
from pathlib import Path

import pytest

from report_templates.api import Template
from report_templates.codegen import compile_template
from report_templates.runtime import TemplateInstantiator

GENERATED_PACKAGE = "generated_reports.coverage"


def write_generated(
    root: Path, package_name: str, class_name: str, text: str, parent: type = Template
) -> Path:
    """Compile ``text`` and write it where a classpath directory expects it."""
    directory = root.joinpath(*package_name.split("."))
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{class_name}.py"
    path.write_text(compile_template(text, package_name, class_name, parent), encoding="utf-8")
    return path


@pytest.fixture
def writer():
    """In-memory writer for rendering."""
    return io.StringIO()


@pytest.fixture
def classpath_dir(tmp_path):
    """Classpath directory holding a few generated templates."""
    root = tmp_path / "classes"
    write_generated(root, GENERATED_PACKAGE, "SummaryTemplate", "Total: <%= 40 + 2 %>\n")
    write_generated(
        root,
        GENERATED_PACKAGE,
        "ListTemplate",
        "<% for item in ('a', 'b'): %>- <%= item %>\n<% end %>",
    )
    return root


@pytest.fixture
def instantiator(classpath_dir):
    resolver = TemplateInstantiator(GENERATED_PACKAGE)
    resolver.add_classpath_entries(str(classpath_dir))
    return resolver


@pytest.fixture
def template_sources(tmp_path):
    """A template source tree with two report types."""
    source = tmp_path / "templates"
    (source / "coverage").mkdir(parents=True)
    (source / "tests").mkdir(parents=True)
    (source / "coverage" / "summary.md.pyt").write_text(
        "# Coverage <%= self.written %>\n", encoding="utf-8"
    )
    (source / "coverage" / "class-table.pyt").write_text(
        "import textwrap;\n<%= textwrap.dedent('  x') %>\n", encoding="utf-8"
    )
    (source / "tests" / "failures.pyt").write_text(
        "<% for n in range(2): %><%= n %><% end %>", encoding="utf-8"
    )
    (source / "tests" / "notes.txt").write_text("not a template", encoding="utf-8")
    return source


@pytest.fixture
def package_warnings(caplog):
    """Capture warnings logged anywhere under the package logger."""
    caplog.set_level(logging.WARNING, logger="report_templates")
    return caplog
