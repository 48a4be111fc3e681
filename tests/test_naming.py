"""
Tests for naming utilities.
"""

import pytest

from report_templates.codegen.core.naming import (
    NameSanitizer,
    NamingCase,
    create_python_sanitizer,
    is_identifier,
    is_package_name,
    package_segment,
    template_base_name,
    template_class_name,
    to_pascal_case,
    to_snake_case,
)


@pytest.mark.parametrize(
    "file_name, expected",
    [
        ("defaultMarkdownReport.md.pyt", "DefaultMarkdownReportTemplate"),
        ("summary.pyt", "SummaryTemplate"),
        ("summary-table.pyt", "SummaryTableTemplate"),
        ("class_files.md.pyt", "ClassFilesTemplate"),
        ("HTML.pyt", "HTMLTemplate"),
    ],
)
def test_template_class_name(file_name, expected):
    assert template_class_name(file_name) == expected


@pytest.mark.parametrize("file_name", ["1st.pyt", ".hidden.pyt", "---.pyt"])
def test_template_class_name_rejects_unusable_names(file_name):
    with pytest.raises(ValueError):
        template_class_name(file_name)


def test_template_base_name():
    assert template_base_name("report.md.pyt") == "report"


@pytest.mark.parametrize(
    "name, expected",
    [("coverage", "coverage"), ("Test Reports", "test_reports"), ("class", "class_")],
)
def test_package_segment(name, expected):
    assert package_segment(name) == expected


def test_package_segment_rejects_empty():
    with pytest.raises(ValueError):
        package_segment("---")


def test_case_conversion():
    assert to_snake_case("defaultMarkdownReport") == "default_markdown_report"
    assert to_snake_case("class-table") == "class_table"
    assert to_pascal_case("class-table") == "ClassTable"


def test_identifiers():
    assert is_identifier("Summary")
    assert not is_identifier("for")
    assert not is_identifier("None")
    assert is_package_name("reports.templates")
    assert not is_package_name("reports..templates")
    assert not is_package_name("")


class TestNameSanitizer:
    def test_reserved_words_suffixed(self):
        sanitizer = create_python_sanitizer()

        assert sanitizer.sanitize_name("import") == "import_"
        assert sanitizer.sanitize_name("Import", NamingCase.PASCAL_CASE) == "Import_"

    def test_leading_digit(self):
        assert NameSanitizer().sanitize_name("2023 results") == "_2023_results"

    def test_invalid_characters(self):
        assert NameSanitizer().sanitize_name("line.coverage%") == "line_coverage"
