"""
Naming utilities for generated template modules.

Derives class names and package segments from template file names, and
sanitises arbitrary strings into Python identifiers.
"""

import re
from enum import Enum
from typing import Dict, Optional, Set


class NamingCase(Enum):
    """Different naming case styles."""

    SNAKE_CASE = "snake"  # report_type
    PASCAL_CASE = "pascal"  # ReportType


PYTHON_RESERVED = {
    "and", "as", "assert", "async", "await", "break", "class", "continue",
    "def", "del", "elif", "else", "except", "finally", "for", "from",
    "global", "if", "import", "in", "is", "lambda", "nonlocal", "not", "or",
    "pass", "raise", "return", "try", "while", "with", "yield", "true",
    "false", "none",
}

CLASS_NAME_SUFFIX = "Template"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SEPARATORS = re.compile(r"[-_\s]")


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, reserved_words: Optional[Set[str]] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Lower-cased words that may not be used as names
        """
        self.reserved_words = reserved_words or set()
        self._name_cache: Dict[str, str] = {}

    def sanitize_name(
        self,
        name: str,
        target_case: NamingCase = NamingCase.SNAKE_CASE,
        suffix_on_conflict: str = "_",
    ) -> str:
        """
        Sanitize a name for use as a Python identifier.

        Args:
            name: Original name to sanitize
            target_case: Desired case style
            suffix_on_conflict: Suffix added to reserved words

        Returns:
            Sanitized name
        """
        cache_key = f"{name}_{target_case.value}_{suffix_on_conflict}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        cleaned = self._clean_basic(name)
        converted = self._convert_case(cleaned, target_case)
        if converted and converted[0].isdigit():
            converted = f"_{converted}"
        if converted.lower() in self.reserved_words:
            converted = f"{converted}{suffix_on_conflict}"

        self._name_cache[cache_key] = converted
        return converted

    def _clean_basic(self, name: str) -> str:
        """Replace everything that cannot appear in an identifier."""
        cleaned = re.sub(r"[^a-zA-Z0-9_-]", "_", name)
        return cleaned.strip("_-")

    def _convert_case(self, name: str, target_case: NamingCase) -> str:
        if target_case == NamingCase.PASCAL_CASE:
            return to_pascal_case(name)
        return to_snake_case(name)


def to_snake_case(name: str) -> str:
    """Convert to snake_case."""
    name = name.replace("-", "_")
    name = re.sub(r"\s+", "_", name)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"_+", "_", name.lower())
    return name.strip("_")


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return "".join(part.capitalize() for part in to_snake_case(name).split("_") if part)


def title_case(name: str) -> str:
    """Upper-case the first character only, keeping inner capitals."""
    return name[:1].upper() + name[1:]


def is_identifier(name: str) -> bool:
    return bool(_IDENTIFIER.match(name)) and name.lower() not in PYTHON_RESERVED


def is_package_name(name: str) -> bool:
    """Check a dotted package name such as ``reports.templates``."""
    return bool(name) and all(is_identifier(part) for part in name.split("."))


def create_python_sanitizer() -> NameSanitizer:
    """Create a name sanitizer configured for Python."""
    return NameSanitizer(PYTHON_RESERVED)


_sanitizer = create_python_sanitizer()


def template_base_name(file_name: str) -> str:
    """Return the part of a template file name before its first dot."""
    return file_name.split(".", 1)[0]


def template_class_name(file_name: str) -> str:
    """
    Derive the generated class name for a template file.

    ``defaultMarkdownReport.md.pyt`` becomes ``DefaultMarkdownReportTemplate``;
    names with separators are converted to PascalCase
    (``summary-table.pyt`` becomes ``SummaryTableTemplate``).

    Raises:
        ValueError: If no valid identifier can be derived
    """
    base = template_base_name(file_name)
    if _SEPARATORS.search(base):
        base = _sanitizer.sanitize_name(base, NamingCase.PASCAL_CASE, suffix_on_conflict="")
    else:
        base = title_case(base)

    class_name = base + CLASS_NAME_SUFFIX
    if not base or not is_identifier(class_name):
        raise ValueError(f"Cannot derive a class name from template file '{file_name}'")
    return class_name


def package_segment(name: str) -> str:
    """
    Derive a package segment (``snake_case``) from a report type directory name.

    Raises:
        ValueError: If no valid identifier can be derived
    """
    segment = _sanitizer.sanitize_name(name, NamingCase.SNAKE_CASE)
    if not segment or not is_identifier(segment):
        raise ValueError(f"Cannot derive a package name from '{name}'")
    return segment
