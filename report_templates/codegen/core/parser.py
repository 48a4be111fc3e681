"""
Template parser.

Splits template source text into an ordered list of parts: static text,
``<%= expression %>`` output, ``<% code %>`` blocks and ``import name;``
lines. The parser is a pure function of its input and never raises for
malformed templates; an opener without a matching closer stays literal text.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from ...logging_config import get_logger

logger = get_logger(__name__)


class PartType(Enum):
    """Kinds of template parts."""

    EXPRESSION = "expression"
    IMPORT = "import"
    CODE = "code"
    TEXT = "text"


@dataclass(frozen=True)
class TemplatePart:
    """A single classified fragment of a parsed template."""

    type: PartType
    content: str

    def __str__(self) -> str:
        return f"{self.type.name}: {self.content}"


OPENER = "<%"
CLOSER = "%>"

# Delimited content runs up to the first closer and may not contain another opener
_CONTENT = r"((?:(?!<%|%>).)*)"

TOKEN_PATTERN = re.compile(
    rf"(<%={_CONTENT}%>)"  # groups 1-2: expressions
    r"|(^import[ \t]+([^;\r\n]*);(?:\r\n|\n|\r))"  # groups 3-4: import lines
    rf"|(<%{_CONTENT}%>)",  # groups 5-6: code blocks
    re.MULTILINE | re.DOTALL,
)


class TemplateParser:
    """Parses template strings into :class:`TemplatePart` sequences."""

    def parse(self, template_content: str) -> List[TemplatePart]:
        """
        Parse template content into parts.

        Args:
            template_content: Raw template text

        Returns:
            Parts in render order. Zero-length text gaps are not emitted.
        """
        parts: List[TemplatePart] = []
        last_index = 0

        for match in TOKEN_PATTERN.finditer(template_content):
            start, end = match.span()

            if start > last_index:
                parts.append(
                    TemplatePart(PartType.TEXT, template_content[last_index:start])
                )

            if match.group(1) is not None:
                # Not trimmed, the template author controls formatting
                parts.append(TemplatePart(PartType.EXPRESSION, match.group(2)))
            elif match.group(3) is not None:
                parts.append(TemplatePart(PartType.IMPORT, match.group(4).strip()))
            else:
                parts.append(TemplatePart(PartType.CODE, match.group(6)))

            last_index = end

        if last_index < len(template_content):
            parts.append(TemplatePart(PartType.TEXT, template_content[last_index:]))

        self._warn_unterminated(parts)
        return parts

    def _warn_unterminated(self, parts: List[TemplatePart]) -> None:
        for part in parts:
            if part.type == PartType.TEXT and OPENER in part.content:
                logger.warning(
                    "Template text contains an unterminated '%s' delimiter; "
                    "it is rendered as literal text",
                    OPENER,
                )
                return


def parse_template(template_content: str) -> List[TemplatePart]:
    """Convenience wrapper around :meth:`TemplateParser.parse`."""
    return TemplateParser().parse(template_content)
