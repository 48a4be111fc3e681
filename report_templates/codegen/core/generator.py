"""
Template class generator.

Turns parsed template parts into the source of a Python module holding one
class that extends a parent renderer type. Generation is a pure function of
its inputs: the module skeleton is laid out with Jinja2 and the ``render()``
body is assembled from the parts in order.
"""

import io
import os
import re
import tokenize
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

from ...logging_config import get_logger
from .naming import is_identifier, is_package_name
from .parser import OPENER, PartType, TemplatePart
from .signature import Signature, get_constructor_signature, import_statements
from .templates import (
    TEMPLATE_CLASS_TEMPLATE_NAME,
    TemplateEngine,
    create_template_engine,
    get_default_template_engine,
)

logger = get_logger(__name__)

INDENT = "    "

GENERATED_HEADER = "Generated by report-templates. Do not edit."

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

# Lines that continue the enclosing statement rather than nest in it
_CONTINUATION = re.compile(r"^(elif|else|except|finally)\b")

_END = "end"

# The layout renders this line where the render() body goes
_BODY_MARKER = "#@@render-body@@"
_BODY_LINE = re.compile(
    r"^([ \t]*)" + re.escape(_BODY_MARKER) + r"[ \t]*$", re.MULTILINE
)

# Python 3.12+ tokenizes f-strings piecewise
_FSTRING_START = getattr(tokenize, "FSTRING_START", None)
_FSTRING_END = getattr(tokenize, "FSTRING_END", None)


class GeneratorError(Exception):
    """Base exception for code generation errors."""

    pass


def escape_python_string(text: str) -> str:
    """
    Escape text for use inside a double-quoted Python string literal.

    Control characters and everything outside printable ASCII are written as
    ``\\xNN``, ``\\uNNNN`` or ``\\UNNNNNNNN`` escapes.
    """
    result = []
    for ch in text:
        if ch in _ESCAPES:
            result.append(_ESCAPES[ch])
        elif " " <= ch <= "~":
            result.append(ch)
        else:
            code = ord(ch)
            if code <= 0xFF:
                result.append(f"\\x{code:02x}")
            elif code <= 0xFFFF:
                result.append(f"\\u{code:04x}")
            else:
                result.append(f"\\U{code:08x}")
    return "".join(result)


@dataclass
class _Block:
    opener_indent: str
    body_indent: str
    local: bool = False
    filled: bool = False
    has_body_line: bool = False


@dataclass
class _CodeLayout:
    # First physical line of each logical line -> whether it opens a block
    starts: Dict[int, bool]
    # Lines that continue a multi-line string literal
    in_string: Set[int] = field(default_factory=set)
    # Lines that open a multi-line string literal
    string_tails: Set[int] = field(default_factory=set)


def _mark_string(layout: _CodeLayout, first_row: int, last_row: int) -> None:
    # tokenize rows are 1-based
    if last_row > first_row:
        layout.string_tails.add(first_row - 1)
        layout.in_string.update(range(first_row, last_row))


def _scan_code(source: str) -> Optional[_CodeLayout]:
    """
    Find logical lines and multi-line string literals in a code fragment.

    Returns None when the fragment cannot be tokenized on its own.
    """
    layout = _CodeLayout(starts={})
    starts = layout.starts
    fstring_rows: List[int] = []
    current_start = None
    last_token = None
    skipped = (tokenize.COMMENT, tokenize.NL, tokenize.INDENT, tokenize.DEDENT)
    try:
        for token in tokenize.generate_tokens(io.StringIO(source).readline):
            if token.type == tokenize.STRING:
                _mark_string(layout, token.start[0], token.end[0])
            elif token.type == _FSTRING_START:
                fstring_rows.append(token.start[0])
            elif token.type == _FSTRING_END:
                _mark_string(layout, fstring_rows.pop(), token.end[0])

            if token.type in skipped:
                continue
            if token.type in (tokenize.NEWLINE, tokenize.ENDMARKER):
                if current_start is not None:
                    starts[current_start] = (
                        last_token.type == tokenize.OP and last_token.string == ":"
                    )
                current_start = None
                last_token = None
                continue
            if current_start is None:
                current_start = token.start[0] - 1
            last_token = token
    except (tokenize.TokenError, SyntaxError):
        return None
    return layout


def _fallback_logical_lines(lines: Sequence[str]) -> Dict[int, bool]:
    starts = {}
    for index, line in enumerate(lines):
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            starts[index] = stripped.split("#", 1)[0].rstrip().endswith(":")
    return starts


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _common_margin(lines: Iterable[str]) -> str:
    return os.path.commonprefix(
        [line[: len(line) - len(line.lstrip())] for line in lines]
    )


class RenderBodyBuilder:
    """
    Assembles the statements of a generated ``render()`` method.

    Code parts are dedented and re-indented at the current block level. A code
    part whose last logical line ends with ``:`` leaves a block open, and the
    following parts are indented into it until a line reading ``end`` closes
    it. ``elif``/``else``/``except``/``finally`` at the top of a code part
    close the open block and reopen it at the same level. Blocks whose body is
    written inside a single code part close by dedent, as in plain Python.
    Lines inside multi-line string literals are copied unchanged.
    """

    def __init__(self):
        self.lines: List[str] = []
        self.warnings: List[str] = []
        self._verbatim: Set[int] = set()
        self._stack: List[_Block] = [_Block(opener_indent="", body_indent="")]

    @property
    def current_indent(self) -> str:
        return self._stack[-1].body_indent

    @property
    def open_blocks(self) -> int:
        return len(self._stack) - 1

    def add_text(self, text: str) -> None:
        self._emit(self.current_indent, f'self.out("{escape_python_string(text)}")')

    def add_expression(self, expression: str) -> None:
        statement = f"self.out({_normalize_newlines(expression).strip()})"
        first, *rest = statement.split("\n")
        self._emit(self.current_indent, first)
        # Later lines sit inside the call's parentheses, where indentation is free
        for line in rest:
            self._append_verbatim(line)

    def add_code(self, code: str) -> None:
        lines = _normalize_newlines(code).lstrip(" \t").split("\n")

        layout = _scan_code("\n".join(lines) + "\n")
        if layout is None:
            layout = _CodeLayout(starts=_fallback_logical_lines(lines))
        starts = layout.starts

        margin = _common_margin(
            line
            for index, line in enumerate(lines)
            if line.strip() and index not in layout.in_string
        )
        part_base = self.current_indent
        opened_last = False

        for index, line in enumerate(lines):
            if index in layout.in_string:
                self._append_verbatim(line)
                continue

            line = line[len(margin):]
            # Trailing whitespace of a line opening a string belongs to the string
            stripped = line.lstrip() if index in layout.string_tails else line.strip()
            if not stripped:
                continue

            relative = line[: len(line) - len(line.lstrip())]

            if index not in starts:
                # Comment or continuation of a multi-line statement
                self.lines.append(part_base + relative + stripped)
                continue

            indent = part_base + relative
            closed_local = self._close_dedented(indent)

            if stripped == _END:
                if not closed_local:
                    self._close_innermost()
                    part_base = self.current_indent
                opened_last = False
                continue

            if not relative and not closed_local and _CONTINUATION.match(stripped):
                if self.open_blocks:
                    self._close_block()
                    part_base = self.current_indent
                    indent = part_base
                else:
                    self._warn(f"'{stripped}' does not continue an open block")

            self._emit(indent, stripped)
            opened_last = starts[index]
            if opened_last:
                self._stack.append(
                    _Block(opener_indent=indent, body_indent=indent + INDENT, local=True)
                )

        self._finish_part(opened_last)

    def build(self, base_indent: str = "") -> str:
        """
        Return the finished body with every statement indented by ``base_indent``.

        Lines inside multi-line string literals are returned unchanged.
        """
        lines = [
            line if index in self._verbatim else base_indent + line
            for index, line in enumerate(self.lines)
        ]
        for block in reversed(self._stack[1:]):
            if not block.filled:
                lines.append(base_indent + block.body_indent + "pass")
        if not self._stack[0].filled:
            lines.append(base_indent + "pass")
        return "\n".join(lines)

    def _append_verbatim(self, line: str) -> None:
        self._verbatim.add(len(self.lines))
        self.lines.append(line)

    def _emit(self, indent: str, statement: str) -> None:
        top = self._stack[-1]
        if top.local and not top.has_body_line:
            top.body_indent = indent
            top.has_body_line = True
        top.filled = True
        self.lines.append(indent + statement)

    def _close_dedented(self, indent: str) -> bool:
        closed = False
        while self._stack[-1].local and len(self._stack[-1].opener_indent) >= len(indent):
            self._close_block()
            closed = True
        return closed

    def _close_innermost(self) -> None:
        if not self.open_blocks:
            self._warn("'end' without an open block is ignored")
            return
        self._close_block()

    def _close_block(self) -> None:
        block = self._stack.pop()
        if not block.filled:
            self.lines.append(block.body_indent + "pass")

    def _finish_part(self, opened_last: bool) -> None:
        if opened_last:
            # Enclosing blocks of a trailing opener stay open until their 'end'
            for block in self._stack:
                block.local = False
            return
        while self._stack[-1].local:
            self._close_block()

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


class TemplateCodeGenerator:
    """Generates template class modules from parsed template parts."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize generator with optional configuration.

        Supported keys are ``template_dir`` (directory overriding the module
        layout) and ``add_header`` (emit the generated-file comment).
        """
        self.config = config or {}
        self._template_engine = None

    @property
    def template_engine(self) -> TemplateEngine:
        """Get the template engine for this generator."""
        if self._template_engine is None:
            template_dir = self.config.get("template_dir")
            if template_dir:
                self._template_engine = create_template_engine(Path(template_dir))
            else:
                self._template_engine = get_default_template_engine()
        return self._template_engine

    def generate_template_class(
        self,
        package_name: str,
        class_name: str,
        parent_class: type,
        parts: Sequence[TemplatePart],
    ) -> str:
        """
        Generate the source of a template class module.

        Args:
            package_name: Package the module belongs to (may be empty)
            class_name: Name of the generated class
            parent_class: Parent renderer class with a single constructor
            parts: Parsed template parts, in render order

        Returns:
            Python module source

        Raises:
            GeneratorError: If the names or the parent class are unusable
            SignatureError: If the parent constructor cannot be rendered
        """
        self._check_inputs(package_name, class_name, parent_class)
        signature = get_constructor_signature(parent_class)
        context = self._build_context(package_name, class_name, parent_class, parts, signature)
        code = self.format_code(
            self.template_engine.render_template(TEMPLATE_CLASS_TEMPLATE_NAME, context)
        )
        builder = self.build_render_body(parts)
        return _BODY_LINE.sub(lambda match: builder.build(match.group(1)), code, count=1)

    def build_render_body(self, parts: Sequence[TemplatePart]) -> RenderBodyBuilder:
        builder = RenderBodyBuilder()
        for part in parts:
            if part.type == PartType.TEXT:
                builder.add_text(part.content)
            elif part.type == PartType.EXPRESSION:
                builder.add_expression(part.content)
            elif part.type == PartType.CODE:
                builder.add_code(part.content)
        return builder

    def validate_parts(self, parts: Sequence[TemplatePart]) -> List[str]:
        """
        Check parts for likely template mistakes.

        Returns:
            List of warning messages (empty if no issues)
        """
        warnings = []
        for part in parts:
            if part.type == PartType.TEXT and OPENER in part.content:
                warnings.append(
                    f"Text contains an unterminated '{OPENER}' and is written literally"
                )
            elif part.type == PartType.EXPRESSION and not part.content.strip():
                warnings.append("Empty expression writes nothing")
            elif part.type == PartType.IMPORT and not is_package_name(part.content):
                warnings.append(f"Import '{part.content}' is not a dotted module name")

        builder = self.build_render_body(parts)
        warnings.extend(builder.warnings)
        if builder.open_blocks:
            warnings.append(
                f"{builder.open_blocks} block(s) left open at the end of the template"
            )
        return warnings

    def format_code(self, code: str) -> str:
        """
        Strip trailing whitespace and collapse runs of blank lines in a layout.

        The render body is placed after formatting, so string literals written
        in code parts keep their blank lines and trailing spaces.
        """
        lines = code.split("\n")
        formatted_lines = []
        blank_count = 0

        for line in lines:
            stripped = line.rstrip()
            if not stripped:
                blank_count += 1
                if blank_count <= 2:
                    formatted_lines.append("")
            else:
                blank_count = 0
                formatted_lines.append(stripped)

        return "\n".join(formatted_lines)

    def _check_inputs(self, package_name: str, class_name: str, parent_class: type) -> None:
        if package_name and not is_package_name(package_name):
            raise GeneratorError(f"Invalid package name: {package_name!r}")
        if not is_identifier(class_name):
            raise GeneratorError(f"Invalid class name: {class_name!r}")
        if not isinstance(parent_class, type):
            raise GeneratorError(f"Parent must be a class, got {parent_class!r}")
        if "<locals>" in parent_class.__qualname__:
            raise GeneratorError(
                f"Parent class {parent_class.__qualname__} is not importable"
            )

    def _build_context(
        self,
        package_name: str,
        class_name: str,
        parent_class: type,
        parts: Sequence[TemplatePart],
        signature: Signature,
    ) -> Dict[str, Any]:
        parent_module = parent_class.__module__
        parent_name = parent_class.__qualname__
        parent_import = f"{parent_module}.{parent_name.split('.')[0]}"

        template_imports = []
        for part in parts:
            if part.type == PartType.IMPORT and part.content not in template_imports:
                template_imports.append(part.content)

        return {
            "header": GENERATED_HEADER if self.config.get("add_header", True) else "",
            "package_name": package_name,
            "class_name": class_name,
            "parent_module": parent_module,
            "parent_name": parent_name,
            "parent_import_name": parent_name.split(".")[0],
            "parent_generic": bool(getattr(parent_class, "__parameters__", ())),
            "template_imports": template_imports,
            "signature_imports": import_statements(
                signature.imports, exclude=[parent_import]
            ),
            "declaration": signature.declaration,
            "call_arguments": signature.call_arguments,
            "render_body": _BODY_MARKER,
        }


class GenerationResult:
    """Container for generation results and metadata."""

    def __init__(
        self, code: str, warnings: List[str] = None, metadata: Dict[str, Any] = None
    ):
        """
        Initialize generation result.

        Args:
            code: Generated code
            warnings: Any warnings from generation
            metadata: Additional metadata about generation
        """
        self.code = code
        self.warnings = warnings or []
        self.metadata = metadata or {}
        self.success = True
        self.error_message = None
        self.exception = None

    @classmethod
    def error(cls, message: str, exception: Exception = None) -> "GenerationResult":
        """Create a failed generation result."""
        result = cls(code="")
        result.success = False
        result.error_message = message
        result.exception = exception
        return result


def generate_code(
    generator: TemplateCodeGenerator,
    package_name: str,
    class_name: str,
    parent_class: type,
    parts: Sequence[TemplatePart],
) -> GenerationResult:
    """
    Generate a template class with error handling.

    Returns:
        GenerationResult with code, warnings, and metadata
    """
    qualified = f"{package_name}.{class_name}" if package_name else class_name
    logger.info("Generating template class %s", qualified)
    try:
        warnings = generator.validate_parts(parts)
        code = generator.generate_template_class(
            package_name, class_name, parent_class, parts
        )

        metadata = {
            "package": package_name,
            "class_name": class_name,
            "parent": f"{parent_class.__module__}.{parent_class.__qualname__}",
            "part_count": len(parts),
            "part_types": {
                part_type.value: sum(1 for part in parts if part.type == part_type)
                for part_type in PartType
            },
        }
        logger.info("Generated template class %s", qualified)
        return GenerationResult(code, warnings, metadata)

    except Exception as e:
        logger.error("Generation of %s failed: %s", qualified, e)
        return GenerationResult.error(f"Code generation failed: {e}", exception=e)
