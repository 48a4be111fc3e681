"""
Tests for constructor signature extraction.
"""

import sys

import pytest

from report_templates.api import Template
from report_templates.codegen.core.signature import (
    MissingParameterNamesError,
    SignatureArityError,
    SignatureError,
    get_constructor_signature,
    import_statements,
)
from tests import annotation_support, support


class TestConstructorSignature:
    """Test rendering parent constructors as declarations."""

    def test_base_template(self):
        signature = get_constructor_signature(Template)

        assert signature.declaration == "def __init__(self, writer: TextIO) -> None"
        assert signature.imports == ("typing.TextIO",)
        assert signature.parameter_names == ("writer",)
        assert signature.call_arguments == ("writer",)

    def test_enum_default_and_imports(self):
        signature = get_constructor_signature(support.TitledTemplate)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, title: str, "
            "level: Level = Level.LOW) -> None"
        )
        assert signature.imports == ("typing.TextIO", "tests.support.Level")
        assert signature.parameter_names == ("writer", "title", "level")

    def test_variadic_and_positional_only(self):
        signature = get_constructor_signature(support.VariadicTemplate)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, /, *parts: str, sep: str = ', ', "
            "**options: int) -> None"
        )
        assert signature.call_arguments == ("writer", "*parts", "sep=sep", "**options")

    def test_keyword_only_marker(self):
        signature = get_constructor_signature(support.KeywordOnlyTemplate)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, *, strict: bool = False) -> None"
        )
        assert signature.call_arguments == ("writer", "strict=strict")

    def test_annotated_and_optional(self):
        signature = get_constructor_signature(support.AnnotatedTemplate)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, name: Annotated[str, Marker('title')], "
            "limit: int | None = None) -> None"
        )
        assert signature.imports == (
            "typing.TextIO",
            "typing.Annotated",
            "tests.support.Marker",
        )

    def test_nested_class_imports_outer_class(self):
        signature = get_constructor_signature(support.NestedHolder.Inner)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, depth: int = 1) -> None"
        )
        assert "tests.support.NestedHolder" not in signature.imports

    def test_implicit_constructor(self):
        class Empty:
            pass

        signature = get_constructor_signature(Empty)

        assert signature.declaration == "def __init__(self) -> None"
        assert signature.imports == ()
        assert signature.parameter_names == ()

    def test_several_constructors_rejected(self):
        with pytest.raises(SignatureArityError) as exc_info:
            get_constructor_signature(support.OverloadedTemplate)

        assert str(exc_info.value) == (
            "Expected single constructor for template class "
            "tests.support.OverloadedTemplate. Found 2"
        )

    def test_no_constructor_rejected(self):
        class Sealed:
            __init__ = None

        with pytest.raises(SignatureArityError, match="Found 0"):
            get_constructor_signature(Sealed)

    def test_unrenderable_default(self):
        with pytest.raises(SignatureError, match="sentinel"):
            get_constructor_signature(support.BadDefaultTemplate)

    def test_unavailable_parameter_names(self):
        class Opaque(Template):
            def __init__(self, writer):
                super().__init__(writer)

        Opaque.__init__.__signature__ = 42

        with pytest.raises(MissingParameterNamesError):
            get_constructor_signature(Opaque)

    @pytest.mark.skipif(sys.version_info < (3, 12), reason="PEP 695 syntax")
    def test_type_parameters(self):
        namespace = {}
        exec(
            "from typing import TextIO\n"
            "from report_templates.api import Template\n"
            "class Keyed(Template):\n"
            "    def __init__[K: str, V](self, writer: TextIO, key: K, value: V) -> None:\n"
            "        super().__init__(writer)\n",
            namespace,
        )

        signature = get_constructor_signature(namespace["Keyed"])

        assert signature.declaration == (
            "def __init__[K: str, V](self, writer: TextIO, key: K, value: V) -> None"
        )
        assert signature.imports == ("typing.TextIO",)

    def test_unresolvable_annotation_stays_quoted(self):
        signature = get_constructor_signature(annotation_support.LedgerTemplate)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, total: \"Decimal\") -> None"
        )
        assert signature.imports == ("typing.TextIO",)

    def test_clashing_names_are_aliased(self):
        signature = get_constructor_signature(annotation_support.StagedTemplate)

        assert signature.declaration == (
            "def __init__(self, writer: TextIO, stage: Level, "
            "level: tests_support_Level = tests_support_Level.HIGH) -> None"
        )
        assert signature.imports == (
            "typing.TextIO",
            "tests.annotation_support.Level",
            "tests.support.Level as tests_support_Level",
        )


class TestImportStatements:
    def test_from_imports(self):
        assert import_statements(["typing.TextIO", "tests.support.Level"]) == [
            "from typing import TextIO",
            "from tests.support import Level",
        ]

    def test_excluded_names(self):
        statements = import_statements(
            ["typing.TextIO", "report_templates.api.template.Template"],
            exclude=["report_templates.api.template.Template"],
        )

        assert statements == ["from typing import TextIO"]

    def test_aliased_import(self):
        assert import_statements(["tests.support.Level as tests_support_Level"]) == [
            "from tests.support import Level as tests_support_Level"
        ]
