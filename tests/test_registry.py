"""
Tests for the parent registry.
"""

import pytest

from report_templates.api import Template
from report_templates.codegen.registry import (
    DEFAULT_REPORT_TYPE,
    ParentRegistry,
    RegistryError,
    get_registry,
)
from tests import support


class TestParentRegistry:
    """Test registering parent template classes."""

    def setup_method(self):
        self.registry = ParentRegistry()

    def test_register_and_lookup(self):
        self.registry.register("Coverage", support.TitledTemplate, aliases=["cov"])

        assert self.registry.get_parent_class("coverage") is support.TitledTemplate
        assert self.registry.get_parent_class("COV") is support.TitledTemplate
        assert self.registry.is_supported("cov")
        assert self.registry.list_report_types() == ["coverage"]
        assert self.registry.get_aliases("coverage") == ["cov"]

    def test_rejects_non_templates(self):
        with pytest.raises(RegistryError, match="must inherit from Template"):
            self.registry.register("plain", support.NotATemplate)

    def test_existing_registration_kept_without_replace(self):
        self.registry.register("coverage", support.TitledTemplate)
        self.registry.register("coverage", support.ClosedTemplate)

        assert self.registry.get_parent_class("coverage") is support.TitledTemplate

    def test_replace(self):
        self.registry.register("coverage", support.TitledTemplate)
        self.registry.register("coverage", support.ClosedTemplate, replace=True)

        assert self.registry.get_parent_class("coverage") is support.ClosedTemplate

    def test_alias_conflicts(self):
        self.registry.register("coverage", support.TitledTemplate, aliases=["cov"])
        self.registry.register("tests", support.ClosedTemplate)

        with pytest.raises(RegistryError, match="conflicts"):
            self.registry.register("other", support.ClosedTemplate, aliases=["tests"])
        with pytest.raises(RegistryError, match="already points"):
            self.registry.register("more", support.ClosedTemplate, aliases=["cov"])

    def test_unregister_removes_aliases(self):
        self.registry.register("coverage", support.TitledTemplate, aliases=["cov"])
        self.registry.unregister("coverage")

        assert not self.registry.is_supported("coverage")
        assert not self.registry.is_supported("cov")

    def test_unknown_report_type(self):
        self.registry.register("coverage", support.TitledTemplate)

        with pytest.raises(RegistryError, match="Available: coverage"):
            self.registry.get_parent_class("tests")

    def test_register_spec(self):
        self.registry.register_spec("tests", "tests.support:NestedHolder.Inner")

        assert self.registry.get_parent_class("tests") is support.NestedHolder.Inner

    def test_register_spec_import_failure(self):
        with pytest.raises(RegistryError, match="Cannot load parent"):
            self.registry.register_spec("tests", "no_such_module_here:Parent")

    def test_parent_info(self):
        self.registry.register("coverage", support.TitledTemplate, aliases=["cov"])

        info = self.registry.get_parent_info("cov")

        assert info == {
            "name": "coverage",
            "class": "TitledTemplate",
            "module": "tests.support",
            "aliases": ["cov"],
            "constructor": (
                "def __init__(self, writer: TextIO, title: str, "
                "level: Level = Level.LOW) -> None"
            ),
        }

    def test_parent_info_without_usable_constructor(self):
        self.registry.register("multi", support.OverloadedTemplate)

        assert self.registry.get_parent_info("multi")["constructor"] is None


def test_global_registry_has_default():
    assert get_registry().get_parent_class(DEFAULT_REPORT_TYPE) is Template
