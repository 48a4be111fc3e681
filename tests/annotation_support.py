"""
Parent templates whose annotations are postponed strings.

Decimal is only imported for type checkers, so it cannot be resolved at run
time; Level deliberately shares its name with ``tests.support.Level``.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, TextIO

from report_templates.api import Template
from tests import support

if TYPE_CHECKING:
    from decimal import Decimal


class Level(enum.Enum):
    DRAFT = "draft"
    FINAL = "final"


class LedgerTemplate(Template["LedgerTemplate"]):
    def __init__(self, writer: TextIO, total: Decimal) -> None:
        super().__init__(writer)
        self.total = total

    def self(self) -> LedgerTemplate:
        return self

    def render(self) -> None:
        self.out(self.total)


class StagedTemplate(Template["StagedTemplate"]):
    def __init__(
        self, writer: TextIO, stage: Level, level: support.Level = support.Level.HIGH
    ) -> None:
        super().__init__(writer)
        self.stage = stage
        self.level = level

    def self(self) -> StagedTemplate:
        return self

    def render(self) -> None:
        self.out(self.stage.value, "/", self.level.name)
