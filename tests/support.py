"""
Fixture classes shared by the test modules.

Generated template modules import their parents from here, so everything a
generated class may extend lives at module level.
"""

import ctypes
import enum
from typing import Annotated, Optional, TextIO, TypeVar, overload

from report_templates.api import Template

T = TypeVar("T", bound=Template)


class Level(enum.Enum):
    LOW = 1
    HIGH = 2


class Marker:
    """Annotation metadata used by AnnotatedTemplate."""

    def __init__(self, label: str):
        self.label = label

    def __repr__(self) -> str:
        return f"Marker({self.label!r})"


# Parent templates

class TitledTemplate(Template[T]):
    def __init__(self, writer: TextIO, title: str, level: Level = Level.LOW) -> None:
        super().__init__(writer)
        self.title = title
        self.level = level


class VariadicTemplate(Template[T]):
    def __init__(
        self, writer: TextIO, /, *parts: str, sep: str = ", ", **options: int
    ) -> None:
        super().__init__(writer)
        self.parts = parts
        self.sep = sep
        self.options = options


class KeywordOnlyTemplate(Template[T]):
    def __init__(self, writer: TextIO, *, strict: bool = False) -> None:
        super().__init__(writer)
        self.strict = strict


class AnnotatedTemplate(Template[T]):
    def __init__(
        self,
        writer: TextIO,
        name: Annotated[str, Marker("title")],
        limit: Optional[int] = None,
    ) -> None:
        super().__init__(writer)
        self.name = name
        self.limit = limit


class OverloadedTemplate(Template[T]):
    @overload
    def __init__(self, writer: TextIO) -> None: ...

    @overload
    def __init__(self, writer: TextIO, title: str) -> None: ...

    def __init__(self, writer, title="untitled"):
        super().__init__(writer)
        self.title = title


class BadDefaultTemplate(Template[T]):
    def __init__(self, writer: TextIO, sentinel: object = object()) -> None:
        super().__init__(writer)


class NestedHolder:
    class Inner(Template[T]):
        def __init__(self, writer: TextIO, depth: int = 1) -> None:
            super().__init__(writer)
            self.depth = depth


class ClosedTemplate(Template["ClosedTemplate"]):
    """A parent that is no longer generic."""

    def __init__(self, writer: TextIO) -> None:
        super().__init__(writer)

    def self(self) -> "ClosedTemplate":
        return self

    def render(self) -> None:
        self.out("closed")


# Concrete templates

class Greeting(Template["Greeting"]):
    def __init__(self, writer: TextIO, name: str = "World") -> None:
        super().__init__(writer)
        self.name = name

    def self(self) -> "Greeting":
        return self

    def render(self) -> None:
        self.out("Hello, ", self.name, "!")


class FailingTemplate(Template["FailingTemplate"]):
    def __init__(self, writer: TextIO, count: int) -> None:
        super().__init__(writer)
        if count < 0:
            raise ValueError("count must not be negative")

    def self(self) -> "FailingTemplate":
        return self

    def render(self) -> None:
        pass


# Plain classes for constructor resolution

class Both:
    @overload
    def __init__(self, value: ctypes.c_int) -> None: ...

    @overload
    def __init__(self, value: int) -> None: ...

    def __init__(self, value):
        self.value = value


class Boxed:
    def __init__(self, value: ctypes.c_int) -> None:
        self.value = value


class Unboxed:
    def __init__(self, value: int) -> None:
        self.value = value


class Nullable:
    def __init__(self, value: Optional[int]) -> None:
        self.value = value


class Untyped:
    def __init__(self, first, second=2):
        self.first = first
        self.second = second


class Variadic:
    def __init__(self, head: str, *rest: int, flag: bool = False) -> None:
        self.head = head
        self.rest = rest
        self.flag = flag


class NoInit:
    pass


class NotATemplate:
    pass


class Exploding:
    def __init__(self, value: str) -> None:
        raise RuntimeError(f"cannot build from {value}")


class Footed:
    def __init__(self, writer: TextIO, title: str = "t", *, footer: str) -> None:
        self.writer = writer
        self.title = title
        self.footer = footer
