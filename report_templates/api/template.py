"""
Renderer base type for generated report templates.

Every generated template class extends :class:`Template` (directly or through
a richer parent) and is parameterised by itself, so the fluent output helpers
return the concrete template type.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TextIO, TypeVar

T = TypeVar("T", bound="Template")


class Template(ABC, Generic[T]):
    """Abstract base for templates writing text to a ``TextIO`` writer."""

    def __init__(self, writer: TextIO) -> None:
        self.writer = writer
        self.written = 0

    def get_writer(self) -> TextIO:
        return self.writer

    @abstractmethod
    def self(self) -> T:
        """Return this instance typed as the concrete template class."""

    @abstractmethod
    def render(self) -> None:
        """
        Render the template into the owning writer.

        Raises:
            Exception: Anything raised by template code propagates unchanged.
        """

    def out(self, *values: Any) -> T:
        """Write the string form of each value, in order."""
        for value in values:
            self._write(str(value))
        return self.self()

    def outln(self, *values: Any) -> T:
        """Write the values followed by a newline."""
        for value in values:
            self._write(str(value))
        self._write("\n")
        return self.self()

    def outf(self, fmt: str, *args: Any, **kwargs: Any) -> T:
        """Write ``fmt`` formatted with ``str.format``."""
        self._write(fmt.format(*args, **kwargs))
        return self.self()

    def _write(self, text: str) -> None:
        self.writer.write(text)
        self.written += len(text)
