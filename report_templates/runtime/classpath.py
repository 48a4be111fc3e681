"""
Classpath entries.

A classpath entry is a location generated template modules can be loaded
from: a directory tree, an archive read through ``zipimport``, or a single
loose module file.
"""

import importlib.util
import os
import sys
from dataclasses import dataclass
from enum import Enum
from importlib.machinery import ModuleSpec
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from ..logging_config import get_logger

logger = get_logger(__name__)

ARCHIVE_SUFFIXES = (".zip", ".whl", ".egg", ".pyz", ".jar")


class EntryKind(Enum):
    """How a classpath entry is searched."""

    DIRECTORY = "directory"
    ARCHIVE = "archive"
    FILE = "file"


def _finder_for(location: str) -> Optional[Any]:
    """Return the path entry finder ``sys.path_hooks`` provides for a location."""
    for hook in sys.path_hooks:
        try:
            return hook(location)
        except ImportError:
            continue
    return None


@dataclass(frozen=True)
class ClasspathEntry:
    """A normalised classpath location."""

    path: str
    kind: EntryKind

    @classmethod
    def from_path(cls, path: str) -> "ClasspathEntry":
        """Classify a path string into a directory, archive or file entry."""
        file = Path(path)
        if file.is_dir():
            return cls(str(file.absolute()) + os.sep, EntryKind.DIRECTORY)
        if file.suffix.lower() in ARCHIVE_SUFFIXES:
            return cls(str(file.absolute()), EntryKind.ARCHIVE)
        return cls(str(file.absolute()), EntryKind.FILE)

    @property
    def locator(self) -> str:
        """Location string handed to the import machinery."""
        return self.path

    def find_spec(
        self, fullname: str, search_path: Optional[Sequence[str]] = None
    ) -> Optional[ModuleSpec]:
        """
        Find a module spec for ``fullname`` within this entry.

        Submodules are located through ``search_path`` (the parent package's
        ``__path__``) restricted to locations inside this entry. Namespace
        portions found in several locations are merged into one spec.
        """
        if self.kind == EntryKind.FILE:
            return self._find_file_spec(fullname)

        if search_path is None:
            locations = [self.path]
        else:
            locations = [location for location in search_path if self._contains(location)]

        portions: List[str] = []
        for location in locations:
            finder = _finder_for(location)
            if finder is None:
                logger.debug("No finder for classpath location %s", location)
                continue
            spec = finder.find_spec(fullname)
            if spec is None:
                continue
            if spec.loader is None and spec.submodule_search_locations is not None:
                portions.extend(spec.submodule_search_locations)
                continue
            return spec

        if portions:
            spec = ModuleSpec(fullname, None, is_package=True)
            spec.submodule_search_locations = portions
            return spec
        return None

    def _find_file_spec(self, fullname: str) -> Optional[ModuleSpec]:
        file = Path(self.path)
        # A loose file is only addressable as a top-level module
        if "." in fullname or file.suffix != ".py" or file.stem != fullname:
            return None
        if not file.is_file():
            return None
        return importlib.util.spec_from_file_location(fullname, str(file))

    def _contains(self, location: str) -> bool:
        base = self.path.rstrip("/\\" + os.sep)
        location = str(location)
        return location == base or location.startswith(base + os.sep) or (
            self.kind == EntryKind.ARCHIVE and location.startswith(base + "/")
        )

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.path}"


def split_classpath(paths: Iterable[str]) -> List[str]:
    """Split each path on ``os.pathsep``, dropping empty segments."""
    entries = []
    for path in paths:
        entries.extend(segment for segment in str(path).split(os.pathsep) if segment)
    return entries
