"""
Template module loader.

Loads modules from a fixed set of classpath entries, delegating to the
ambient import system first. Modules loaded from the entries are cached by
the loader and never published in ``sys.modules``, so separate loaders keep
separate copies of the generated modules.
"""

import importlib
import importlib.util
import threading
from importlib.machinery import ModuleSpec
from types import ModuleType
from typing import Dict, Optional, Sequence, Tuple

from ..logging_config import get_logger
from .classpath import ClasspathEntry

logger = get_logger(__name__)


class ModuleExecutionError(ImportError):
    """A module was found on the classpath but failed while executing."""

    pass


def is_name_prefix(prefix: str, name: str) -> bool:
    """Check whether ``prefix`` is ``name`` or one of its parent packages."""
    return name == prefix or name.startswith(prefix + ".")


def _is_namespace(spec: ModuleSpec) -> bool:
    return spec.origin is None and spec.submodule_search_locations is not None


class TemplateLoader:
    """Parent-first module loader over an immutable list of classpath entries."""

    def __init__(self, entries: Sequence[ClasspathEntry]):
        self.entries: Tuple[ClasspathEntry, ...] = tuple(entries)
        self._modules: Dict[str, ModuleType] = {}
        self._lock = threading.RLock()
        logger.info(
            "Created template loader with %d classpath entr%s",
            len(self.entries),
            "y" if len(self.entries) == 1 else "ies",
        )

    def load_module(self, name: str) -> ModuleType:
        """
        Load a module by its fully qualified name.

        The ambient import system is consulted first; only when it cannot find
        ``name`` (or one of its parent packages) are the entries searched.

        Raises:
            ModuleNotFoundError: If neither source provides the module
            ModuleExecutionError: If a classpath module raised while executing
        """
        try:
            return importlib.import_module(name)
        except ModuleNotFoundError as e:
            if e.name is None or not is_name_prefix(e.name, name):
                raise

        module = self.find_module(name)
        if module is None:
            raise ModuleNotFoundError(f"No module named {name!r}", name=name)
        return module

    def find_module(self, name: str) -> Optional[ModuleType]:
        """Return the module for ``name`` from the classpath entries, or None."""
        with self._lock:
            if name in self._modules:
                return self._modules[name]

            search_path = None
            parent_name, _, _ = name.rpartition(".")
            if parent_name:
                parent = self.find_module(parent_name)
                if parent is None or not hasattr(parent, "__path__"):
                    return None
                search_path = list(parent.__path__)

            spec = self._find_spec(name, search_path)
            if spec is None:
                return None
            return self._execute(spec)

    def _find_spec(
        self, name: str, search_path: Optional[Sequence[str]]
    ) -> Optional[ModuleSpec]:
        namespace_locations = []
        for entry in self.entries:
            spec = entry.find_spec(name, search_path)
            if spec is None:
                continue
            if _is_namespace(spec):
                namespace_locations.extend(spec.submodule_search_locations)
                continue
            logger.debug("Found %s in %s", name, entry)
            return spec

        if namespace_locations:
            spec = ModuleSpec(name, None, is_package=True)
            spec.submodule_search_locations = namespace_locations
            return spec
        return None

    def _execute(self, spec: ModuleSpec) -> ModuleType:
        module = importlib.util.module_from_spec(spec)
        if spec.submodule_search_locations is not None:
            # Detach from sys.path recalculation
            module.__path__ = list(spec.submodule_search_locations)

        self._modules[spec.name] = module
        try:
            if spec.loader is not None:
                spec.loader.exec_module(module)
        except Exception as e:
            del self._modules[spec.name]
            raise ModuleExecutionError(
                f"Failed to execute module {spec.name}: {e}", name=spec.name
            ) from e
        return module

    @property
    def loaded_modules(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._modules)
