"""
Template class resolution and instantiation.

:class:`TemplateInstantiator` resolves logical template names within a
configured package to template classes loaded from a classpath, and creates
instances of them with whatever constructor matches the given arguments.

The underlying :class:`TemplateLoader` is built lazily, exactly once, from
the classpath entries present at the first resolution. Entries added after
that are recorded but do not affect the loader.
"""

import os
import threading
from typing import Any, Dict, Iterable, Optional

from ..api import Template
from ..logging_config import get_logger
from ..reflect import ReflectionError, new_instance, qualified_name
from .classpath import ClasspathEntry, split_classpath
from .loader import TemplateLoader, is_name_prefix

logger = get_logger(__name__)


class InstantiatorError(Exception):
    """Base exception for template resolution errors."""

    pass


class PackageNotConfiguredError(InstantiatorError):
    """Resolution was requested before a package name was set."""

    pass


class ClassNotFoundError(InstantiatorError, ImportError):
    """No class exists under the requested name."""

    def __init__(self, class_name: str):
        self.class_name = class_name
        super().__init__(f"Template class not found: {class_name}", name=class_name)


class NotARendererError(InstantiatorError, TypeError):
    """The resolved class does not extend :class:`Template`."""

    def __init__(self, cls: type):
        self.cls = cls
        super().__init__(
            f"Class {qualified_name(cls)} is not assignable to {qualified_name(Template)}"
        )


class TemplateInstantiator:
    """Resolves and instantiates template classes from a classpath."""

    def __init__(self, package_name: Optional[str] = None):
        self._package_name = package_name
        self._classpath: Dict[str, None] = {}
        self._loader: Optional[TemplateLoader] = None
        self._lock = threading.Lock()

    @property
    def package_name(self) -> Optional[str]:
        """Package template names are resolved in."""
        return self._package_name

    @package_name.setter
    def package_name(self, package_name: Optional[str]) -> None:
        self._package_name = package_name

    def add_classpath_entries(self, *paths: str) -> None:
        """
        Add classpath entries.

        Each path may hold several entries separated by ``os.pathsep``.
        Duplicates are ignored and insertion order is kept.
        """
        with self._lock:
            added = [
                path for path in split_classpath(paths) if path not in self._classpath
            ]
            for path in added:
                self._classpath[path] = None
            loader_created = self._loader is not None

        if added and loader_created:
            logger.warning(
                "Classpath entries added after the template loader was created "
                "are ignored: %s",
                os.pathsep.join(added),
            )

    def get_classpath(self) -> str:
        """Return the classpath entries joined with ``os.pathsep``."""
        return os.pathsep.join(self.classpath_entries)

    @property
    def classpath_entries(self) -> Iterable[str]:
        with self._lock:
            return tuple(self._classpath)

    def get_loader(self) -> TemplateLoader:
        """Return the loader, creating it on first use."""
        loader = self._loader
        if loader is None:
            with self._lock:
                loader = self._loader
                if loader is None:
                    entries = [ClasspathEntry.from_path(path) for path in self._classpath]
                    loader = self._loader = TemplateLoader(entries)
        return loader

    def resolve(self, template_name: str) -> type:
        """
        Resolve a template name to its class.

        The class is looked up as ``<package>.<template_name>``, first as a
        module holding a same-named class and then as an attribute of the
        enclosing module (or class, for nested names).

        Raises:
            PackageNotConfiguredError: If no package name is set
            ClassNotFoundError: If no such class exists
            NotARendererError: If the class does not extend Template
        """
        if self._package_name is None:
            raise PackageNotConfiguredError(
                "Template package name must be set before resolving templates"
            )

        canonical_name = (
            f"{self._package_name}.{template_name}" if self._package_name else template_name
        )

        cls = self._load_class(canonical_name)
        if cls is None:
            logger.error("Template class not found: %s", canonical_name)
            raise ClassNotFoundError(canonical_name)

        if not issubclass(cls, Template):
            logger.error("Class %s is not a template", canonical_name)
            raise NotARendererError(cls)

        return cls

    def instantiate(self, cls: type, *arguments: Any) -> Any:
        """
        Create an instance of a resolved class.

        Raises:
            NoMatchingConstructorError: If no constructor accepts the arguments
            ConstructionFailedError: If the chosen constructor raised
        """
        try:
            return new_instance(cls, *arguments)
        except ReflectionError as e:
            logger.error("Cannot instantiate %s: %s", qualified_name(cls), e)
            raise

    def create_template(self, template_name: str, *arguments: Any) -> Template:
        """Resolve ``template_name`` and instantiate it with ``arguments``."""
        return self.instantiate(self.resolve(template_name), *arguments)

    def _load_class(self, canonical_name: str) -> Optional[type]:
        loader = self.get_loader()
        parts = canonical_name.split(".")

        for split in range(len(parts), 0, -1):
            module_name = ".".join(parts[:split])
            attributes = parts[split:] or parts[-1:]

            try:
                target = loader.load_module(module_name)
            except ModuleNotFoundError as e:
                if e.name is not None and not is_name_prefix(e.name, module_name):
                    raise
                continue

            for attribute in attributes:
                target = getattr(target, attribute, None)
                if target is None:
                    break

            if isinstance(target, type):
                return target

        return None
