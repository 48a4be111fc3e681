"""
Parent registry for managing the renderer types templates extend.

Maps report types (the directory a template lives in) to the parent
template class its generated class is built against.
"""

from typing import Any, Dict, List, Optional, Type

from ..api import Template
from ..logging_config import get_logger
from ..reflect import ReflectionError
from ..utils import TemplateLoadError, import_object
from .core.signature import get_constructor_signature

logger = get_logger(__name__)

DEFAULT_REPORT_TYPE = "default"


class RegistryError(Exception):
    """Exception raised for registry-related errors."""

    pass


class ParentRegistry:
    """Registry for managing parent template classes."""

    def __init__(self):
        """Initialize empty registry."""
        self._parents: Dict[str, Type[Template]] = {}
        self._aliases: Dict[str, str] = {}

    def register(
        self,
        report_type: str,
        parent_class: Type[Template],
        aliases: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Register a parent class for a report type.

        Args:
            report_type: Report type name (e.g., 'coverage', 'tests')
            parent_class: Class extending Template
            aliases: Alternative names for this report type
            replace: If True, replace existing registration. If False, skip if exists.

        Raises:
            RegistryError: If the parent class is invalid or conflicts exist
        """
        if not isinstance(parent_class, type) or not issubclass(parent_class, Template):
            raise RegistryError(
                f"Parent class must inherit from Template: {parent_class!r}"
            )

        type_key = report_type.lower()

        if type_key in self._parents and not replace:
            logger.debug("Report type '%s' already registered, skipping", type_key)
            return

        self._parents[type_key] = parent_class
        logger.debug(
            "Registered %s.%s for report type '%s'",
            parent_class.__module__,
            parent_class.__qualname__,
            type_key,
        )

        if aliases:
            for alias in aliases:
                alias_key = alias.lower()

                if alias_key == type_key:
                    continue

                if not replace:
                    if alias_key in self._parents:
                        raise RegistryError(
                            f"Alias '{alias}' conflicts with existing report type"
                        )
                    if (
                        alias_key in self._aliases
                        and self._aliases[alias_key] != type_key
                    ):
                        raise RegistryError(
                            f"Alias '{alias}' already points to '{self._aliases[alias_key]}'"
                        )

                self._aliases[alias_key] = type_key

    def register_spec(
        self,
        report_type: str,
        spec: str,
        aliases: Optional[List[str]] = None,
        replace: bool = False,
    ):
        """
        Import a ``module:Class`` spec and register it.

        Raises:
            RegistryError: If the ``module:Class`` path cannot be imported or is not a Template
        """
        try:
            parent_class = import_object(spec)
        except TemplateLoadError as e:
            raise RegistryError(f"Cannot load parent for '{report_type}': {e}") from e
        self.register(report_type, parent_class, aliases, replace)

    def unregister(self, report_type: str):
        """
        Unregister a report type and its aliases.

        Args:
            report_type: Report type to unregister
        """
        type_key = report_type.lower()
        self._parents.pop(type_key, None)

        aliases_to_remove = [
            alias for alias, target in self._aliases.items() if target == type_key
        ]
        for alias in aliases_to_remove:
            del self._aliases[alias]

    def get_parent_class(self, report_type: str) -> Type[Template]:
        """
        Get the parent class for a report type.

        Args:
            report_type: Report type name or alias

        Returns:
            Parent template class

        Raises:
            RegistryError: If the report type is not registered
        """
        type_key = report_type.lower()

        if type_key in self._parents:
            return self._parents[type_key]

        if type_key in self._aliases:
            return self._parents[self._aliases[type_key]]

        available = self.list_report_types()
        raise RegistryError(
            f"No parent registered for report type: {report_type}. "
            f"Available: {', '.join(available)}"
        )

    def list_report_types(self) -> List[str]:
        """Get list of registered report types."""
        return sorted(self._parents.keys())

    def get_aliases(self, report_type: str) -> List[str]:
        type_key = report_type.lower()
        return sorted(
            alias for alias, target in self._aliases.items() if target == type_key
        )

    def is_supported(self, report_type: str) -> bool:
        """
        Check if a report type has a parent.

        Args:
            report_type: Report type name or alias

        Returns:
            True if registered
        """
        type_key = report_type.lower()
        return type_key in self._parents or type_key in self._aliases

    def get_parent_info(self, report_type: str) -> Dict[str, Any]:
        """
        Get information about a registered report type.

        Args:
            report_type: Report type name or alias

        Returns:
            Dict with report type information

        Raises:
            RegistryError: If report type not found
        """
        parent_class = self.get_parent_class(report_type)

        type_key = report_type.lower()
        if type_key in self._aliases:
            type_key = self._aliases[type_key]

        try:
            declaration = get_constructor_signature(parent_class).declaration
        except ReflectionError as e:
            declaration = None
            logger.warning("No usable constructor on %s: %s", parent_class.__qualname__, e)

        return {
            "name": type_key,
            "class": parent_class.__qualname__,
            "module": parent_class.__module__,
            "aliases": self.get_aliases(type_key),
            "constructor": declaration,
        }


_global_registry: Optional[ParentRegistry] = None


def get_registry() -> ParentRegistry:
    """Get the global parent registry, initializing if needed."""
    global _global_registry
    if _global_registry is None:
        _global_registry = ParentRegistry()
        _global_registry.register(DEFAULT_REPORT_TYPE, Template)
    return _global_registry
