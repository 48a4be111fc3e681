"""
Runtime resolution and instantiation of generated template classes.
"""

from .classpath import ClasspathEntry, EntryKind
from .instantiator import (
    ClassNotFoundError,
    InstantiatorError,
    NotARendererError,
    PackageNotConfiguredError,
    TemplateInstantiator,
)
from .loader import ModuleExecutionError, TemplateLoader

__all__ = [
    "ClasspathEntry",
    "EntryKind",
    "TemplateLoader",
    "ModuleExecutionError",
    "TemplateInstantiator",
    "InstantiatorError",
    "PackageNotConfiguredError",
    "ClassNotFoundError",
    "NotARendererError",
]
