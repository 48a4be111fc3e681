"""Utility functions for loading template sources and parent classes.

This module provides functions for reading template files and importing
classes named by ``module:Class`` specs with proper error handling.
"""

import importlib
from pathlib import Path
from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)


class TemplateLoadError(Exception):
    """Custom exception for template loading errors."""

    pass


def load_template_source(file_path: str | Path, encoding: str = "utf-8") -> str:
    """Load template text from a local file.

    Args:
        file_path: Path to the template file.
        encoding: Text encoding of the file.

    Returns:
        The template text, with line endings preserved.

    Raises:
        FileNotFoundError: If file doesn't exist.
        TemplateLoadError: If file cannot be read or decoded.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load template from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        with file_path.open("r", encoding=encoding, newline="") as f:
            text = f.read()
        logger.debug(f"Loaded {len(text)} characters from {file_path}")
        return text
    except UnicodeDecodeError as e:
        logger.error(f"Cannot decode {file_path} as {encoding}: {e}")
        raise TemplateLoadError(f"Cannot decode {file_path} as {encoding}: {e}") from e
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}", exc_info=True)
        raise TemplateLoadError(f"Error reading file {file_path}: {e}") from e


def import_object(spec: str) -> Any:
    """Import an object named by a ``module:Qualified.Name`` spec.

    Args:
        spec: Module path and attribute path separated by a colon.

    Returns:
        The named object.

    Raises:
        TemplateLoadError: If the ``module:Name`` path is malformed or cannot be imported.
    """
    module_name, sep, qualname = spec.partition(":")
    if not sep or not module_name or not qualname:
        raise TemplateLoadError(f"Expected 'module:Name', got: {spec}")

    try:
        target = importlib.import_module(module_name)
    except ImportError as e:
        logger.error(f"Cannot import module {module_name}: {e}")
        raise TemplateLoadError(f"Cannot import module {module_name}: {e}") from e

    for attribute in qualname.split("."):
        try:
            target = getattr(target, attribute)
        except AttributeError as e:
            raise TemplateLoadError(f"{module_name} has no attribute {qualname}") from e

    logger.debug(f"Imported {spec}")
    return target
