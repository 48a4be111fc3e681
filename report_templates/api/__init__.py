"""
Public API for report templates.

Generated template classes subclass :class:`Template`.
"""

from .template import Template

__all__ = ["Template"]
