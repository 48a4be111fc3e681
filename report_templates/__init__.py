"""
report_templates - compile text templates into Python template classes.
"""

from .api import Template
from .codegen import compile_template, parse_template
from .runtime import TemplateInstantiator

__version__ = "0.1.0"

__all__ = [
    "Template",
    "TemplateInstantiator",
    "compile_template",
    "parse_template",
    "__version__",
]
