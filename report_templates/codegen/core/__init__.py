"""
Core template compilation components.

Parsing, constructor signature extraction and class source generation.
"""

from .config import ConfigError, ConfigManager, ProcessorConfig, load_config
from .generator import (
    GenerationResult,
    GeneratorError,
    TemplateCodeGenerator,
    escape_python_string,
    generate_code,
)
from .naming import NameSanitizer, NamingCase, template_class_name
from .parser import PartType, TemplateParser, TemplatePart, parse_template
from .signature import (
    MissingParameterNamesError,
    Signature,
    SignatureArityError,
    SignatureError,
    get_constructor_signature,
)
from .templates import TemplateEngine, TemplateError, create_template_engine

__all__ = [
    # Parser
    "PartType",
    "TemplatePart",
    "TemplateParser",
    "parse_template",
    # Signatures
    "Signature",
    "SignatureError",
    "SignatureArityError",
    "MissingParameterNamesError",
    "get_constructor_signature",
    # Generator
    "TemplateCodeGenerator",
    "GeneratorError",
    "GenerationResult",
    "generate_code",
    "escape_python_string",
    # Naming utilities
    "NameSanitizer",
    "NamingCase",
    "template_class_name",
    # Configuration system
    "ProcessorConfig",
    "ConfigManager",
    "ConfigError",
    "load_config",
    # Template system
    "TemplateEngine",
    "TemplateError",
    "create_template_engine",
]
