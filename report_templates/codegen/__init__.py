"""
Report template code generation.

Compiles template text into Python template class modules.
"""

from .core.generator import GenerationResult, TemplateCodeGenerator, generate_code
from .core.parser import TemplateParser, parse_template
from .processor import ProcessedTemplate, ProcessingError, TemplateProcessor
from .registry import ParentRegistry, RegistryError, get_registry


def compile_template(
    text: str, package_name: str, class_name: str, parent_class: type
) -> str:
    """
    Compile template text into the source of a template class module.

    Args:
        text: Template source text
        package_name: Package of the generated module (may be empty)
        class_name: Name of the generated class
        parent_class: Parent template class with a single constructor

    Returns:
        Generated Python source
    """
    parts = parse_template(text)
    return TemplateCodeGenerator().generate_template_class(
        package_name, class_name, parent_class, parts
    )


__all__ = [
    "TemplateParser",
    "TemplateCodeGenerator",
    "GenerationResult",
    "ParentRegistry",
    "RegistryError",
    "ProcessedTemplate",
    "ProcessingError",
    "TemplateProcessor",
    "compile_template",
    "generate_code",
    "get_registry",
    "parse_template",
]
