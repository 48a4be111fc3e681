"""
Jinja2 layouts for generated template modules.

The generator only assembles the ``render()`` body; everything around it
(header comment, imports, class statement, forwarding constructor) comes from
the ``template_class.py.j2`` layout below. ``render_body`` is a one-line
placeholder; the generator replaces that line with the body, indented to the
placeholder's column. A layout directory may shadow the built-in layout by
providing a file of the same name.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError as JinjaTemplateError,
)

from ...logging_config import get_logger

logger = get_logger(__name__)

TEMPLATE_CLASS_TEMPLATE_NAME = "template_class.py.j2"

TEMPLATE_CLASS_TEMPLATE = '''\
{% if header %}
{{ header | comment }}

{% endif %}
"""{% if package_name %}{{ package_name }}.{% endif %}{{ class_name }}"""

from {{ parent_module }} import {{ parent_import_name }}
{% for name in template_imports %}
import {{ name }}
{% endfor %}
{% for statement in signature_imports %}
{{ statement }}
{% endfor %}

__all__ = ["{{ class_name }}"]


class {{ class_name }}({{ parent_name }}{% if parent_generic %}["{{ class_name }}"]{% endif %}):
    {{ declaration }}:
        super().__init__({{ call_arguments | join(", ") }})

    def self(self) -> "{{ class_name }}":
        return self

    def render(self) -> None:
        {{ render_body }}
'''

BUILTIN_LAYOUTS = {TEMPLATE_CLASS_TEMPLATE_NAME: TEMPLATE_CLASS_TEMPLATE}


class TemplateError(Exception):
    """Raised when a module layout cannot be found or rendered."""

    pass


def comment_lines(value: str, marker: str = "#") -> str:
    """Prefix every line with a comment marker."""
    return "\n".join(
        f"{marker} {line}" if line.strip() else marker for line in str(value).split("\n")
    )


class TemplateEngine:
    """Renders module layouts, preferring files in ``layout_dir`` over built-ins."""

    def __init__(self, layout_dir: Optional[Path] = None):
        self.layout_dir = layout_dir

        loaders = [DictLoader(BUILTIN_LAYOUTS)]
        if layout_dir is not None:
            if layout_dir.is_dir():
                loaders.insert(0, FileSystemLoader(str(layout_dir)))
            else:
                logger.warning(f"Layout directory {layout_dir} does not exist, using built-ins")

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["comment"] = comment_lines

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        """
        Render a named layout.

        Args:
            template_name: Layout file name
            context: Layout variables; missing ones are an error

        Returns:
            Rendered module source
        """
        try:
            return self._env.get_template(template_name).render(**context)
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render layout {template_name}: {e}") from e

    def has_template(self, name: str) -> bool:
        return name in self._env.list_templates()


_default_engine = None


def create_template_engine(layout_dir: Optional[Path] = None) -> TemplateEngine:
    return TemplateEngine(layout_dir)


def get_default_template_engine() -> TemplateEngine:
    """Shared engine holding only the built-in layouts."""
    global _default_engine
    if _default_engine is None:
        _default_engine = create_template_engine()
        logger.debug("Created default layout engine")
    return _default_engine
