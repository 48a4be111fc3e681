"""
Template file processor.

Walks template source directories and writes one generated module per
template file. For a file ``<dir>/<name><suffix>`` the report type is the
directory name, the module lives in ``<template_package>.<report type>``,
the class is named after the file and the parent class comes from the
parent registry.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..logging_config import get_logger
from ..utils import TemplateLoadError, load_template_source
from .core.config import ProcessorConfig, load_config
from .core.generator import TemplateCodeGenerator, generate_code
from .core.naming import package_segment, template_class_name
from .core.parser import TemplateParser
from .registry import DEFAULT_REPORT_TYPE, ParentRegistry, RegistryError

logger = get_logger(__name__)


class ProcessingError(Exception):
    """Exception raised when a template file cannot be processed."""

    pass


@dataclass
class ProcessedTemplate:
    """Outcome of processing one template file."""

    source: Path
    output_path: Path
    package: str
    class_name: str
    parent: str
    part_count: int
    warnings: List[str] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.class_name}" if self.package else self.class_name


class TemplateProcessor:
    """Generates template class modules from template source files."""

    def __init__(
        self,
        config: Optional[ProcessorConfig] = None,
        registry: Optional[ParentRegistry] = None,
        generator: Optional[TemplateCodeGenerator] = None,
    ):
        self.config = config or load_config()
        self.registry = registry or self._build_registry()
        self.generator = generator or TemplateCodeGenerator(
            {"add_header": self.config.add_header}
        )
        self.parser = TemplateParser()

    def _build_registry(self) -> ParentRegistry:
        registry = ParentRegistry()
        try:
            registry.register_spec(DEFAULT_REPORT_TYPE, self.config.default_parent)
            for report_type, spec in self.config.parent_types.items():
                registry.register_spec(report_type, spec, replace=True)
        except RegistryError as e:
            raise ProcessingError(f"Invalid parent configuration: {e}") from e
        return registry

    def discover(self, source_dirs: Optional[Sequence[Union[str, Path]]] = None) -> List[Path]:
        """
        Find template files under the source directories.

        Returns:
            Template paths, sorted within each directory
        """
        directories = source_dirs if source_dirs is not None else self.config.source_dirs
        suffix = self.config.template_suffix

        found: List[Path] = []
        for directory in directories:
            directory = Path(directory)
            if not directory.is_dir():
                logger.warning("Template source directory does not exist: %s", directory)
                continue
            found.extend(
                path for path in sorted(directory.rglob(f"*{suffix}")) if path.is_file()
            )
        return found

    def process(
        self, source_dirs: Optional[Sequence[Union[str, Path]]] = None
    ) -> List[ProcessedTemplate]:
        """
        Process every template file found under the source directories.

        Raises:
            ProcessingError: On the first template that cannot be processed
        """
        output_dir = Path(self.config.output_dir).absolute()
        logger.info("Generating template sources into %s", output_dir)

        results = [self.process_file(path) for path in self.discover(source_dirs)]

        logger.info("Generated %d template module(s)", len(results))
        return results

    def process_file(self, template_file: Union[str, Path]) -> ProcessedTemplate:
        """
        Generate and write the module for a single template file.

        Raises:
            ProcessingError: If the file cannot be read, named or generated
        """
        template_file = Path(template_file)
        logger.info("Processing template: %s", template_file)

        package_name = self.derive_package_name(template_file)
        class_name = self.derive_class_name(template_file)
        parent_class = self.get_parent_class(template_file)

        try:
            text = load_template_source(template_file, self.config.encoding)
        except (FileNotFoundError, TemplateLoadError) as e:
            raise ProcessingError(f"Cannot read template {template_file}: {e}") from e

        parts = self.parser.parse(text)
        result = generate_code(self.generator, package_name, class_name, parent_class, parts)
        if not result.success:
            raise ProcessingError(
                f"Cannot generate {template_file}: {result.error_message}"
            ) from result.exception

        output_path = self.output_path(package_name, class_name)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(result.code, encoding="utf-8")
        except OSError as e:
            raise ProcessingError(f"Cannot write {output_path}: {e}") from e

        for warning in result.warnings:
            logger.warning("%s: %s", template_file, warning)
        logger.info("Generated template source file %s", output_path)

        return ProcessedTemplate(
            source=template_file,
            output_path=output_path,
            package=package_name,
            class_name=class_name,
            parent=f"{parent_class.__module__}.{parent_class.__qualname__}",
            part_count=len(parts),
            warnings=result.warnings,
        )

    def report_type(self, template_file: Path) -> str:
        return template_file.absolute().parent.name

    def derive_package_name(self, template_file: Path) -> str:
        """Configured template package plus the report type directory."""
        try:
            segment = package_segment(self.report_type(template_file))
        except ValueError as e:
            raise ProcessingError(f"Unsupported template file \"{template_file}\": {e}") from e
        base = self.config.template_package
        return f"{base}.{segment}" if base else segment

    def derive_class_name(self, template_file: Path) -> str:
        """File name up to its first dot, title-cased, plus ``Template``."""
        try:
            return template_class_name(template_file.name)
        except ValueError as e:
            raise ProcessingError(f"Unsupported template file \"{template_file}\": {e}") from e

    def get_parent_class(self, template_file: Path) -> type:
        report_type = self.report_type(template_file)
        if self.registry.is_supported(report_type):
            return self.registry.get_parent_class(report_type)
        try:
            return self.registry.get_parent_class(DEFAULT_REPORT_TYPE)
        except RegistryError as e:
            raise ProcessingError(
                f"No parent class for report type '{report_type}' of {template_file}"
            ) from e

    def output_path(self, package_name: str, class_name: str) -> Path:
        directory = Path(self.config.output_dir).joinpath(*package_name.split("."))
        return directory / f"{class_name}.py"


def process_templates(
    config: Optional[ProcessorConfig] = None,
    source_dirs: Optional[Sequence[Union[str, Path]]] = None,
) -> List[ProcessedTemplate]:
    """Process all templates with a fresh processor."""
    return TemplateProcessor(config).process(source_dirs)
