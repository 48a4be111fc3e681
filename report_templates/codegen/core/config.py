"""
Processor settings.

Settings come from three layers applied in order: the dataclass defaults, an
optional JSON file, and explicit overrides (CLI flags or keyword arguments).
Keys the dataclass does not know are kept in ``custom``.
"""

import copy
import json
import re
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...logging_config import get_logger
from .naming import is_package_name

logger = get_logger(__name__)

# "package.module:Class" or "package.module:Outer.Inner"
PARENT_SPEC_PATTERN = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*"
    r":[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$"
)


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or written."""

    pass


@dataclass
class ProcessorConfig:
    """Where templates are read from, how they are named, and where modules go."""

    # Generated code layout
    template_package: str = "reports.templates"
    template_suffix: str = ".pyt"
    output_dir: str = "build/generated/report-templates"

    # Template sources
    source_dirs: List[str] = field(default_factory=list)
    encoding: str = "utf-8"

    # Parent renderer types, keyed by report type directory
    parent_types: Dict[str, str] = field(default_factory=dict)
    default_parent: str = "report_templates.api:Template"

    add_header: bool = True

    custom: Dict[str, Any] = field(default_factory=dict)


DEFAULT_CONFIG: Dict[str, Any] = asdict(ProcessorConfig())


class ConfigManager:
    """Builds ProcessorConfig instances from defaults, files and overrides."""

    def __init__(self):
        self._defaults: Dict[str, Any] = dict(DEFAULT_CONFIG)

    def get_config(
        self,
        custom_config: Optional[Dict[str, Any]] = None,
        config_file: Optional[Union[str, Path]] = None,
    ) -> ProcessorConfig:
        """
        Build a processor configuration.

        Args:
            custom_config: Overrides; ``None`` values leave the setting alone
            config_file: Optional JSON settings file

        Returns:
            Defaults merged with the file and the overrides, in that order
        """
        base_config = copy.deepcopy(self._defaults)

        if config_file:
            base_config.update(self._read_json(config_file))
            logger.debug("Loaded configuration from %s", config_file)

        if custom_config:
            base_config.update(
                {key: value for key, value in custom_config.items() if value is not None}
            )

        return self._dict_to_config(base_config)

    def _read_json(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        path = Path(config_path)
        if path.suffix.lower() != ".json":
            raise ConfigError(f"Settings file must be JSON: {path}")
        if not path.is_file():
            raise ConfigError(f"Settings file not found: {path}")

        try:
            settings = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in settings file {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read settings file {path}: {e}") from e

        if not isinstance(settings, dict):
            raise ConfigError(f"Settings file {path} must hold a JSON object")
        return settings

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> ProcessorConfig:
        known = {f.name for f in fields(ProcessorConfig)}
        config_args = {k: v for k, v in config_dict.items() if k in known}
        extra = {k: v for k, v in config_dict.items() if k not in known}

        if extra:
            config_args["custom"] = {**(config_args.get("custom") or {}), **extra}

        source_dirs = config_args.get("source_dirs")
        if isinstance(source_dirs, str):
            config_args["source_dirs"] = [source_dirs]

        return ProcessorConfig(**config_args)

    def save_config(self, config: ProcessorConfig, output_path: Union[str, Path]):
        """Write settings as JSON, with ``custom`` keys flattened to the top level."""
        settings = asdict(config)
        settings.update(settings.pop("custom"))

        try:
            Path(output_path).write_text(
                json.dumps(settings, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as e:
            raise ConfigError(f"Cannot write settings file {output_path}: {e}") from e

    def validate_config(self, config: ProcessorConfig) -> List[str]:
        """
        Validate a processor configuration.

        Returns:
            List of validation warnings
        """
        warnings = []

        if config.template_package and not is_package_name(config.template_package):
            warnings.append(f"Invalid template_package: {config.template_package}")

        if not config.template_suffix.startswith("."):
            warnings.append(
                f"template_suffix should start with '.': {config.template_suffix}"
            )

        for report_type, spec in config.parent_types.items():
            if not PARENT_SPEC_PATTERN.match(spec):
                warnings.append(
                    f"Invalid parent type for '{report_type}': {spec} "
                    "(expected module:Class)"
                )

        if not PARENT_SPEC_PATTERN.match(config.default_parent):
            warnings.append(f"Invalid default_parent: {config.default_parent}")

        return warnings


_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager


def load_config(
    custom_config: Optional[Dict[str, Any]] = None,
    config_file: Optional[Union[str, Path]] = None,
) -> ProcessorConfig:
    """Build a configuration with the process-wide manager."""
    return get_config_manager().get_config(custom_config, config_file)
