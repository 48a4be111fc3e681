"""
Command-line interface for report template compilation.

Provides ``generate``, ``compile``, ``parse`` and ``signature`` commands.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from . import __version__
from .codegen.core.config import ConfigError, ConfigManager, load_config
from .codegen.core.generator import TemplateCodeGenerator, generate_code
from .codegen.core.naming import template_class_name
from .codegen.core.parser import PartType, parse_template
from .codegen.core.signature import get_constructor_signature
from .codegen.processor import ProcessingError, TemplateProcessor
from .logging_config import configure_logging, get_logger
from .reflect import ReflectionError
from .utils import TemplateLoadError, import_object, load_template_source

logger = get_logger(__name__)

console = Console()


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="report-templates",
        description="Compile report templates into Python template classes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  report-templates generate src/templates --output build/generated
  report-templates generate src/templates --parent coverage=myreports.api:CoverageTemplate
  report-templates compile summary.pyt --parent report_templates.api:Template
  report-templates parse src/templates/coverage/summary.pyt
  report-templates signature report_templates.api:Template
        """.strip(),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show progress logging")
    parser.add_argument("--debug", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser(
        "generate", help="Generate template modules from template source directories"
    )
    generate.add_argument("sources", nargs="*", metavar="SRC", help="Template source directories")
    generate.add_argument("--output", "-o", metavar="DIR", help="Output directory")
    generate.add_argument("--package", metavar="PKG", help="Base package of generated modules")
    generate.add_argument("--suffix", metavar="EXT", help="Template file suffix")
    generate.add_argument(
        "--parent",
        action="append",
        default=[],
        metavar="TYPE=module:Class",
        help="Parent class for a report type (repeatable)",
    )
    generate.add_argument(
        "--default-parent", metavar="module:Class", help="Parent class for other report types"
    )
    generate.add_argument("--config", metavar="FILE", help="JSON configuration file")
    generate.add_argument("--no-header", action="store_true", help="Omit the generated-file header")
    generate.set_defaults(func=_handle_generate)

    compile_ = subparsers.add_parser("compile", help="Print the module generated for one template")
    compile_.add_argument("file", help="Template file")
    compile_.add_argument(
        "--parent",
        default="report_templates.api:Template",
        metavar="module:Class",
        help="Parent template class (default: report_templates.api:Template)",
    )
    compile_.add_argument("--package", default="", metavar="PKG", help="Package of the module")
    compile_.add_argument("--class-name", metavar="NAME", help="Generated class name")
    compile_.add_argument("--output", "-o", metavar="FILE", help="Write to FILE instead of stdout")
    compile_.set_defaults(func=_handle_compile)

    parse = subparsers.add_parser("parse", help="Show the parts of a template file")
    parse.add_argument("file", help="Template file")
    parse.set_defaults(func=_handle_parse)

    signature = subparsers.add_parser(
        "signature", help="Show the constructor signature of a parent class"
    )
    signature.add_argument("parent", metavar="module:Class", help="Parent template class")
    signature.set_defaults(func=_handle_signature)

    return parser


def _parse_parent_options(values: List[str]) -> Dict[str, str]:
    parents = {}
    for value in values:
        report_type, sep, spec = value.partition("=")
        if not sep or not report_type or not spec:
            raise CLIError(f"Expected TYPE=module:Class, got: {value}")
        parents[report_type] = spec
    return parents


def _build_config(args: argparse.Namespace):
    overrides: Dict[str, Any] = {
        "output_dir": args.output,
        "template_package": args.package,
        "template_suffix": args.suffix,
        "default_parent": args.default_parent,
    }
    if args.sources:
        overrides["source_dirs"] = args.sources
    if args.no_header:
        overrides["add_header"] = False

    config = load_config(overrides, config_file=args.config)
    config.parent_types.update(_parse_parent_options(args.parent))

    for warning in ConfigManager().validate_config(config):
        console.print(f"[yellow]⚠️ {escape(warning)}[/yellow]")
    return config


def _handle_generate(args: argparse.Namespace) -> int:
    config = _build_config(args)
    if not config.source_dirs:
        raise CLIError("No template source directories given")

    results = TemplateProcessor(config).process()

    if not results:
        console.print("[yellow]No templates found.[/yellow]")
        return 0

    table = Table(title="📋 Generated Templates", box=box.ROUNDED, title_style="bold cyan")
    table.add_column("Template", style="dim")
    table.add_column("Class", style="bold green")
    table.add_column("Parent", style="cyan")
    table.add_column("Parts", justify="right")
    table.add_column("Warnings", style="yellow", justify="right")

    for result in results:
        table.add_row(
            str(result.source),
            result.qualified_name,
            result.parent,
            str(result.part_count),
            str(len(result.warnings)) if result.warnings else "",
        )

    console.print(table)
    console.print(
        f"[green]✓[/green] Generated {len(results)} module(s) in {Path(config.output_dir).absolute()}"
    )
    return 0


def _handle_compile(args: argparse.Namespace) -> int:
    template_file = Path(args.file)
    parent_class = import_object(args.parent)
    class_name = args.class_name or template_class_name(template_file.name)

    parts = parse_template(load_template_source(template_file))
    result = generate_code(TemplateCodeGenerator(), args.package, class_name, parent_class, parts)
    if not result.success:
        raise CLIError(result.error_message)

    for warning in result.warnings:
        console.print(f"[yellow]⚠️ {escape(warning)}[/yellow]", highlight=False)

    if args.output:
        Path(args.output).write_text(result.code, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {args.output}")
    else:
        console.print(Syntax(result.code, "python", theme="monokai", line_numbers=False))
    return 0


def _handle_parse(args: argparse.Namespace) -> int:
    parts = parse_template(load_template_source(args.file))

    table = Table(title=f"🧩 {args.file}", box=box.SIMPLE, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="bold")
    table.add_column("Content")

    styles = {
        PartType.TEXT: "white",
        PartType.EXPRESSION: "green",
        PartType.CODE: "magenta",
        PartType.IMPORT: "blue",
    }
    for index, part in enumerate(parts, start=1):
        table.add_row(
            str(index),
            f"[{styles[part.type]}]{part.type.name}[/{styles[part.type]}]",
            repr(part.content),
        )

    console.print(table)
    console.print(f"📊 {len(parts)} part(s)")
    return 0


def _handle_signature(args: argparse.Namespace) -> int:
    parent_class = import_object(args.parent)
    signature = get_constructor_signature(parent_class)

    info_text = f"[bold]Declaration:[/bold] {escape(signature.declaration)}"
    info_text += "\n[bold]Parameters:[/bold] " + (
        ", ".join(signature.parameter_names) or "[dim]none[/dim]"
    )
    info_text += "\n[bold]Imports:[/bold] " + (
        ", ".join(signature.imports) or "[dim]none[/dim]"
    )

    console.print(Panel(info_text, title=f"🔧 {args.parent}", border_style="green"), highlight=False)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.debug:
        configure_logging(debug=True)
    elif args.verbose:
        configure_logging(level=20)
    else:
        configure_logging()

    try:
        return args.func(args)
    except (
        CLIError,
        ConfigError,
        ProcessingError,
        ReflectionError,
        TemplateLoadError,
        FileNotFoundError,
        ValueError,
    ) as e:
        logger.debug("Command failed", exc_info=True)
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}", highlight=False)
        return 1


if __name__ == "__main__":
    sys.exit(main())
