"""
Constructor signature extraction.

Renders the single public constructor of a parent template class as a
Python ``def __init__(...)`` declaration, together with the imports the
declaration needs and the argument list used to forward to ``super()``.
"""

import enum
import inspect
import typing
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...logging_config import get_logger
from ...reflect import (
    Constructor,
    ConstructorParameter,
    MissingParameterNamesError,
    ReflectionError,
    get_constructors,
    qualified_name,
)

logger = get_logger(__name__)

# Modules whose names are always available without an import
DEFAULT_NAMESPACES = frozenset({"builtins"})

_UNION_TYPES = (typing.Union, type(int | str))


class SignatureError(ReflectionError):
    """Raised when a constructor signature cannot be rendered."""

    pass


class SignatureArityError(SignatureError):
    """The parent class does not expose exactly one public constructor."""

    pass


@dataclass(frozen=True)
class Signature:
    """Printable constructor declaration plus the metadata needed to forward it."""

    declaration: str
    imports: Tuple[str, ...]
    parameter_names: Tuple[str, ...]
    call_arguments: Tuple[str, ...]

    @classmethod
    def of(cls, constructor: Constructor) -> "Signature":
        """Create a signature for a described constructor."""
        return _SignatureBuilder().build(constructor)


class _SignatureBuilder:
    """Accumulates imports while rendering a single declaration."""

    def __init__(self):
        self.imports: dict = {}
        # Simple name -> module it is imported from in the generated module
        self.bound_names: Dict[str, str] = {}
        self.type_params: Tuple[Any, ...] = ()

    def build(self, constructor: Constructor) -> Signature:
        owner = constructor.owner
        self.bound_names[owner.__qualname__.split(".")[0]] = owner.__module__
        function = constructor.function
        self.type_params = tuple(getattr(function, "__type_params__", ()) or ())

        declaration = (
            f"def __init__{self._render_type_params()}"
            f"({self._render_parameters(constructor)}) -> None"
        )

        parameter_names = tuple(p.name for p in constructor.parameters)
        call_arguments = tuple(_call_argument(p) for p in constructor.parameters)

        return Signature(
            declaration=declaration,
            imports=tuple(self.imports),
            parameter_names=parameter_names,
            call_arguments=call_arguments,
        )

    # Declaration pieces

    def _render_type_params(self) -> str:
        if not self.type_params:
            return ""
        rendered = []
        for param in self.type_params:
            if isinstance(param, typing.TypeVarTuple):
                rendered.append(f"*{param.__name__}")
            elif isinstance(param, typing.ParamSpec):
                rendered.append(f"**{param.__name__}")
            elif param.__constraints__:
                constraints = ", ".join(
                    self.type_name(c) for c in param.__constraints__
                )
                rendered.append(f"{param.__name__}: ({constraints})")
            elif param.__bound__ is not None and param.__bound__ is not object:
                rendered.append(f"{param.__name__}: {self.type_name(param.__bound__)}")
            else:
                rendered.append(param.__name__)
        return "[" + ", ".join(rendered) + "]"

    def _render_parameters(self, constructor: Constructor) -> str:
        rendered = [constructor.self_name]
        parameters = constructor.parameters
        kinds = [p.kind for p in parameters]

        has_positional_only = inspect.Parameter.POSITIONAL_ONLY in kinds
        has_var_positional = inspect.Parameter.VAR_POSITIONAL in kinds
        star_written = False

        for index, parameter in enumerate(parameters):
            if (
                parameter.kind == inspect.Parameter.KEYWORD_ONLY
                and not has_var_positional
                and not star_written
            ):
                rendered.append("*")
                star_written = True

            rendered.append(self._render_parameter(parameter))

            if has_positional_only and parameter.kind == inspect.Parameter.POSITIONAL_ONLY:
                following = kinds[index + 1] if index + 1 < len(kinds) else None
                if following != inspect.Parameter.POSITIONAL_ONLY:
                    rendered.append("/")

        return ", ".join(rendered)

    def _render_parameter(self, parameter: ConstructorParameter) -> str:
        prefix = ""
        if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
            prefix = "*"
        elif parameter.kind == inspect.Parameter.VAR_KEYWORD:
            prefix = "**"

        text = prefix + parameter.name
        annotated = parameter.annotation is not inspect.Parameter.empty
        if annotated:
            text += ": " + self.type_name(parameter.annotation)

        if parameter.default is not inspect.Parameter.empty:
            separator = " = " if annotated else "="
            text += separator + self._render_default(parameter)

        return text

    def _render_default(self, parameter: ConstructorParameter) -> str:
        value = parameter.default
        if isinstance(value, enum.Enum):
            return f"{self.type_name(type(value))}.{value.name}"
        if isinstance(value, type):
            return self.type_name(value)

        rendered = repr(value)
        try:
            compile(rendered, "<default>", "eval")
        except SyntaxError as e:
            raise SignatureError(
                f"Default value of parameter '{parameter.name}' cannot be "
                f"rendered as source: {rendered}"
            ) from e
        return rendered

    # Type names

    def type_name(self, tp: Any) -> str:
        """Render a type annotation, collecting the imports it needs."""
        if tp is None or tp is type(None):
            return "None"
        if tp is Ellipsis:
            return "..."
        if isinstance(tp, typing.ForwardRef):
            tp = tp.__forward_arg__
        if isinstance(tp, str):
            # Unresolved names stay forward references in the generated module
            return repr(tp) if "\"" in tp else f"\"{tp}\""
        if isinstance(tp, list):
            return "[" + ", ".join(self.type_name(t) for t in tp) + "]"
        if isinstance(tp, (typing.TypeVar, typing.ParamSpec, typing.TypeVarTuple)):
            return self._type_variable_name(tp)
        if tp is typing.Any:
            return self._add_import("typing", "Any")

        origin = typing.get_origin(tp)
        if origin is not None:
            return self._generic_name(tp, origin)

        if isinstance(tp, type):
            return self._class_name(tp)

        # Special forms such as typing.NoReturn
        name = getattr(tp, "_name", None)
        if name and getattr(tp, "__module__", None) == "typing":
            return self._add_import("typing", name)
        return repr(tp)

    def _generic_name(self, tp: Any, origin: Any) -> str:
        args = typing.get_args(tp)

        if origin in _UNION_TYPES:
            return " | ".join(self.type_name(arg) for arg in args)
        if origin is typing.Annotated:
            annotated = self._add_import("typing", "Annotated")
            metadata = [self._metadata(m) for m in tp.__metadata__]
            return f"{annotated}[{self.type_name(args[0])}, {', '.join(metadata)}]"
        if origin is typing.Literal:
            literal = self._add_import("typing", "Literal")
            return f"{literal}[{', '.join(repr(arg) for arg in args)}]"

        base = self.type_name(origin)
        if not args:
            return base
        if args == ((),):
            return f"{base}[()]"
        return f"{base}[{', '.join(self.type_name(arg) for arg in args)}]"

    def _metadata(self, value: Any) -> str:
        metadata_type = type(value)
        if metadata_type.__module__ not in DEFAULT_NAMESPACES:
            self._add_class_import(metadata_type)
        return repr(value)

    def _type_variable_name(self, tv: Any) -> str:
        if tv not in self.type_params:
            module = getattr(tv, "__module__", None)
            if module and module not in DEFAULT_NAMESPACES:
                return self._add_import(module, tv.__name__)
        return tv.__name__

    def _class_name(self, cls: type) -> str:
        if cls.__module__ in DEFAULT_NAMESPACES:
            return cls.__qualname__
        outer = self._add_class_import(cls)
        if outer is None:
            return cls.__qualname__
        return outer + cls.__qualname__[len(cls.__qualname__.split(".")[0]):]

    def _add_class_import(self, cls: type) -> Optional[str]:
        qualname = cls.__qualname__
        if "<locals>" in qualname:
            logger.warning(
                "Type %s is defined in a local scope and cannot be imported", qualname
            )
            return None
        # Nested classes are reached through their outermost class
        return self._add_import(cls.__module__, qualname.split(".")[0])

    def _add_import(self, module: str, name: str) -> str:
        """Record an import and return the name it is bound to."""
        bound_module = self.bound_names.setdefault(name, module)
        if bound_module == module:
            self.imports[f"{module}.{name}"] = None
            return name

        alias = module.replace(".", "_") + "_" + name
        logger.debug("Importing %s.%s as %s to avoid a name clash", module, name, alias)
        self.imports[f"{module}.{name} as {alias}"] = None
        return alias


def _call_argument(parameter: ConstructorParameter) -> str:
    if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
        return f"*{parameter.name}"
    if parameter.kind == inspect.Parameter.VAR_KEYWORD:
        return f"**{parameter.name}"
    if parameter.kind == inspect.Parameter.KEYWORD_ONLY:
        return f"{parameter.name}={parameter.name}"
    return parameter.name


def get_constructor_signature(parent_class: type) -> Signature:
    """
    Extract the signature of the single public constructor of ``parent_class``.

    Args:
        parent_class: Template class the generated class will extend

    Returns:
        Signature of the parent's constructor

    Raises:
        SignatureArityError: If the class has zero or several public constructors
        MissingParameterNamesError: If parameter names are unavailable
        SignatureError: If the declaration cannot be rendered
    """
    constructors = get_constructors(parent_class)
    if len(constructors) != 1:
        raise SignatureArityError(
            f"Expected single constructor for template class "
            f"{qualified_name(parent_class)}. Found {len(constructors)}"
        )

    signature = Signature.of(constructors[0])
    logger.debug(
        "Extracted signature of %s: %s", qualified_name(parent_class), signature.declaration
    )
    return signature


def import_statements(
    names: Sequence[str], exclude: Optional[Sequence[str]] = None
) -> List[str]:
    """Turn ``module.Name [as alias]`` entries into ``from module import Name`` lines."""
    excluded = set(exclude or ())
    statements = []
    for name in names:
        if name in excluded:
            continue
        target, _, alias = name.partition(" as ")
        module, _, attribute = target.rpartition(".")
        statement = f"from {module} import {attribute}"
        statements.append(f"{statement} as {alias}" if alias else statement)
    return statements


__all__ = [
    "Signature",
    "SignatureError",
    "SignatureArityError",
    "MissingParameterNamesError",
    "get_constructor_signature",
    "import_statements",
]
