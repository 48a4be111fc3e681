"""
Constructor reflection utilities.

Discovers the constructor shapes of a class (the ``typing.overload``
declarations of ``__init__`` or the implementation itself), decides whether
runtime arguments are compatible with a shape, and instantiates classes by
resolving a matching shape first.

Compatibility treats the builtin scalar types (``int``, ``float``, ...) as
value types and the ``ctypes`` simple types as their boxed counterparts, so a
``c_int`` argument satisfies an ``int`` parameter and vice versa.
"""

from __future__ import annotations

import ctypes
import inspect
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .logging_config import get_logger

logger = get_logger(__name__)


class ReflectionError(Exception):
    """Base exception for constructor reflection errors."""

    pass


class MissingParameterNamesError(ReflectionError):
    """The interpreter could not provide constructor parameter names."""

    pass


class NoMatchingConstructorError(ReflectionError):
    """No constructor accepts the requested argument types."""

    def __init__(self, owner: type, argument_types: Sequence[str]):
        self.owner = owner
        self.argument_types = tuple(argument_types)
        super().__init__(
            f"{qualified_name(owner)}.__init__({', '.join(self.argument_types)})"
        )


class ConstructionFailedError(ReflectionError):
    """The selected constructor raised while creating the instance."""

    def __init__(self, owner: type, cause: BaseException):
        self.owner = owner
        self.cause = cause
        super().__init__(
            f"Failed to construct {qualified_name(owner)}: "
            f"{type(cause).__name__}: {cause}"
        )


# Value type -> boxed (reference) forms
VALUE_TYPE_BOXES: Dict[type, Tuple[type, ...]] = {
    bool: (ctypes.c_bool,),
    int: (
        ctypes.c_byte,
        ctypes.c_ubyte,
        ctypes.c_short,
        ctypes.c_ushort,
        ctypes.c_int,
        ctypes.c_uint,
        ctypes.c_long,
        ctypes.c_ulong,
        ctypes.c_longlong,
        ctypes.c_ulonglong,
        ctypes.c_size_t,
        ctypes.c_ssize_t,
    ),
    float: (ctypes.c_float, ctypes.c_double, ctypes.c_longdouble),
    complex: (),
    str: (ctypes.c_wchar,),
    bytes: (ctypes.c_char,),
}

# Boxed form -> value type
BOXED_VALUE_TYPES: Dict[type, type] = {
    box: value for value, boxes in VALUE_TYPE_BOXES.items() for box in boxes
}

VALUE_TYPES: Tuple[type, ...] = tuple(VALUE_TYPE_BOXES)

_UNION_TYPES = (typing.Union, types.UnionType)

# typing's stream classes are nominal; writers match them by shape
_STREAM_TYPES = (typing.IO, typing.TextIO, typing.BinaryIO)


def qualified_name(cls: type) -> str:
    """Return ``module.QualName`` for a class."""
    module = getattr(cls, "__module__", None)
    qualname = getattr(cls, "__qualname__", getattr(cls, "__name__", repr(cls)))
    if module in (None, "builtins"):
        return qualname
    return f"{module}.{qualname}"


def is_value_type(declared: Any) -> bool:
    """Check whether a declared type is a value (non-reference) type."""
    return isinstance(declared, type) and issubclass(declared, VALUE_TYPES)


def value_type_of(declared: type) -> Optional[type]:
    """Return the value type in the pairing table that ``declared`` belongs to."""
    for value_type in VALUE_TYPES:
        if issubclass(declared, value_type):
            # bool is also an int; the most specific entry wins
            if value_type is int and issubclass(declared, bool):
                return bool
            return value_type
    return None


def _is_unconstrained(declared: Any) -> bool:
    return declared is inspect.Parameter.empty or declared is Any or declared is object


def admits_absent(declared: Any) -> bool:
    """Check whether ``None`` may be passed for a parameter of ``declared`` type."""
    if _is_unconstrained(declared) or declared is None or declared is type(None):
        return True

    origin = typing.get_origin(declared)
    if origin in _UNION_TYPES:
        return any(admits_absent(member) for member in typing.get_args(declared))
    if origin is typing.Annotated:
        return admits_absent(typing.get_args(declared)[0])
    if isinstance(declared, typing.TypeVar):
        if declared.__bound__ is not None:
            return admits_absent(declared.__bound__)
        if declared.__constraints__:
            return any(admits_absent(c) for c in declared.__constraints__)
        return True
    if origin is not None:
        declared = origin

    return not is_value_type(declared)


def is_compatible(declared: Any, argument_type: type, is_absent: bool = False) -> bool:
    """
    Decide whether an argument may be passed for a declared parameter type.

    Args:
        declared: Resolved parameter annotation (or ``Parameter.empty``)
        argument_type: Runtime type of the argument
        is_absent: True when the argument is ``None``

    Returns:
        True if the argument is assignable, possibly through value/box coercion
    """
    if _is_unconstrained(declared):
        return True
    if is_absent:
        return admits_absent(declared)

    if isinstance(declared, (str, typing.ForwardRef)):
        # Unresolved forward reference, nothing to check against
        return True

    origin = typing.get_origin(declared)
    if origin in _UNION_TYPES:
        return any(
            is_compatible(member, argument_type) for member in typing.get_args(declared)
        )
    if origin is typing.Annotated:
        return is_compatible(typing.get_args(declared)[0], argument_type)
    if origin is typing.Literal:
        return any(type(value) is argument_type for value in typing.get_args(declared))
    if isinstance(declared, typing.TypeVar):
        if declared.__bound__ is not None:
            return is_compatible(declared.__bound__, argument_type)
        if declared.__constraints__:
            return any(is_compatible(c, argument_type) for c in declared.__constraints__)
        return True
    if origin is not None:
        declared = origin

    if not isinstance(declared, type):
        return False

    if declared in _STREAM_TYPES:
        return issubclass(argument_type, declared) or callable(
            getattr(argument_type, "write", None)
        )

    if issubclass(argument_type, declared):
        return True

    # Boxing and unboxing
    if declared in BOXED_VALUE_TYPES:
        return argument_type is BOXED_VALUE_TYPES[declared]
    value_type = value_type_of(declared)
    if value_type is not None:
        return argument_type in VALUE_TYPE_BOXES[value_type]

    return False


def coerce(declared: Any, value: Any) -> Any:
    """Box or unbox ``value`` when it only matches ``declared`` through coercion."""
    if value is None:
        return value

    origin = typing.get_origin(declared)
    if origin is typing.Annotated:
        return coerce(typing.get_args(declared)[0], value)
    if origin in _UNION_TYPES:
        members = typing.get_args(declared)
        if any(_is_direct_instance(member, value) for member in members):
            return value
        for member in members:
            if is_compatible(member, type(value)):
                return coerce(member, value)
        return value

    if not isinstance(declared, type) or isinstance(value, declared):
        return value
    if declared in BOXED_VALUE_TYPES:
        return declared(value)
    if type(value) in BOXED_VALUE_TYPES:
        return value.value
    return value


def _is_direct_instance(declared: Any, value: Any) -> bool:
    origin = typing.get_origin(declared)
    if origin is not None:
        declared = origin
    return isinstance(declared, type) and isinstance(value, declared)


@dataclass(frozen=True)
class ConstructorParameter:
    """A single constructor parameter with its resolved annotation."""

    name: str
    kind: inspect._ParameterKind
    annotation: Any = inspect.Parameter.empty
    default: Any = inspect.Parameter.empty

    @property
    def is_required(self) -> bool:
        return self.default is inspect.Parameter.empty and self.kind not in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        )

    def accepts(self, value: Any) -> bool:
        """Check whether a runtime value may be passed for this parameter."""
        if self.kind == inspect.Parameter.VAR_POSITIONAL:
            if not isinstance(value, (tuple, list)):
                return False
            return all(
                is_compatible(self.annotation, type(item), item is None)
                for item in value
            )
        return is_compatible(self.annotation, type(value), value is None)

    def accepts_exactly(self, value: Any) -> bool:
        """Check whether the annotation is the literal runtime type of ``value``."""
        if self.kind == inspect.Parameter.VAR_POSITIONAL:
            return False
        return self.annotation is type(value)

    def coerce(self, value: Any) -> Any:
        """Box or unbox ``value`` to match a value-typed or boxed annotation."""
        if self.kind == inspect.Parameter.VAR_POSITIONAL:
            return type(value)(coerce(self.annotation, item) for item in value)
        return coerce(self.annotation, value)


@dataclass(frozen=True)
class Constructor:
    """One public constructor shape of a class."""

    owner: type
    function: Optional[Callable[..., Any]]
    parameters: Tuple[ConstructorParameter, ...] = field(default_factory=tuple)
    self_name: str = "self"

    @property
    def arity(self) -> int:
        """Number of argument slots that can be filled positionally."""
        return sum(
            1
            for parameter in self.parameters
            if parameter.kind != inspect.Parameter.VAR_KEYWORD
        )

    def accepts_count(self, count: int) -> bool:
        """Check that ``count`` arguments, bound in order, fill every required slot."""
        if count > self.arity:
            return False
        # Arguments bind to the first ``count`` slots; a required keyword-only
        # parameter after them stays unfilled
        return not any(parameter.is_required for parameter in self.parameters[count:])

    def matches_exactly(self, arguments: Sequence[Any]) -> bool:
        if not self.accepts_count(len(arguments)):
            return False
        return all(
            parameter.accepts_exactly(argument)
            for parameter, argument in zip(self.parameters, arguments)
        )

    def is_compatible_with(self, arguments: Sequence[Any]) -> bool:
        if not self.accepts_count(len(arguments)):
            return False
        return all(
            parameter.accepts(argument)
            for parameter, argument in zip(self.parameters, arguments)
        )

    def bind(self, arguments: Sequence[Any]) -> Tuple[List[Any], Dict[str, Any]]:
        """Map positional arguments onto call arguments for this shape."""
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for parameter, argument in zip(self.parameters, arguments):
            value = parameter.coerce(argument)
            if parameter.kind == inspect.Parameter.VAR_POSITIONAL:
                args.extend(value)
            elif parameter.kind == inspect.Parameter.KEYWORD_ONLY:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        return args, kwargs

    def new_instance(self, *arguments: Any) -> Any:
        """
        Create an instance of the owner class through this shape.

        Raises:
            ConstructionFailedError: If the constructor raises
        """
        args, kwargs = self.bind(arguments)
        try:
            return self.owner(*args, **kwargs)
        except Exception as e:
            raise ConstructionFailedError(self.owner, e) from e

    def describe(self) -> str:
        rendered = []
        for parameter in self.parameters:
            annotation = parameter.annotation
            if annotation is inspect.Parameter.empty:
                rendered.append(parameter.name)
            else:
                type_name = (
                    qualified_name(annotation)
                    if isinstance(annotation, type)
                    else repr(annotation)
                )
                rendered.append(f"{parameter.name}: {type_name}")
        return f"{qualified_name(self.owner)}({', '.join(rendered)})"


def constructor_functions(cls: type) -> List[Callable[..., Any]]:
    """Return the public constructor callables of a class, in declaration order."""
    init = getattr(cls, "__init__", None)
    if init is None or not callable(init):
        return []
    try:
        overloads = typing.get_overloads(init)
    except AttributeError:
        # Slot wrappers of builtin initialisers carry no module
        overloads = []
    if overloads:
        return list(overloads)
    return [init]


def _resolve_annotations(function: Callable[..., Any]) -> Dict[str, Any]:
    """
    Resolve the annotations of ``function``.

    When some annotation cannot be evaluated (typically a name imported only
    under ``TYPE_CHECKING``), the others are still resolved one by one and
    the failing ones are kept as their source strings.
    """
    try:
        return typing.get_type_hints(function, include_extras=True)
    except Exception as e:
        logger.debug(
            "Could not resolve all annotations of %s: %s",
            getattr(function, "__qualname__", function),
            e,
        )

    global_ns = getattr(function, "__globals__", {})
    local_ns = {
        param.__name__: param for param in getattr(function, "__type_params__", ()) or ()
    }
    hints = {}
    for name, annotation in getattr(function, "__annotations__", {}).items():
        if isinstance(annotation, typing.ForwardRef):
            annotation = annotation.__forward_arg__
        if not isinstance(annotation, str):
            hints[name] = annotation
            continue
        try:
            hints[name] = eval(annotation, global_ns, local_ns)
        except Exception as e:
            logger.debug("Keeping annotation %r of %s unresolved: %s", annotation, name, e)
            hints[name] = annotation
    return hints


def describe_function(owner: type, function: Callable[..., Any]) -> Constructor:
    """
    Build a :class:`Constructor` for one ``__init__`` callable.

    Raises:
        MissingParameterNamesError: If no signature is available
    """
    if function is object.__init__:
        return Constructor(owner, function)

    try:
        signature = inspect.signature(function)
    except (TypeError, ValueError) as e:
        raise MissingParameterNamesError(
            f"Constructor parameter names of {qualified_name(owner)} are not "
            f"available: {e}"
        ) from e

    hints = _resolve_annotations(function)
    parameters = list(signature.parameters.values())
    if not parameters or parameters[0].kind not in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        raise MissingParameterNamesError(
            f"Constructor of {qualified_name(owner)} has no named instance parameter"
        )

    self_name = parameters[0].name
    described = tuple(
        ConstructorParameter(
            name=parameter.name,
            kind=parameter.kind,
            annotation=hints.get(parameter.name, parameter.annotation),
            default=parameter.default,
        )
        for parameter in parameters[1:]
    )
    return Constructor(owner, function, described, self_name)


def get_constructors(cls: type) -> List[Constructor]:
    """Return all public constructor shapes of ``cls`` in declaration order."""
    return [describe_function(cls, function) for function in constructor_functions(cls)]


def _argument_type_name(argument: Any) -> str:
    return "None" if argument is None else qualified_name(type(argument))


def get_constructor(cls: type, *arguments: Any) -> Constructor:
    """
    Find the constructor of ``cls`` matching the given arguments.

    An exact match on the literal runtime argument types wins; otherwise the
    first compatible constructor in declaration order is used.

    Raises:
        NoMatchingConstructorError: If no constructor accepts the arguments
    """
    constructors = get_constructors(cls)

    for constructor in constructors:
        if constructor.matches_exactly(arguments):
            return constructor

    for constructor in constructors:
        if constructor.is_compatible_with(arguments):
            logger.debug("Using compatible constructor %s", constructor.describe())
            return constructor

    raise NoMatchingConstructorError(
        cls, [_argument_type_name(argument) for argument in arguments]
    )


def new_instance(cls: type, *arguments: Any) -> Any:
    """
    Create an instance of ``cls`` using a matching constructor.

    Raises:
        NoMatchingConstructorError: If no constructor accepts the arguments
        ConstructionFailedError: If the constructor raises
    """
    return get_constructor(cls, *arguments).new_instance(*arguments)
