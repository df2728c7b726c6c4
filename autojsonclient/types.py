"""
This module contains the type descriptors read from a service description,
the validators synthesized from them, and utilities for converting values to JSON.
"""

from dataclasses import dataclass
import json
from typing import Any, Callable, Iterator, Union

from .errors import DescriptionError, TypeMismatch

# ------------------------------------------------------------------------------
"""Primitive tags understood in a description, mapped to the article used in error messages.
"""
PRIMITIVES = {
    "number": "a number",
    "string": "a string",
    "boolean": "a boolean",
}

"""Tag used by servers for subobjects that have no declared type."""
UNTYPED_OBJECT = "object"


# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class Primitive:
    kind: str

    def __str__(self) -> str:
        return self.kind


@dataclass(frozen=True)
class ArrayOf:
    element: "TypeRef"

    def __str__(self) -> str:
        return f"[{self.element}]"


@dataclass(frozen=True)
class Named:
    name: str

    def __str__(self) -> str:
        return self.name


TypeRef = Union[Primitive, ArrayOf, Named]


# ------------------------------------------------------------------------------
def parse_type_ref(raw: Any) -> TypeRef | None:
    """Read a type as written in the description: a primitive tag, a single element list
    wrapping another type, or the name of a declared type. `None` means no value (void returns).
    """
    if raw is None:
        return None
    if isinstance(raw, list):
        if len(raw) != 1:
            raise DescriptionError(f"array types must wrap exactly one type, got {raw!r}")
        element = parse_type_ref(raw[0])
        if element is None:
            raise DescriptionError("array element type cannot be null")
        return ArrayOf(element)
    if isinstance(raw, str):
        if raw in PRIMITIVES:
            return Primitive(raw)
        return Named(raw)
    raise DescriptionError(f"unsupported type in description: {raw!r}")


def named_refs(type_ref: TypeRef | None) -> Iterator[str]:
    """Yield the names of all declared types a type refers to."""
    if isinstance(type_ref, ArrayOf):
        yield from named_refs(type_ref.element)
    elif isinstance(type_ref, Named):
        yield type_ref.name


def describe_type(type_ref: TypeRef | None) -> str:
    """for a given type, return the name used in documentation: `number`, `[string]`, `Point`..."""
    return "null" if type_ref is None else str(type_ref)


def default_value(type_ref: TypeRef | None) -> Any:
    """Return the value a record field holds before it is assigned."""
    if isinstance(type_ref, Primitive):
        return {"number": 0, "string": "", "boolean": False}[type_ref.kind]
    if isinstance(type_ref, ArrayOf):
        return []
    return None


def kind_of(type_ref: TypeRef) -> str:
    """Return the expected kind as it appears in error messages."""
    if isinstance(type_ref, Primitive):
        return PRIMITIVES[type_ref.kind]
    if isinstance(type_ref, ArrayOf):
        return "an array"
    if type_ref.name == UNTYPED_OBJECT:
        return "an object"
    return f"an object of type {type_ref.name}"


# ------------------------------------------------------------------------------
Checker = Callable[[Any, str], None]


def _is_record(value: Any) -> bool:
    from .records import Record

    return isinstance(value, Record)


def _primitive_checker(kind: str) -> Checker:
    if kind == "number":
        test = lambda v: isinstance(v, (int, float)) and not isinstance(v, bool)
    elif kind == "string":
        test = lambda v: isinstance(v, str)
    else:
        test = lambda v: isinstance(v, bool)
    message = PRIMITIVES[kind]

    def check(value, expr):
        if not test(value):
            raise TypeMismatch(f"{expr} must be {message}")

    return check


def _array_checker(element: TypeRef) -> Checker:
    check_element = _checker(element)

    def check(value, expr):
        if not isinstance(value, (list, tuple)):
            raise TypeMismatch(f"{expr} must be an array")
        for i, item in enumerate(value):
            check_element(item, f"{expr}[{i}]")

    return check


def _named_checker(name: str) -> Checker:
    def check(value, expr):
        # identity is the declared type name, not the shape of the value
        if _is_record(value) and value._type_name == name:
            return
        if name == UNTYPED_OBJECT and isinstance(value, dict):
            return
        raise TypeMismatch(f"{expr} must be {kind_of(Named(name))}")

    return check


def _checker(type_ref: TypeRef) -> Checker:
    if isinstance(type_ref, Primitive):
        return _primitive_checker(type_ref.kind)
    if isinstance(type_ref, ArrayOf):
        return _array_checker(type_ref.element)
    if isinstance(type_ref, Named):
        return _named_checker(type_ref.name)
    raise DescriptionError(f"not a type descriptor: {type_ref!r}")


def build_check(expr: str, type_ref: TypeRef) -> Callable[[Any], None]:
    """Build a validator for values described by `type_ref`.

    The returned function raises `TypeMismatch` naming `expr` (or the offending element of it,
    such as `expr[3]`) when the value does not have the declared shape.
    """
    check = _checker(type_ref)
    return lambda value: check(value, expr)


# ------------------------------------------------------------------------------
class CustomJSONEncoder(json.JSONEncoder):
    """JSON encoder that converts generated records to their wire form."""

    def default(self, obj):

        # if the value is None, return None
        if obj is None:
            return None

        # records validate themselves while being flattened
        if _is_record(obj):
            return {k: self.default(v) for k, v in obj.to_wire_form().items()}

        # if the object is a list/tuple, convert its elements
        if isinstance(obj, (list, tuple)):
            return [self.default(value) for value in obj]

        # if the object is a dictionary, convert its values
        if isinstance(obj, dict):
            return {k: self.default(v) for k, v in obj.items()}

        # return any other object as is
        return obj


# ------------------------------------------------------------------------------
def to_dict(obj: Any) -> Any:
    """Convert an object to plain JSON-compatible values."""
    return CustomJSONEncoder().default(obj)


# ------------------------------------------------------------------------------
def to_json(obj) -> str:
    """Convert an object to a JSON string."""
    return json.dumps(to_dict(obj))
