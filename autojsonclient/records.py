"""
Classes generated for the composite types declared in a service description.
"""

from typing import Any, Callable, ClassVar

from .errors import DescriptionError
from .types import ArrayOf, Named, TypeRef, build_check, default_value, parse_type_ref, to_dict


class Record:
    """Base class of the generated composite types.

    Each generated subclass carries the declared type name, its fields in declaration order,
    one validator per field, and the table of all generated types of the same description
    (so that fields can refer to types declared later). These are kept under underscore names
    so that they never collide with declared fields.
    """

    _type_name: ClassVar[str]
    _fields: ClassVar[dict[str, TypeRef]]
    _types: ClassVar[dict[str, type["Record"]]]
    _checks: ClassVar[dict[str, Callable[[Any], None]]]

    def __init__(self, *args, **kwargs):
        if len(args) > len(self._fields):
            raise TypeError(
                f"{self._type_name} takes at most {len(self._fields)} values, got {len(args)}"
            )
        values = dict(zip(self._fields, args))
        for name, value in kwargs.items():
            if name not in self._fields:
                raise TypeError(f"{self._type_name} has no field {name!r}")
            if name in values:
                raise TypeError(f"{self._type_name} got multiple values for field {name!r}")
            values[name] = value
        for name, type_ref in self._fields.items():
            setattr(self, name, values[name] if name in values else default_value(type_ref))

    def to_wire_form(self) -> dict:
        """Validate every field and return the plain mapping sent over the wire.
        Stops at the first invalid field."""
        result = {}
        for name, check in self._checks.items():
            value = getattr(self, name)
            check(value)
            result[name] = to_dict(value)
        return result

    @classmethod
    def from_wire_form(cls, data: dict) -> "Record":
        """Build an instance from a plain mapping, converting nested objects to their declared types."""
        values = {}
        for name, value in data.items():
            type_ref = cls._fields.get(name)
            values[name] = from_wire(type_ref, value, cls._types) if type_ref else value
        return cls(**values)

    def gui(self):
        from .gui import RecordForm

        return RecordForm(self)

    def __eq__(self, other):
        if not isinstance(other, Record) or other._type_name != self._type_name:
            return NotImplemented
        return all(getattr(self, f) == getattr(other, f) for f in self._fields)

    def __repr__(self):
        values = ", ".join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{self._type_name}({values})"


def from_wire(type_ref: TypeRef, value: Any, types: dict[str, type[Record]]) -> Any:
    """Convert plain JSON objects found in `value` to the records `type_ref` declares."""
    if isinstance(type_ref, ArrayOf) and isinstance(value, list):
        return [from_wire(type_ref.element, v, types) for v in value]
    if isinstance(type_ref, Named) and type_ref.name in types and isinstance(value, dict):
        return types[type_ref.name].from_wire_form(value)
    return value


def build_type(name: str, field_defs: dict[str, Any], types: dict[str, type[Record]]) -> type[Record]:
    """Create the class for the composite type `name`.

    Args:
        name (str): declared type name, also used as the class name
        field_defs (dict): field name -> type as written in the description
        types (dict): table of all generated types, may still be filling up
    """
    fields = {field: parse_type_ref(raw) for field, raw in field_defs.items()}
    for field in fields:
        if hasattr(Record, field) or field in Record.__annotations__:
            raise DescriptionError(f"{name}.{field}: field name is reserved")
    checks = {field: build_check(f"{name}.{field}", t) for field, t in fields.items()}
    return type(
        name,
        (Record,),
        {
            "_type_name": name,
            "_fields": fields,
            "_types": types,
            "_checks": checks,
            "__doc__": f"{name}(" + ", ".join(f"{f}: {t}" for f, t in fields.items()) + ")",
        },
    )
