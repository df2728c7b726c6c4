"""
Form descriptors for generated records, call stubs and namespaces.

Every generated object has a `gui()` method returning a `Renderable`. A renderable does not
depend on any presentation library: `build(factory)` asks a `WidgetFactory`, implemented once
per target framework, for the widgets, and returns `(widget, getter)` where `getter()` reads the
values currently entered in the widgets. See `autojsonclient.html` for an implementation.
"""

import abc
from typing import Any, Awaitable, Callable

from .records import from_wire
from .types import ArrayOf, Named, Primitive, TypeRef, UNTYPED_OBJECT

Getter = Callable[[], Any]


def humanise(source: str) -> str:
    """Turn an identifier into a label: `getUserName` -> `Get user name`, `user_id` -> `User id`."""
    if not source:
        return ""
    result = source[0].upper()
    for i in range(1, len(source)):
        c = source[i]
        if c == "_":
            result += " "
        elif c.isupper():
            previous_upper = source[i - 1].isupper()
            if not previous_upper:
                result += " "
            # acronyms stay upper case, "HTTPServer" -> "HTTP server"
            if i + 1 >= len(source) or source[i + 1].isupper():
                result += c
            else:
                if previous_upper:
                    result += " "
                result += c.lower()
        else:
            result += c
    return result


class WidgetFactory(abc.ABC):
    """Builds the widgets of one presentation framework."""

    @abc.abstractmethod
    def field(self, label: str, kind: str, optional: bool = False) -> tuple[Any, Getter]:
        """Input for a primitive `kind` (number, string, boolean) or an untyped object.
        The getter of an `optional` input returns `ABSENT` when nothing was entered."""

    @abc.abstractmethod
    def array(self, label: str, element: TypeRef, optional: bool = False) -> tuple[Any, Getter]:
        """Input for an array of `element`."""

    @abc.abstractmethod
    def frame(self, label: str, inner: Any) -> Any:
        """Labelled frame around the widget of a nested record."""

    @abc.abstractmethod
    def record(self, children: list[Any]) -> Any:
        """Container for the field widgets of a record."""

    def begin_call(self, name: str) -> None:
        """Called before the widgets of the call `name` are built."""

    @abc.abstractmethod
    def call(self, title: str, children: list[Any], submit: Callable[[], Awaitable[Any]]) -> Any:
        """Form for a call: argument widgets plus a button running `submit`."""

    @abc.abstractmethod
    def group(self, title: str | None, children: list[Any]) -> Any:
        """Container for the forms of a namespace; `title` is None for the root."""


class Renderable(abc.ABC):

    @abc.abstractmethod
    def build(self, factory: WidgetFactory) -> tuple[Any, Getter]:
        pass


def field_widget(
    factory: WidgetFactory,
    name: str,
    type_ref: TypeRef,
    types: dict,
    enclosing: frozenset = frozenset(),
    optional: bool = False,
) -> tuple[Any, Getter]:
    """Widget for one field or argument. `enclosing` holds the record types already being edited
    around it; a record nested in itself is entered as JSON instead of recursing."""
    label = humanise(name)
    if isinstance(type_ref, Primitive):
        return factory.field(label, type_ref.kind, optional)
    if isinstance(type_ref, ArrayOf):
        widget, getter = factory.array(label, type_ref.element, optional)
        return widget, lambda: from_wire(type_ref, getter(), types)
    if isinstance(type_ref, Named) and type_ref.name in types and type_ref.name not in enclosing:
        inner, getter = RecordForm(types[type_ref.name](), enclosing).build(factory)
        return factory.frame(label, inner), getter
    widget, getter = factory.field(label, UNTYPED_OBJECT, optional)
    return widget, lambda: from_wire(type_ref, getter(), types)


class RecordForm(Renderable):
    """Edits one record instance; the getter writes the entered values into it and returns it."""

    def __init__(self, instance, enclosing: frozenset = frozenset()):
        self.instance = instance
        self.enclosing = enclosing

    def build(self, factory):
        children = []
        setters = []
        enclosing = self.enclosing | {self.instance._type_name}
        for name, type_ref in self.instance._fields.items():
            widget, getter = field_widget(factory, name, type_ref, self.instance._types, enclosing)
            children.append(widget)
            setters.append((name, getter))

        def read():
            for name, getter in setters:
                setattr(self.instance, name, getter())
            return self.instance

        return factory.record(children), read


class CallForm(Renderable):
    """Argument inputs for a call stub, with a submit action that awaits the stub itself."""

    def __init__(self, stub):
        self.stub = stub

    def build(self, factory):
        factory.begin_call(self.stub.name)
        children = []
        getters = []
        for param in self.stub.params:
            widget, getter = field_widget(
                factory, param.name, param.type, self.stub.types, optional=param.optional
            )
            children.append(widget)
            getters.append(getter)

        def read_args():
            return [getter() for getter in getters]

        async def submit():
            return await self.stub(*read_args())

        title = humanise(self.stub.name.rsplit(".", 1)[-1])
        return factory.call(title, children, submit), read_args


class NamespaceForm(Renderable):

    def __init__(self, namespace):
        self.namespace = namespace

    def build(self, factory):
        # members may be named like the dict methods, so look those up on the class
        members = dict.values(self.namespace)
        children = [type(member).gui(member).build(factory)[0] for member in members]
        name = self.namespace._name
        title = humanise(name) if name else None
        return factory.group(title, children), lambda: None
