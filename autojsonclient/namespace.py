"""
Grouping of dotted method names into nested namespaces.
"""

from typing import Iterator

from .calls import CallStub
from .errors import DescriptionError


class ApiNamespace(dict):
    """Mapping from a name segment to a call stub or a nested namespace.

    Members can also be reached as attributes: `api.users.get(...)`. A member wins over the
    dict method of the same name, so `api.users.items` is the stub declared as `users.items`.
    Dict methods stay available from the class: `dict.items(api.users)`, and so does the
    segment name of the namespace through `_name`.
    """

    def __init__(self, name: str | None = None):
        super().__init__()
        self._name = name

    def __getattribute__(self, item):
        if not item.startswith("_") and dict.__contains__(self, item):
            return dict.__getitem__(self, item)
        return super().__getattribute__(item)

    def gui(self):
        from .gui import NamespaceForm

        return NamespaceForm(self)


def walk(namespace: ApiNamespace, prefix: str = "") -> Iterator[tuple[str, CallStub]]:
    """Yield (dotted name, stub) for every stub below `namespace`."""
    for segment, member in dict.items(namespace):
        if isinstance(member, ApiNamespace):
            yield from walk(member, f"{prefix}{segment}.")
        else:
            yield f"{prefix}{segment}", member


def build_namespace(stubs: dict[str, CallStub]) -> ApiNamespace:
    """Nest stubs by the dots of their names: "a.b.c" is reachable as api["a"]["b"]["c"]."""
    api = ApiNamespace()
    for dotted_name, stub in stubs.items():
        *parents, leaf = dotted_name.split(".")
        node = api
        for part in parents:
            child = dict.get(node, part)
            if child is None:
                child = node[part] = ApiNamespace(part)
            elif not isinstance(child, ApiNamespace):
                raise DescriptionError(f"{dotted_name}: {part} is already a method")
            node = child
        if leaf in node:
            raise DescriptionError(f"{dotted_name} clashes with another method or namespace")
        node[leaf] = stub
    return api
