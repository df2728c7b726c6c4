"""autojsonclient: JSON-RPC clients generated at runtime from a service description.
    The server publishes a description of its methods and types (`api_description.json`, in the
    JSON-WSP description format). This module reads it and builds, without generating any source code:

    - one class per declared composite type, whose instances validate their fields and convert
      themselves to plain JSON objects,
    - one asynchronous call stub per method, validating its arguments before sending a JSON-RPC 2.0
      request and returning the result or raising the error sent back by the server,
    - a tree of namespaces mirroring the dots of the method names,
    - form descriptors (`gui()`) for all of the above, that a presentation layer can render.

    Example usage:

    ```python
    api, types, servicename = await load_api("http://localhost:8080/")

    origin = types["Point"](0, 0)
    distance = await api.geometry.distance(origin, types["Point"](3, 4))
    ```

    The description looks like this:

        ```json
        {
            "servicename": "geometry service",
            "types": {"Point": {"x": "number", "y": "number"}},
            "methods": {
                "geometry.distance": {
                    "doc_lines": ["Distance between two points"],
                    "params": {
                        "a": {"def_order": 1, "type": "Point", "optional": false, "doc_lines": []},
                        "b": {"def_order": 2, "type": "Point", "optional": false, "doc_lines": []}
                    },
                    "ret_info": {"type": "number", "doc_lines": []}
                }
            }
        }
        ```
"""

import logging
from typing import NamedTuple

from .calls import ABSENT, CallIdCounter, CallStub, build_call, call_ids
from .errors import DescriptionError, RpcError, TransportError, TypeMismatch
from .namespace import ApiNamespace, build_namespace
from .records import Record, build_type
from .transport import HttpTransport, Transport
from .types import UNTYPED_OBJECT, named_refs, parse_type_ref

DESCRIPTION_FILE = "api_description.json"
DEFAULT_BASE_PATH = "http://0.0.0.0:8080/"


class ParamDefinition:

    def __init__(self, name: str, definition: dict):
        self.name = name
        self.definition = definition
        self.type = parse_type_ref(definition.get("type"))
        self.optional = bool(definition.get("optional", False))
        self.def_order = definition.get("def_order")
        self.doc_lines = definition.get("doc_lines", [])


class MethodDefinition:

    def __init__(self, name: str, definition: dict):
        """Create a method definition from its entry in the description
        Args:
            name (str): fully qualified method name
            definition (dict): the `params`, `doc_lines` and `ret_info` of the method
        """
        self.name = name
        self.definition = definition
        self.doc_lines = definition.get("doc_lines", [])
        self.ret_info = definition.get("ret_info") or {}
        self.return_type = parse_type_ref(self.ret_info.get("type"))
        self.params = self._ordered_params(definition.get("params") or {})

    def _ordered_params(self, params: dict) -> list[ParamDefinition]:
        """Return the parameters in the order given by `def_order`, which starts at 1.
        The order of the keys in the description is not significant."""
        by_order = {}
        for param_name, param_def in params.items():
            order = param_def.get("def_order")
            if not isinstance(order, int) or isinstance(order, bool):
                raise DescriptionError(f"{self.name}: parameter {param_name} has no def_order")
            if order in by_order:
                raise DescriptionError(f"{self.name}: def_order {order} is used twice")
            by_order[order] = ParamDefinition(param_name, param_def)
        if sorted(by_order) != list(range(1, len(by_order) + 1)):
            raise DescriptionError(
                f"{self.name}: def_order values {sorted(by_order)} are not 1..{len(by_order)}"
            )
        return [by_order[i] for i in range(1, len(by_order) + 1)]


class ServiceDefinition:

    def __init__(self, description: dict):
        """Read a parsed service description
        Args:
            description (dict): the content of `api_description.json`
        """
        if not isinstance(description, dict):
            raise DescriptionError("the service description must be a JSON object")
        self.description = description
        self.name = description.get("servicename", "")
        self.url = description.get("url")
        self.types: dict[str, dict] = description.get("types") or {}
        self.methods: dict[str, MethodDefinition] = {
            name: MethodDefinition(name, definition)
            for name, definition in (description.get("methods") or {}).items()
        }
        self._check_references()

    def _check_references(self):
        """Make sure every type name used resolves to a declared type."""
        used = []
        for type_name, fields in self.types.items():
            for field_name, raw in fields.items():
                used.append((f"{type_name}.{field_name}", parse_type_ref(raw)))
        for method in self.methods.values():
            used.append((f"{method.name} result", method.return_type))
            for param in method.params:
                if param.type is None:
                    raise DescriptionError(f"{method.name}: parameter {param.name} has no type")
                used.append((f"{method.name}({param.name})", param.type))
        for where, type_ref in used:
            for name in named_refs(type_ref):
                if name not in self.types and name != UNTYPED_OBJECT:
                    raise DescriptionError(f"{where} refers to unknown type {name}")


class LoadedApi(NamedTuple):
    api: ApiNamespace
    types: dict[str, type[Record]]
    servicename: str


def build_api(
    description: dict,
    path: str,
    transport: Transport | None = None,
    counter: CallIdCounter | None = None,
) -> LoadedApi:
    """Generate the client for an already fetched description.
    Args:
        description (dict): parsed `api_description.json`
        path (str): url the JSON-RPC requests are posted to
        transport (Transport): defaults to an `HttpTransport`
        counter (CallIdCounter): defaults to the process-wide counter
    """
    service = ServiceDefinition(description)
    transport = transport or HttpTransport()

    # all the classes exist before any of them is used, so types can refer to types declared later
    types: dict[str, type[Record]] = {}
    for name, fields in service.types.items():
        types[name] = build_type(name, fields, types)

    stubs = {}
    for name, method in service.methods.items():
        stubs[name] = build_call(
            name,
            [(p.name, p.definition) for p in method.params],
            method.ret_info,
            path,
            transport,
            counter,
            doc_lines=method.doc_lines,
            types=types,
        )
    logging.debug(
        "generated %d types and %d methods for service %r", len(types), len(stubs), service.name
    )
    return LoadedApi(build_namespace(stubs), types, service.name)


async def load_api(
    base_path: str = "",
    path: str | None = None,
    transport: Transport | None = None,
    counter: CallIdCounter | None = None,
) -> LoadedApi:
    """Fetch `<base_path>api_description.json` and generate the client for it.
    Args:
        base_path (str): url of the service, ending with a slash
        path (str): url the JSON-RPC requests are posted to, defaults to `base_path`
    Returns:
        LoadedApi: (namespace tree, table of record types, service name)
    """
    base_path = base_path or DEFAULT_BASE_PATH
    transport = transport or HttpTransport()
    description = await transport.get_json(base_path + DESCRIPTION_FILE)
    return build_api(description, path or base_path, transport, counter)


__all__ = [
    "ABSENT",
    "ApiNamespace",
    "CallIdCounter",
    "CallStub",
    "DescriptionError",
    "HttpTransport",
    "LoadedApi",
    "Record",
    "RpcError",
    "ServiceDefinition",
    "Transport",
    "TransportError",
    "TypeMismatch",
    "build_api",
    "call_ids",
    "load_api",
]
