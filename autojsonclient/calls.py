"""
Call stubs generated for the methods of a service description.
"""

import logging
import threading
from typing import Any, Callable

from .errors import RpcError, TransportError
from .transport import Transport
from .types import TypeRef, build_check, describe_type, parse_type_ref, to_dict, to_json


class _Absent:
    """Marker for an optional argument the caller did not provide."""

    def __repr__(self):
        return "ABSENT"

    def __bool__(self):
        return False


ABSENT = _Absent()


class CallIdCounter:
    """Source of JSON-RPC request ids. Ids are consecutive integers, shared by all the stubs
    the counter is given to."""

    def __init__(self, start: int = 0):
        self._next = start
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        """Return the id the next call will get."""
        return self._next

    def next(self) -> int:
        with self._lock:
            allocated = self._next
            self._next += 1
            return allocated


"""Process-wide call id counter."""
call_ids = CallIdCounter()


class ParamSpec:

    def __init__(self, name: str, type_ref: TypeRef, optional: bool = False, doc_lines: list[str] | None = None):
        self.name = name
        self.type = type_ref
        self.optional = optional
        self.doc_lines = doc_lines or []
        self.check: Callable[[Any], None] = build_check(name, type_ref)

    def __repr__(self):
        return f"ParamSpec({self.name!r}, {describe_type(self.type)}, optional={self.optional})"


class CallStub:

    def __init__(
        self,
        name: str,
        params: list[ParamSpec],
        return_type: TypeRef | None,
        path: str,
        transport: Transport,
        counter: CallIdCounter,
        doc_lines: list[str] | None = None,
        return_doc_lines: list[str] | None = None,
        types: dict | None = None,
    ):
        """Create an invocable stub for a remote method
        Args:
            name (str): fully qualified method name, as sent in requests
            params (list): parameters in call order
            return_type (TypeRef): declared type of the result, None for no result
            path (str): url the requests are posted to
            transport (Transport): performs the round trip
            counter (CallIdCounter): allocates request ids
            types (dict): generated record types, used to build forms for record arguments
        """
        self.name = name
        self.params = params
        self.return_type = return_type
        self.path = path
        self.transport = transport
        self.counter = counter
        self.doc_lines = doc_lines or []
        self.return_doc_lines = return_doc_lines or []
        self.types = types if types is not None else {}
        self.__doc__ = self._make_doc()

    def signature(self) -> str:
        args = ", ".join(
            f"{p.name}{'?' if p.optional else ''}: {describe_type(p.type)}" for p in self.params
        )
        return f"{self.name}({args}) -> {describe_type(self.return_type)}"

    def _make_doc(self) -> str:
        lines = list(self.doc_lines)
        if lines:
            lines.append("")
        lines.append(self.signature())
        if self.params:
            lines.append("")
            lines.append("Args:")
            for p in self.params:
                lines.append(f"    {p.name} ({describe_type(p.type)}): {' '.join(p.doc_lines)}".rstrip())
        if self.return_type is not None:
            lines.append("")
            lines.append(f"Returns: {describe_type(self.return_type)} {' '.join(self.return_doc_lines)}".rstrip())
        return "\n".join(lines)

    def bind(self, args: tuple, kwargs: dict) -> list[Any]:
        """Match positional and keyword arguments to the parameters, in call order."""
        if len(args) > len(self.params):
            raise TypeError(f"{self.name} takes {len(self.params)} arguments, got {len(args)}")
        values = list(args) + [ABSENT] * (len(self.params) - len(args))
        index = {p.name: i for i, p in enumerate(self.params)}
        for key, value in kwargs.items():
            if key not in index:
                raise TypeError(f"{self.name} got an unexpected argument {key!r}")
            if index[key] < len(args):
                raise TypeError(f"{self.name} got multiple values for argument {key!r}")
            values[index[key]] = value
        return values

    def make_request(self, call_id: int, values: list[Any]) -> dict:
        """Validate arguments and assemble the JSON-RPC request envelope."""
        request = {"jsonrpc": "2.0", "id": call_id, "method": self.name, "params": {}}
        for param, value in zip(self.params, values):
            if param.optional and (value is ABSENT or value is None):
                continue
            param.check(value)
            request["params"][param.name] = to_dict(value)
        return request

    async def __call__(self, *args, **kwargs) -> Any:
        values = self.bind(args, kwargs)
        call_id = self.counter.next()
        request = self.make_request(call_id, values)
        logging.debug("calling %s (id %d)", self.name, call_id)
        response = await self.transport.post_json(self.path, to_json(request))
        if not isinstance(response, dict):
            raise TransportError(f"unexpected response to {self.name}: {response!r}")
        if "error" in response and response["error"] is not None:
            raise RpcError.from_response(response["error"])
        return response.get("result")

    def gui(self):
        from .gui import CallForm

        return CallForm(self)

    def __repr__(self):
        return f"<CallStub {self.signature()}>"


def build_call(
    name: str,
    ordered_params: list[tuple[str, dict]],
    return_info: dict | None,
    path: str,
    transport: Transport,
    counter: CallIdCounter | None = None,
    doc_lines: list[str] | None = None,
    types: dict | None = None,
) -> CallStub:
    """Build the stub for method `name` from its parameter definitions, already in call order."""
    return_info = return_info or {}
    params = [
        ParamSpec(
            param_name,
            parse_type_ref(definition.get("type")),
            bool(definition.get("optional", False)),
            definition.get("doc_lines"),
        )
        for param_name, definition in ordered_params
    ]
    return CallStub(
        name,
        params,
        parse_type_ref(return_info.get("type")),
        path,
        transport,
        counter or call_ids,
        doc_lines=doc_lines,
        return_doc_lines=return_info.get("doc_lines"),
        types=types,
    )
