import asyncio
import threading

import pytest

from autojsonclient import ABSENT, CallIdCounter, RpcError, TransportError, TypeMismatch, call_ids
from autojsonclient.calls import build_call
from conftest import FakeTransport


@pytest.mark.asyncio
async def test_request_envelope(loaded, transport):
    api, types, _ = loaded
    Point = types["Point"]
    transport.handler = lambda request: {"jsonrpc": "2.0", "id": request["id"], "result": 5}
    assert await api.geometry.distance(Point(0, 0), Point(3, 4)) == 5
    url, request = transport.posts[0]
    assert url == "http://localhost:8080/"
    assert request == {
        "jsonrpc": "2.0",
        "id": 0,
        "method": "geometry.distance",
        "params": {"a": {"x": 0, "y": 0}, "b": {"x": 3, "y": 4}},
    }


@pytest.mark.asyncio
async def test_arguments_follow_def_order(loaded, transport):
    api, _, _ = loaded
    assert [p.name for p in api["concat"].params] == ["b", "a"]
    await api.concat("x", "y")
    assert transport.requests[0]["params"] == {"b": "x", "a": "y"}


@pytest.mark.asyncio
async def test_keyword_arguments(loaded, transport):
    api, _, _ = loaded
    await api.concat(a="y", b="x")
    assert transport.requests[0]["params"] == {"b": "x", "a": "y"}
    with pytest.raises(TypeError):
        await api.concat("x", "y", "z")
    with pytest.raises(TypeError):
        await api.concat("x", c="z")
    with pytest.raises(TypeError):
        await api.concat("x", b="x")


@pytest.mark.asyncio
async def test_omitted_optional_parameter_is_absent(loaded, transport):
    api, _, _ = loaded
    await api.log("hello")
    await api.log("hello", None)
    await api.log("hello", ABSENT)
    await api.log("hello", 3)
    params = [request["params"] for request in transport.requests]
    assert params == [{"message": "hello"}] * 3 + [{"message": "hello", "level": 3}]


@pytest.mark.asyncio
async def test_missing_required_parameter(loaded, transport):
    api, _, _ = loaded
    with pytest.raises(TypeMismatch) as e:
        await api.log()
    assert str(e.value) == "message must be a string"
    assert transport.posts == []


@pytest.mark.asyncio
async def test_type_mismatch_is_raised_before_sending(loaded, transport):
    api, types, _ = loaded
    with pytest.raises(TypeMismatch) as e:
        await api.sum([1, 2, "3"])
    assert str(e.value) == "values[2] must be a number"
    with pytest.raises(TypeMismatch) as e:
        await api.geometry.distance(types["Point"](), {"x": 1, "y": 1})
    assert str(e.value) == "b must be an object of type Point"
    with pytest.raises(TypeMismatch) as e:
        await api.geometry.shapes.area(types["Polygon"]("p", [types["Point"]("0", 0)]))
    assert str(e.value) == "Point.x must be a number"
    assert transport.posts == []


@pytest.mark.asyncio
async def test_record_class_or_other_record_is_not_an_instance(loaded, transport):
    api, types, _ = loaded
    Point = types["Point"]
    with pytest.raises(TypeMismatch) as e:
        await api.geometry.distance(Point, Point(1, 1))
    assert str(e.value) == "a must be an object of type Point"
    with pytest.raises(TypeMismatch) as e:
        await api.geometry.distance(types["Segment"](Point(), Point()), Point(1, 1))
    assert str(e.value) == "a must be an object of type Point"
    assert transport.posts == []


@pytest.mark.asyncio
async def test_error_response(loaded, transport):
    api, _, _ = loaded
    transport.handler = lambda request: {
        "jsonrpc": "2.0",
        "id": request["id"],
        "error": {"code": -32000, "message": "boom"},
    }
    with pytest.raises(RpcError) as e:
        await api.sum([1])
    assert str(e.value) == "boom"
    assert e.value.code == -32000


@pytest.mark.asyncio
async def test_error_response_as_bare_string(loaded, transport):
    api, _, _ = loaded
    transport.handler = lambda request: {"jsonrpc": "2.0", "id": request["id"], "error": "Method not known"}
    with pytest.raises(RpcError) as e:
        await api.sum([1])
    assert e.value.message == "Method not known"


@pytest.mark.asyncio
async def test_transport_errors_pass_through(loaded, transport):
    api, _, _ = loaded
    failure = TransportError("connection refused")

    def fail(request):
        raise failure

    transport.handler = fail
    with pytest.raises(TransportError) as e:
        await api.sum([1])
    assert e.value is failure


@pytest.mark.asyncio
async def test_result_is_returned_unchanged(loaded, transport):
    api, _, _ = loaded
    transport.handler = lambda request: {"jsonrpc": "2.0", "id": request["id"], "result": {"x": 1}}
    assert await api.geometry.distance(loaded.types["Point"](), loaded.types["Point"]()) == {"x": 1}


@pytest.mark.asyncio
async def test_ids_are_contiguous_across_stubs(loaded, transport, counter):
    api, _, _ = loaded
    counter._next = 41
    await api.sum([1])
    await api.concat("a", "b")
    await api.log("x")
    await api.sum([])
    assert [request["id"] for request in transport.requests] == [41, 42, 43, 44]
    assert counter.value == 45


@pytest.mark.asyncio
async def test_concurrent_calls_get_their_own_response(loaded, transport):
    api, _, _ = loaded

    async def reply_later(request):
        # later requests are answered first
        await asyncio.sleep(0.01 * (5 - request["id"]))
        return {"jsonrpc": "2.0", "id": request["id"], "result": sum(request["params"]["values"])}

    transport.handler = reply_later
    results = await asyncio.gather(*(api.sum([i, i]) for i in range(5)))
    assert results == [0, 2, 4, 6, 8]


def test_counter_is_thread_safe():
    counter = CallIdCounter()
    allocated = []

    def allocate():
        ids = [counter.next() for _ in range(1000)]
        allocated.extend(ids)

    threads = [threading.Thread(target=allocate) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert sorted(allocated) == list(range(8000))


@pytest.mark.asyncio
async def test_process_wide_counter_is_the_default():
    transport = FakeTransport()
    first = build_call("a", [], None, "/rpc", transport)
    second = build_call("b", [], None, "/rpc", transport)
    start = call_ids.value
    await first()
    await second()
    await first()
    assert [request["id"] for request in transport.requests] == [start, start + 1, start + 2]


def test_signature_and_doc(loaded):
    api, _, _ = loaded
    stub = api.geometry.distance
    assert stub.signature() == "geometry.distance(a: Point, b: Point) -> number"
    assert api.log.signature() == "log(message: string, level?: number) -> null"
    assert stub.__doc__.splitlines()[0] == "Distance between two points"
    assert "    a (Point): first point" in stub.__doc__
    assert "Returns: number the distance" in stub.__doc__
