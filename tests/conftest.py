import asyncio
import copy
import json

import pytest

from autojsonclient import CallIdCounter, build_api
from autojsonclient.transport import Transport

DESCRIPTION = {
    "type": "jsonwsp/description",
    "version": "1.0",
    "servicename": "geometry",
    "url": "http://localhost:8080/",
    "types": {
        # refers to a type declared after it
        "Segment": {"start": "Point", "end": "Point"},
        "Point": {"x": "number", "y": "number"},
        "Polygon": {"name": "string", "points": ["Point"], "closed": "boolean"},
    },
    "methods": {
        "geometry.distance": {
            "doc_lines": ["Distance between two points"],
            "params": {
                "b": {"def_order": 2, "type": "Point", "optional": False, "doc_lines": []},
                "a": {"def_order": 1, "type": "Point", "optional": False, "doc_lines": ["first point"]},
            },
            "ret_info": {"type": "number", "doc_lines": ["the distance"]},
        },
        "geometry.shapes.area": {
            "doc_lines": [],
            "params": {
                "polygon": {"def_order": 1, "type": "Polygon", "optional": False, "doc_lines": []},
            },
            "ret_info": {"type": "number", "doc_lines": []},
        },
        "concat": {
            "doc_lines": [],
            "params": {
                "a": {"def_order": 2, "type": "string", "optional": False, "doc_lines": []},
                "b": {"def_order": 1, "type": "string", "optional": False, "doc_lines": []},
            },
            "ret_info": {"type": "string", "doc_lines": []},
        },
        "log": {
            "doc_lines": ["Write to the server log"],
            "params": {
                "message": {"def_order": 1, "type": "string", "optional": False, "doc_lines": []},
                "level": {"def_order": 2, "type": "number", "optional": True, "doc_lines": []},
            },
            "ret_info": {"type": None, "doc_lines": []},
        },
        "sum": {
            "doc_lines": [],
            "params": {
                "values": {"def_order": 1, "type": ["number"], "optional": False, "doc_lines": []},
            },
            "ret_info": {"type": "number", "doc_lines": []},
        },
    },
}


class FakeTransport(Transport):
    """Records the requests and answers them with `handler(request)`, by default a null result."""

    def __init__(self, description=None, handler=None):
        self.description = description
        self.handler = handler or (lambda request: {"jsonrpc": "2.0", "id": request["id"], "result": None})
        self.gets = []
        self.posts = []

    @property
    def requests(self):
        return [request for _, request in self.posts]

    async def get_json(self, url):
        self.gets.append(url)
        return self.description

    async def post_json(self, url, body):
        request = json.loads(body)
        self.posts.append((url, request))
        response = self.handler(request)
        if asyncio.iscoroutine(response):
            response = await response
        return response


@pytest.fixture()
def description():
    return copy.deepcopy(DESCRIPTION)


@pytest.fixture()
def transport(description):
    return FakeTransport(description)


@pytest.fixture()
def counter():
    return CallIdCounter()


@pytest.fixture()
def loaded(description, transport, counter):
    return build_api(description, "http://localhost:8080/", transport, counter)
