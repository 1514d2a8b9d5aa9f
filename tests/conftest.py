import json
import re

import pytest
from requests import Response


ACL_INFORMATION = {
    "requestId": "req-2",
    "status": "ok",
    "type": "GetACLInformation",
    "result": [
        {
            "host": "h1",
            "initiator": [{"ip": "10.0.0.1", "name": "iqn.1994-05.com.redhat:h1"}],
        }
    ],
}


def make_response(status_code, body):
    response = Response()
    response.status_code = status_code
    if not isinstance(body, str):
        body = json.dumps(body)
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeCluster(object):
    """Stands in for requests.get, answering by management command type."""

    def __init__(self):
        self.calls = list()
        self.responses = {
            "PersistACLAccess": (200, {"requestId": "req-1", "status": "ok"}),
            "GetACLInformation": (200, ACL_INFORMATION),
            "RemoveACLAccess": (200, {"requestId": "req-3", "status": "ok"}),
        }

    def respond(self, request_type, status_code=200, body=None):
        self.responses[request_type] = (status_code, body if body is not None else {})

    def __call__(self, uri, **kwargs):
        request = kwargs["params"]["request"]
        request_type = re.match(r"\{type:(\w+),", request).group(1)
        self.calls.append({"uri": uri, "type": request_type, "request": request})
        status_code, body = self.responses[request_type]
        if isinstance(body, Exception):
            raise body
        return make_response(status_code, body)

    @property
    def types(self):
        return [c["type"] for c in self.calls]


@pytest.fixture
def cluster(monkeypatch):
    fake = FakeCluster()
    monkeypatch.setattr("hedvig.lib.common.get", fake)
    return fake


@pytest.fixture
def config():
    return {
        "debug": False,
        "connection": "test",
        "description": "Test cluster",
        "api_host": "node1:80",
        "api_scheme": "http",
        "api_prefix": "/rest/",
        "session_id": "sess-1",
        "verify_ssl": True,
    }
