import io
import json

import pytest
import responses

from apavs.graphql import Client, GraphQLError, Request

ENDPOINT = "https://graph.example.com/subgraphs/test"

QUERY = """{
    protocols(first: 2, block: {number: 21378000}) {
        id
        pools {
            id
        }
    }
    contractToPoolMappings(first: 2, block: {number: 21378000}) {
        id
        pool {
            id
        }
    }
}"""

SAMPLE_DATA = {
    "protocols": [
        {
            "id": "1",
            "pools": [
                {"id": "0x" + "11" * 20},
                {"id": "0xcfbf336fe147d643b9cb705648500e101504b16d"},
            ],
        }
    ],
    "contractToPoolMappings": [
        {
            "id": "0x0002bfcce657a4beb498e23201bd767fc5a0a0d5",
            "pool": {"id": "0x" + "22" * 20},
        }
    ],
}


@pytest.fixture
def mock():
    with responses.RequestsMock() as rsps:
        yield rsps


def _capture(mock, seen, body, status=200):
    def callback(request):
        seen.append(request)
        return status, {}, body

    mock.add_callback(responses.POST, ENDPOINT, callback=callback, content_type="application/json")


def test_simple_query(mock):
    seen = []
    _capture(mock, seen, json.dumps({"data": SAMPLE_DATA}))
    resp = Client(ENDPOINT).run(Request(QUERY))

    assert len(resp["protocols"]) > 0
    assert len(resp["contractToPoolMappings"]) > 0
    assert resp["protocols"][0]["id"] == "1"
    assert resp["protocols"][0]["pools"][1]["id"] == "0xcfbf336fe147d643b9cb705648500e101504b16d"
    assert resp["contractToPoolMappings"][0]["id"] == "0x0002bfcce657a4beb498e23201bd767fc5a0a0d5"
    assert json.loads(seen[0].body) == {"query": QUERY, "variables": {}}


def test_variables_and_headers_are_sent(mock):
    seen = []
    _capture(mock, seen, json.dumps({"data": {"ok": True}}))
    req = Request("query($n: Int) { x(n: $n) }")
    req.var("n", 5)
    req.header["Authorization"] = "Bearer token"

    assert Client(ENDPOINT).run(req) == {"ok": True}
    assert json.loads(seen[0].body)["variables"] == {"n": 5}
    assert seen[0].headers["Authorization"] == "Bearer token"


def test_log_receives_request_description(mock):
    _capture(mock, [], json.dumps({"data": {}}))
    messages = []
    req = Request("{ a }")
    req.var("k", "v")
    Client(ENDPOINT, log=messages.append).run(req)
    assert len(messages) == 1
    assert messages[0].startswith("request variables:")
    assert "{ a }" in messages[0]


def test_first_server_error_is_raised(mock):
    body = json.dumps({"errors": [{"message": "boom"}, {"message": "second"}]})
    _capture(mock, [], body)
    with pytest.raises(GraphQLError) as info:
        Client(ENDPOINT).run(Request("{ a }"))
    assert str(info.value) == "graphql: boom"
    assert info.value.message == "boom"


def test_non_success_status_raises(mock):
    _capture(mock, [], "oops", status=500)
    with pytest.raises(GraphQLError, match="non-200 status code: 500"):
        Client(ENDPOINT).run(Request("{ a }"))


def test_undecodable_body_raises(mock):
    _capture(mock, [], "not json")
    with pytest.raises(GraphQLError, match="decoding response"):
        Client(ENDPOINT).run(Request("{ a }"))


def test_multipart_form_carries_query_variables_and_files(mock):
    seen = []
    _capture(mock, seen, json.dumps({"data": {"uploaded": 1}}))
    req = Request("mutation { upload }")
    req.var("a", 1)
    req.file("attachment", "doc.txt", io.BytesIO(b"file-content"))

    result = Client(ENDPOINT, use_multipart_form=True).run(req)

    assert result == {"uploaded": 1}
    sent = seen[0]
    body = sent.body if isinstance(sent.body, bytes) else sent.body.encode()
    assert sent.headers["Content-Type"].startswith("multipart/form-data")
    assert b'name="query"' in body
    assert b"mutation { upload }" in body
    assert b'name="variables"' in body
    assert b'{"a":1}' in body
    assert b'filename="doc.txt"' in body
    assert b"file-content" in body


def test_request_collects_files_and_vars():
    req = Request("{ a }")
    reader = io.BytesIO(b"x")
    req.file("f", "name.bin", reader)
    req.var("x", [1, 2])
    assert req.files[0].field == "f"
    assert req.files[0].name == "name.bin"
    assert req.files[0].reader is reader
    assert req.vars == {"x": [1, 2]}
    assert req.query == "{ a }"