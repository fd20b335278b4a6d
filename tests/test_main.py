import pytest
from fastapi.testclient import TestClient

from greeter.config import DEFAULT_GREETING, ServerConfig
from greeter.errors import BindError
from greeter.main import app, bind_socket, create_app, keep_alive_timeout


def test_root():
    client = TestClient(app)
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.text == DEFAULT_GREETING
    assert resp.headers["content-type"].startswith("text/plain")


@pytest.mark.parametrize(
    "method", ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "PURGE", "TRACE", "PROPFIND"]
)
@pytest.mark.parametrize("path", ["/", "/anything", "/docs", "/a/b/c?x=1"])
def test_every_method_and_path(method, path):
    client = TestClient(app)
    resp = client.request(method, path, headers={"X-Test": "1"}, json={"a": 1})
    assert resp.status_code == 200
    assert resp.text == DEFAULT_GREETING


def test_head():
    client = TestClient(app)
    resp = client.head("/anything")
    assert resp.status_code == 200
    assert resp.content == b""


def test_custom_greeting():
    client = TestClient(create_app("hej"))
    assert client.get("/x").text == "hej"


def test_bind_socket_reports_port_in_use():
    first = bind_socket(ServerConfig(host="127.0.0.1", port=0))
    try:
        port = first.getsockname()[1]
        with pytest.raises(BindError) as excinfo:
            bind_socket(ServerConfig(host="127.0.0.1", port=port))
        assert excinfo.value.port == port
    finally:
        first.close()


@pytest.mark.parametrize("seconds,expected", [(0.5, 1), (1.4, 1), (2.5, 2), (60.0, 60)])
def test_keep_alive_timeout_is_whole_seconds_and_never_zero(seconds, expected):
    assert keep_alive_timeout(ServerConfig(idle_timeout=seconds)) == expected
