import json
import threading
import urllib.error
import urllib.request

import pytest

from rinhapay.handlers import PaymentHandler
from rinhapay.server import get_env, main, make_server

UNREACHABLE = "http://127.0.0.1:9/process"


@pytest.fixture
def base_url():
    handler = PaymentHandler(UNREACHABLE, UNREACHABLE, queue_size=100)
    server = make_server(handler, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}"
    server.shutdown()
    server.server_close()
    thread.join()
    handler.stop()


def _request(url, method="GET", body=None):
    request = urllib.request.Request(url, data=body, method=method)
    if body is not None:
        request.add_header("Content-Type", "application/json")
    try:
        with urllib.request.urlopen(request, timeout=5) as response:
            return response.status, response.headers.get("Content-Type"), response.read()
    except urllib.error.HTTPError as exc:
        with exc:
            return exc.code, exc.headers.get("Content-Type"), exc.read()


def test_health_endpoint(base_url):
    status, content_type, body = _request(base_url + "/health")
    assert status == 200
    assert content_type == "text/plain"
    assert body == b"ok"


def test_payments_rejects_get(base_url):
    status, _, body = _request(base_url + "/payments")
    assert status == 405
    assert body == b"Method not allowed\n"


def test_payments_accepts_post(base_url):
    payload = json.dumps({"amount": 10, "type": "pix"}).encode()
    status, content_type, body = _request(base_url + "/payments", "POST", payload)
    assert status == 202
    assert content_type == "application/json"
    assert json.loads(body)["status"] == "accepted"


def test_payments_rejects_bad_json(base_url):
    status, _, body = _request(base_url + "/payments", "POST", b"{")
    assert status == 400
    assert body == b"Invalid JSON\n"


def test_summary_endpoint(base_url):
    status, _, body = _request(base_url + "/payments-summary?x=1")
    assert status == 200
    assert list(json.loads(body)) == [
        "total_payments",
        "default_success",
        "fallback_success",
        "total_errors",
    ]


def test_unknown_path_is_not_found(base_url):
    status, _, body = _request(base_url + "/nope")
    assert status == 404
    assert body == b"404 page not found\n"


def test_get_env_uses_value(monkeypatch):
    monkeypatch.setenv("RINHAPAY_TEST_URL", "http://localhost/process")
    assert get_env("RINHAPAY_TEST_URL", "fallback") == "http://localhost/process"


@pytest.mark.parametrize("value", [None, ""])
def test_get_env_falls_back(monkeypatch, value):
    if value is None:
        monkeypatch.delenv("RINHAPAY_TEST_URL", raising=False)
    else:
        monkeypatch.setenv("RINHAPAY_TEST_URL", value)
    assert get_env("RINHAPAY_TEST_URL", "fallback") == "fallback"


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit) as info:
        main(["--port", "notaport"])
    assert info.value.code == 2