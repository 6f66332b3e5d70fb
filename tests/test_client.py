"""
HostClient mock 測試
不需要真實宿主，requests.Session 全部用 MagicMock。
"""
from unittest.mock import MagicMock

import pytest
import requests
from gh_codesync.client import HostClient, HostConnectionError


def make_response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    return resp


def make_client(**kwargs):
    session = MagicMock()
    session.headers = {}
    client = HostClient(port=51300, retry_delay=0.0, session=session, **kwargs)
    return client, session


# ─── send / send_script_update ───────────────────────────────────────────────

class TestSend:
    def test_script_update_envelope(self):
        client, session = make_client()
        session.post.return_value = make_response(
            payload={"type": "scriptUpdated", "target": "abc", "status": "success"}
        )
        reply = client.send_script_update("abc", "int x;")

        assert reply["type"] == "scriptUpdated"
        args, kwargs = session.post.call_args
        assert args[0] == "http://127.0.0.1:51300/"
        assert kwargs["json"] == {"type": "setScript", "target": "abc", "code": "int x;"}

    def test_no_content_returns_none(self):
        client, session = make_client()
        session.post.return_value = make_response(status=204)
        assert client.send({"type": "unknown"}) is None

    def test_retries_connection_errors(self):
        client, session = make_client(retries=2)
        session.post.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.Timeout("slow"),
            make_response(payload={"type": "healthCheck", "status": "ok"}),
        ]
        assert client.send({"type": "healthCheck"}) == {"type": "healthCheck", "status": "ok"}
        assert session.post.call_count == 3

    def test_gives_up_after_retries(self):
        client, session = make_client(retries=1)
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(HostConnectionError):
            client.send({"type": "healthCheck"})
        assert session.post.call_count == 2

    def test_session_headers_configured(self):
        client, session = make_client()
        assert session.headers["Content-Type"] == "application/json"


# ─── health_check / ping ─────────────────────────────────────────────────────

class TestHealth:
    def test_health_check_ok(self):
        client, session = make_client()
        session.post.return_value = make_response(payload={"type": "healthCheck", "status": "ok"})
        assert client.health_check() is True

    def test_health_check_unreachable(self):
        client, session = make_client(retries=0)
        session.post.side_effect = requests.exceptions.ConnectionError("refused")
        assert client.health_check() is False

    def test_ping_pong(self):
        client, session = make_client()
        session.get.return_value = make_response(
            payload={"status": "success", "result": {"message": "pong"}}
        )
        assert client.ping() is True

    def test_ping_wrong_server(self):
        client, session = make_client()
        session.get.return_value = make_response(payload={"hello": "world"})
        assert client.ping() is False

    def test_ping_non_json(self):
        client, session = make_client()
        resp = make_response()
        resp.json.side_effect = ValueError("no json")
        session.get.return_value = resp
        assert client.ping() is False

    def test_ping_connection_refused(self):
        client, session = make_client()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        assert client.ping() is False
