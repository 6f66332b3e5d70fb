"""
Sync Server — 宿主端的本機 HTTP 端點

  GET  /  → pong（給 HostClient.ping 探測用）
  POST /  → 訊息 envelope，交給 MessageHandler，回傳回覆 envelope（無回覆時 204）
"""

import threading
from typing import Optional

from flask import Blueprint, Flask, jsonify, request
from werkzeug.serving import make_server

from .message_handler import MessageHandler


def create_blueprint(handler: MessageHandler) -> Blueprint:
    bp = Blueprint("codesync", __name__)

    @bp.route("/", methods=["GET"])
    def ping():
        return jsonify({"status": "success", "result": {"message": "pong"}})

    @bp.route("/", methods=["POST"])
    def envelope():
        reply = handler.handle(request.get_data(as_text=True))
        if reply is None:
            return "", 204
        return jsonify(reply)

    return bp


def create_app(handler: MessageHandler) -> Flask:
    app = Flask(__name__)
    app.register_blueprint(create_blueprint(handler))
    return app


class SyncServer:
    """在背景執行緒跑 werkzeug server；start/stop 即生命週期。"""

    def __init__(self, handler: MessageHandler, host: str = "127.0.0.1", port: int = 51234):
        self.handler = handler
        self.host = host
        self.port = port
        self.app = create_app(handler)
        self._server = None
        self._thread: Optional[threading.Thread] = None

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def start(self) -> None:
        if self._server is not None:
            return
        self._server = make_server(self.host, self.port, self.app, threaded=True)
        # port=0 時由系統指派
        self.port = self._server.server_port
        self._thread = threading.Thread(target=self._server.serve_forever, name="gh-codesync-server", daemon=True)
        self._thread.start()
        print(f"   ✅ Sync server started on {self.url}")

    def stop(self) -> None:
        if self._server is None:
            return
        self._server.shutdown()
        self._thread.join(5.0)
        self._server.server_close()
        self._server = None
        self._thread = None
        print("   👋 Sync server stopped")

    def __enter__(self) -> "SyncServer":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
