"""
Host Client — 編輯器端呼叫宿主 Sync Server 的 HTTP 封裝
"""

import time
from typing import Optional

import requests


class HostConnectionError(Exception):
    """重試後仍無法連到宿主."""


class HostClient:
    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 51234,
        timeout: float = 5.0,
        retries: int = 2,
        retry_delay: float = 0.5,
        session: Optional[requests.Session] = None,
    ):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.retries = retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "User-Agent": "gh-codesync-client/1.0",
        })

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    def ping(self) -> bool:
        """GET / 是否回 pong."""
        try:
            resp = self.session.get(self.base_url, timeout=self.timeout)
        except requests.exceptions.RequestException:
            return False
        if resp.status_code != 200:
            return False
        try:
            data = resp.json()
        except ValueError:
            return False
        return data.get("status") == "success" and data.get("result", {}).get("message") == "pong"

    def send(self, message: dict) -> Optional[dict]:
        """送出一則訊息；連線/逾時錯誤有限次重試，最後拋 HostConnectionError。

        宿主沒有回覆（204）時回傳 None。
        """
        last_error = None
        for attempt in range(self.retries + 1):
            try:
                resp = self.session.post(self.base_url, json=message, timeout=self.timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                last_error = e
                if attempt < self.retries:
                    time.sleep(self.retry_delay)
                continue
            if resp.status_code == 204:
                return None
            resp.raise_for_status()
            return resp.json()
        raise HostConnectionError(f"Could not reach host at {self.base_url}: {last_error}")

    def health_check(self) -> bool:
        try:
            reply = self.send({"type": "healthCheck"})
        except (HostConnectionError, requests.exceptions.RequestException, ValueError):
            return False
        return bool(reply) and reply.get("status") == "ok"

    def send_script_update(self, component_id: str, code: str) -> Optional[dict]:
        return self.send({"type": "setScript", "target": component_id, "code": code})

    def close(self) -> None:
        self.session.close()
