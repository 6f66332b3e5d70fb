"""
Message Handler — 處理編輯器送來的 {type, ...} 訊息

  setScript   → unwrap → 在宿主執行緒上 applySource → scriptUpdated / error
  healthCheck → {"type": "healthCheck", "status": "ok"}
  未知 type    → 記錄後忽略（不回覆）
  JSON 壞掉    → 回一個 error
"""

import json
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional, Tuple

from .applier import DocumentApplier
from .host_thread import HostThread
from .sync_coordinator import SyncCoordinator


def _print_line(msg: str) -> None:
    print(f"   {msg}")


def error_reply(message: str) -> dict:
    return {"type": "error", "message": message}


class MessageHandler:
    def __init__(
        self,
        coordinator: SyncCoordinator,
        applier: DocumentApplier,
        host_thread: Optional[HostThread] = None,
        log: Optional[Callable[[str], None]] = None,
        timeout: float = 30.0,
    ):
        self.coordinator = coordinator
        self.applier = applier
        self.host_thread = host_thread
        self.log = log or _print_line
        self.timeout = timeout

    def handle(self, raw) -> Optional[dict]:
        """處理一則原始訊息，回傳要送回的訊息（None 表示不回覆）。"""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            self.log(f"❌ Error handling message: {e}")
            return error_reply(f"Failed to process message: {e}")
        if not isinstance(message, dict):
            self.log("❌ Error handling message: envelope is not a JSON object")
            return error_reply("Failed to process message: envelope must be a JSON object")

        message_type = message.get("type")
        if message_type == "setScript":
            return self._handle_set_script(message)
        if message_type == "healthCheck":
            return {"type": "healthCheck", "status": "ok"}
        self.log(f"⚠️  Unknown message type: {message_type}")
        return None

    def _handle_set_script(self, message: dict) -> dict:
        target = message.get("target") or ""
        code = message.get("code")
        if not isinstance(code, str) or not code:
            return error_reply("Code content is empty")

        success, error = self.update_script_component(str(target), code)
        if success:
            self.log(f"✅ Script updated: {target or '(all)'}")
            return {"type": "scriptUpdated", "target": target, "status": "success"}
        self.log(f"❌ {error}")
        return error_reply(error)

    def update_script_component(self, target: str, code: str) -> Tuple[bool, Optional[str]]:
        """在宿主執行緒上 unwrap + apply；例外一律轉成 (False, 訊息)。"""

        def job():
            try:
                cleaned = self.coordinator.import_from_editing(target, code)
                if self.applier.apply_source(target, cleaned):
                    return True, None
                return False, "No matching script component found"
            except Exception as e:
                return False, str(e)

        if self.host_thread is None:
            return job()
        try:
            return self.host_thread.call(job, timeout=self.timeout)
        except (FutureTimeoutError, RuntimeError) as e:
            return False, f"Failed to update script: {str(e) or 'timed out'}"
