"""
Editor-side Watcher — 監聽暫存工作目錄

  <id>.cs 存檔    → 讀檔（有限次重試）→ 送 setScript 給宿主 → 更新 csproj
  connect.cmd 變更 → 驗證內容 → 通知編輯器開啟對應檔案

所有事件都以 coroutine 排進同一個 loop，依序處理；同一檔案連續存檔會排隊而不是被丟掉。
"""

import asyncio
from pathlib import Path
from typing import Callable, Optional

import requests
from watchdog.events import FileSystemEventHandler

from .client import HostClient, HostConnectionError
from .sync_coordinator import CONNECT_FILE_NAME, ConnectDescriptor, SyncCoordinator


class ScriptSaveHandler(FileSystemEventHandler):
    """檔案變更事件處理器；同內容重複事件以內容比對略過（不用時間防抖）。"""

    def __init__(
        self,
        coordinator: SyncCoordinator,
        client: HostClient,
        loop: asyncio.AbstractEventLoop,
        on_connect: Optional[Callable[[ConnectDescriptor, Path], None]] = None,
    ):
        self.coordinator = coordinator
        self.client = client
        self.loop = loop
        self.on_connect = on_connect
        self.last_sent: dict = {}

    def on_modified(self, event):
        self._dispatch(event.src_path, event.is_directory)

    def on_created(self, event):
        # 第一次出現的原始碼檔是宿主剛匯出的；已知 id 的新建事件是「刪除再重建」式存檔
        self._dispatch(event.src_path, event.is_directory, created=True)

    def on_moved(self, event):
        # 編輯器以「寫暫存檔再改名」方式存檔
        self._dispatch(event.dest_path, event.is_directory)

    def _dispatch(self, src_path, is_directory: bool, created: bool = False) -> None:
        if is_directory:
            return
        path = Path(src_path)
        if path.name == CONNECT_FILE_NAME:
            asyncio.run_coroutine_threadsafe(self.handle_connect(path), self.loop)
        elif path.suffix == self.coordinator.settings.extension:
            task = self.handle_created(path) if created else self.sync_file(path)
            asyncio.run_coroutine_threadsafe(task, self.loop)

    async def handle_created(self, path: Path) -> Optional[dict]:
        """新檔案：沒送過的 id 只記住內容（剛匯出），已知 id 當一般存檔送出。"""
        if path.stem in self.last_sent:
            return await self.sync_file(path)
        code = self.coordinator.read_source_file(path)
        if code is not None:
            self.last_sent[path.stem] = code
        return None

    async def sync_file(self, path: Path) -> Optional[dict]:
        """把一個存檔送給宿主，回傳宿主的回覆（略過或失敗時為 None）。"""
        # 讀檔重試與 HTTP 都是阻塞呼叫；這個 loop 只負責讓存檔一個接一個處理
        component_id = path.stem
        code = self.coordinator.read_source_file(path)
        if code is None:
            return None
        if self.last_sent.get(component_id) == code:
            return None

        print(f"\n🔄 File changed: {path}")
        try:
            reply = self.client.send_script_update(component_id, code)
        except (HostConnectionError, requests.exceptions.RequestException, ValueError) as e:
            print(f"   ❌ {e}")
            return None

        if reply and reply.get("type") == "scriptUpdated":
            self.last_sent[component_id] = code
            self.coordinator.refresh_project_file(code)
            print(f"   ✅ Script updated: {component_id}")
        elif reply and reply.get("type") == "error":
            print(f"   ❌ Host error: {reply.get('message')}")
        return reply

    async def handle_connect(self, path: Path) -> Optional[ConnectDescriptor]:
        try:
            descriptor = ConnectDescriptor.load(path)
        except ValueError as e:
            print(f"   ⚠️  Invalid {CONNECT_FILE_NAME}: {e}")
            return None
        if descriptor is None:
            return None

        source = self.coordinator.source_path(descriptor.guid)
        code = self.coordinator.read_source_file(source)
        if code is None:
            print(f"   ⚠️  Source file not found: {source}")
            return None

        # 剛匯出的內容不必再送回宿主
        self.last_sent[descriptor.guid] = code
        print(f"   📄 Component {descriptor.guid} ready: {source}")
        if self.on_connect:
            self.on_connect(descriptor, source)
        return descriptor
