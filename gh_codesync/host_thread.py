"""宿主執行緒：所有宿主物件變更都排進同一個 event loop 依序執行."""

import asyncio
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Optional


class HostThread:
    """在獨立執行緒中運行 event loop。

    submit() 依呼叫順序（FIFO）執行；同一元件連續存檔會排隊，不會被丟掉。
    """

    def __init__(self, name: str = "gh-codesync-host"):
        self.name = name
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self.loop = asyncio.new_event_loop()

        def run_loop():
            asyncio.set_event_loop(self.loop)
            self.loop.run_forever()

        self._thread = threading.Thread(target=run_loop, name=self.name, daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        if not self.running:
            return
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout)
        self.loop.close()
        self._thread = None
        self.loop = None

    def submit(self, fn: Callable[..., Any], *args) -> Future:
        if not self.running:
            raise RuntimeError("host thread is not running")

        async def job():
            return fn(*args)

        return asyncio.run_coroutine_threadsafe(job(), self.loop)

    def call(self, fn: Callable[..., Any], *args, timeout: Optional[float] = None) -> Any:
        """等待結果；逾時時若 job 還在排隊就放棄執行，已開始的 job 無法中斷。"""
        abandoned = threading.Event()

        def guarded():
            if abandoned.is_set():
                return None
            return fn(*args)

        future = self.submit(guarded)
        try:
            return future.result(timeout)
        except FutureTimeoutError:
            abandoned.set()
            future.cancel()
            raise

    def __enter__(self) -> "HostThread":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
