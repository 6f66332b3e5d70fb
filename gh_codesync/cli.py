#!/usr/bin/env python3
"""
gh-codesync CLI — 腳本元件 ↔ 外部編輯器 雙向同步

  python -m gh_codesync.cli export <component-id> <source-file>   # 宿主 → 編輯器
  python -m gh_codesync.cli strip <ide-file>                     # 移除 IDE 輔助碼
  python -m gh_codesync.cli serve --document DIR                 # 宿主端 Sync Server
  python -m gh_codesync.cli watch                                # 編輯器端：存檔 → 宿主
  python -m gh_codesync.cli health                               # 宿主健康檢查
  python -m gh_codesync.cli cleanup                              # 刪除暫存工作目錄
"""

import argparse
import asyncio
import sys
import threading
import time
from pathlib import Path

from watchdog.observers import Observer

from gh_codesync import __version__

from .applier import DirectoryDocument, DocumentApplier
from .client import HostClient
from .config import SyncSettings, load_config
from .host_thread import HostThread
from .ide_transformer import unwrap
from .message_handler import MessageHandler
from .server import SyncServer
from .sync_coordinator import SyncCoordinator
from .watcher import ScriptSaveHandler


def _make_client(settings: SyncSettings) -> HostClient:
    return HostClient(
        host=settings.host,
        port=settings.port,
        timeout=settings.timeout,
        retries=settings.retries,
    )


def cmd_export(args, settings: SyncSettings) -> int:
    """Export: 讀原始碼 → wrap → 寫出編輯用工作目錄."""
    source = Path(args.source_file)
    if not source.is_file():
        print(f"❌ 找不到原始碼檔案：{source}")
        return 1
    raw_code = source.read_text(encoding="utf-8")

    print(f"🚀 Exporting {args.component_id} for editing")
    coordinator = SyncCoordinator(settings)
    result = coordinator.export_for_editing(args.component_id, raw_code)
    if result is None:
        return 1
    print(f"   📄 Source:     {result.file_path}")
    print(f"   📄 Descriptor: {result.descriptor_path}")
    print(f"   📄 Project:    {result.project_path}")
    return 0


def cmd_strip(args, settings: SyncSettings) -> int:
    """Strip: 把 IDE 文件還原成宿主原始碼，輸出到 stdout."""
    path = Path(args.ide_file)
    coordinator = SyncCoordinator(settings)
    code = coordinator.read_source_file(path)
    if code is None:
        return 1
    sys.stdout.write(unwrap(code))
    return 0


def cmd_serve(args, settings: SyncSettings) -> int:
    """Serve: 以目錄模擬宿主文件，啟動 Sync Server."""
    document = DirectoryDocument(args.document, settings.extension)
    if not document.root.is_dir():
        print(f"❌ 文件目錄不存在：{document.root}")
        return 1

    coordinator = SyncCoordinator(settings)
    applier = DocumentApplier(lambda: document, empty_target=settings.empty_target)
    port = args.port or settings.port

    print(f"👀 Serving document '{document.root}'")
    print("   Press Ctrl+C to stop.")
    with HostThread() as host_thread:
        handler = MessageHandler(coordinator, applier, host_thread=host_thread)
        with SyncServer(handler, host=settings.host, port=port):
            try:
                while True:
                    time.sleep(1)
            except KeyboardInterrupt:
                print("\n👋 Stopping server...")
    return 0


def cmd_watch(args, settings: SyncSettings) -> int:
    """Watch: 監聽暫存工作目錄，存檔時送給宿主."""
    coordinator = SyncCoordinator(settings)
    coordinator.temp_dir.mkdir(parents=True, exist_ok=True)
    client = _make_client(settings)

    print(f"👀 Watching for changes in '{coordinator.temp_dir}'...")
    print(f"   Host: {client.base_url}")
    print("   Press Ctrl+C to stop.")
    if not client.ping():
        print("   ⚠️  Host is not reachable yet; saves will be retried when sent.")

    # 在獨立執行緒中運行 event loop，watchdog 執行緒用 run_coroutine_threadsafe 排入
    loop = asyncio.new_event_loop()

    def run_loop():
        asyncio.set_event_loop(loop)
        loop.run_forever()

    loop_thread = threading.Thread(target=run_loop, daemon=True)
    loop_thread.start()

    def announce(descriptor, source):
        print(f"   💡 Open {source} in your editor ({descriptor.command})")

    event_handler = ScriptSaveHandler(coordinator, client, loop, on_connect=announce)
    observer = Observer()
    observer.schedule(event_handler, path=str(coordinator.temp_dir), recursive=False)
    observer.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n👋 Stopping watch...")
        observer.stop()
    finally:
        observer.join()
        loop.call_soon_threadsafe(loop.stop)
        client.close()
    return 0


def cmd_health(args, settings: SyncSettings) -> int:
    client = _make_client(settings)
    try:
        if client.health_check():
            print(f"✅ Host OK: {client.base_url}")
            return 0
        print(f"❌ Host not reachable: {client.base_url}")
        return 1
    finally:
        client.close()


def cmd_cleanup(args, settings: SyncSettings) -> int:
    SyncCoordinator(settings).cleanup_all()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="gh-codesync: Script component <-> external editor sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", "-c", default="gh-codesync.config.json", help="Config path")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    export_p = sub.add_parser("export", help="Host → Editor",
        epilog="Examples:\n  gh-codesync export 3f2b9c1e-0d4a-4e55-9a8e-1b2c3d4e5f60 script.cs",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    export_p.add_argument("component_id", help="Component instance id (GUID)")
    export_p.add_argument("source_file", help="File holding the component's raw source")

    strip_p = sub.add_parser("strip", help="Remove IDE helpers and print the raw source")
    strip_p.add_argument("ide_file", help="Wrapped source file")

    serve_p = sub.add_parser("serve", help="Run the host endpoint over a directory document",
        epilog="Examples:\n  gh-codesync serve --document ./scripts\n  gh-codesync serve --document ./scripts --port 51300",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    serve_p.add_argument("--document", required=True, help="Directory of <id>.cs files acting as the host document")
    serve_p.add_argument("--port", type=int, help="Override transport.port")

    sub.add_parser("watch", help="Editor → Host: send saves to the host")
    sub.add_parser("health", help="Ping the host")
    sub.add_parser("cleanup", help="Delete the temporary workspace")
    return parser


_COMMANDS = {
    "export": cmd_export,
    "strip": cmd_strip,
    "serve": cmd_serve,
    "watch": cmd_watch,
    "health": cmd_health,
    "cleanup": cmd_cleanup,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = SyncSettings.from_config(load_config(args.config))

    command = _COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0
    return command(args, settings)


if __name__ == "__main__":
    sys.exit(main())
