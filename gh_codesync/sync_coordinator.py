"""
Sync Coordinator — 匯出腳本到暫存工作目錄、從編輯器匯入

export：wrap → 寫出 <id>.cs + connect.cmd + gh_component.csproj
import：unwrap → 回傳乾淨原始碼，交給 Component Applier
所有 I/O 失敗都在這一層攔下、記錄，回傳 None / False。
"""

import json
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .config import SyncSettings
from .ide_transformer import unwrap, wrap
from .project_file import (
    PROJECT_FILE_NAME,
    build_project_xml,
    extract_reference_directives,
    merge_package_references,
)

CONNECT_COMMAND = "GHCodeSync.connect"
CONNECT_FILE_NAME = "connect.cmd"
GUIDE_FILE_NAME = "README.md"

USAGE_GUIDE = """# gh-codesync workspace

Each `<component-id>.cs` file in this folder mirrors one script component.

- Edit the code freely and save; the host updates the component on every save.
- Do not edit the `#region DummyMembers` block or the `namespace GH_Scripts_...` line.
  They only exist so the editor can resolve host types and are removed on import.
- `#r "nuget: ..."` directives appear commented out (`//#r`) and are restored on import.
- This folder is temporary and is deleted when the host shuts down.
"""


def _print_line(msg: str) -> None:
    print(f"   {msg}")


@dataclass
class ConnectDescriptor:
    """connect.cmd 的內容：告訴編輯器端新檔案對應哪個元件."""
    guid: str
    command: str = CONNECT_COMMAND

    def to_json(self) -> str:
        return json.dumps({"command": self.command, "guid": self.guid})

    @classmethod
    def from_dict(cls, data) -> "ConnectDescriptor":
        if not isinstance(data, dict):
            raise ValueError("connect.cmd is empty or invalid")
        if not data.get("command"):
            raise ValueError("command is required")
        if not data.get("guid"):
            raise ValueError("guid is required")
        return cls(guid=str(data["guid"]), command=str(data["command"]))

    @classmethod
    def load(cls, path) -> Optional["ConnectDescriptor"]:
        """讀取 connect.cmd；檔案不存在回傳 None，內容錯誤拋 ValueError。"""
        p = Path(path)
        if not p.exists():
            return None
        return cls.from_dict(json.loads(p.read_text(encoding="utf-8")))


@dataclass
class ExportResult:
    file_path: Path
    descriptor_path: Path
    project_path: Path


class SyncCoordinator:
    """擁有一個暫存工作目錄的同步協調器（非全域單例）。

    可當 context manager 使用；cleanup_on_exit=True 時離開時清掉整個目錄。
    """

    def __init__(
        self,
        settings: Optional[SyncSettings] = None,
        log: Optional[Callable[[str], None]] = None,
        cleanup_on_exit: bool = False,
    ):
        self.settings = settings or SyncSettings()
        self.log = log or _print_line
        self.cleanup_on_exit = cleanup_on_exit

    @property
    def temp_dir(self) -> Path:
        return Path(self.settings.temp_dir)

    def source_path(self, component_id: str) -> Path:
        return self.temp_dir / f"{component_id}{self.settings.extension}"

    def export_for_editing(self, component_id: str, raw_code: str) -> Optional[ExportResult]:
        """wrap 後寫出編輯用檔案；任何 I/O 失敗回傳 None。"""
        try:
            self.temp_dir.mkdir(parents=True, exist_ok=True)

            project_path = self.temp_dir / PROJECT_FILE_NAME
            project_path.write_text(self._project_xml(raw_code), encoding="utf-8")

            file_path = self.source_path(component_id)
            file_path.write_text(wrap(raw_code, component_id), encoding="utf-8", newline="")

            # 共用一個 connect.cmd，最後一次匯出為準
            descriptor_path = self.temp_dir / CONNECT_FILE_NAME
            descriptor_path.write_text(ConnectDescriptor(component_id).to_json(), encoding="utf-8")

            if self.settings.write_guide:
                (self.temp_dir / GUIDE_FILE_NAME).write_text(USAGE_GUIDE, encoding="utf-8")
        except OSError as e:
            self.log(f"❌ Error preparing component files: {e}")
            return None

        self.log(f"✅ Exported {component_id} to {file_path}")
        return ExportResult(file_path, descriptor_path, project_path)

    def import_from_editing(self, component_id: str, ide_code: str) -> str:
        """unwrap 編輯器送回的程式碼；不碰宿主物件。"""
        cleaned = unwrap(ide_code)
        if cleaned != ide_code:
            self.log(f"🔄 Stripped IDE helpers from {component_id}")
        return cleaned

    def read_source_file(self, path) -> Optional[str]:
        """讀取編輯器存檔；檔案暫時被鎖住時有限次重試。"""
        attempts = max(1, self.settings.read_retries)
        last_error = None
        for attempt in range(attempts):
            try:
                with open(path, "r", encoding="utf-8", newline="") as f:
                    return f.read()
            except OSError as e:
                last_error = e
                if attempt < attempts - 1:
                    time.sleep(self.settings.read_retry_delay)
        self.log(f"❌ Could not read {path} after {attempts} attempts: {last_error}")
        return None

    def refresh_project_file(self, ide_code: str) -> bool:
        """依編輯中程式碼的 #r 指令更新 csproj（版本不同就更新，沒有就新增）。"""
        references = extract_reference_directives(ide_code)
        if not references:
            return False
        project_path = self.temp_dir / PROJECT_FILE_NAME
        try:
            if not project_path.exists():
                return False
            xml_text = project_path.read_text(encoding="utf-8")
            merged = merge_package_references(xml_text, references)
            if merged != xml_text:
                project_path.write_text(merged, encoding="utf-8")
        except (OSError, SyntaxError) as e:
            # ET.ParseError 是 SyntaxError 的子類別
            self.log(f"⚠️  Could not update {PROJECT_FILE_NAME}: {e}")
            return False
        return True

    def cleanup_all(self) -> None:
        """刪除整個暫存工作目錄；失敗只記錄不拋出。"""
        if not self.temp_dir.exists():
            return
        try:
            shutil.rmtree(self.temp_dir)
            self.log("✅ Temporary files cleaned up")
        except OSError as e:
            self.log(f"⚠️  Error cleaning up temporary files: {e}")

    def _project_xml(self, raw_code: str) -> str:
        return build_project_xml(
            extract_reference_directives(raw_code),
            target_framework=self.settings.target_framework,
            lang_version=self.settings.lang_version,
            host_version=self.settings.host_version,
        )

    def __enter__(self) -> "SyncCoordinator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.cleanup_on_exit:
            self.cleanup_all()
