"""
Component Applier — 把乾淨原始碼寫回宿主文件中的腳本元件並觸發重算

宿主相關的部分（怎麼找到物件、怎麼改）由 ScriptObject / ScriptDocument 的 adapter 實作，
DocumentApplier 只依賴這兩個窄介面。
"""

from pathlib import Path
from typing import Callable, Iterable, Optional

EMPTY_TARGET_NONE = "none"
EMPTY_TARGET_ALL = "all"


class ApplyError(Exception):
    """找得到元件但更新失敗，或沒有作用中的文件。"""


class ScriptObject:
    """宿主文件中的一個物件（adapter 介面）."""

    instance_id: str = ""

    def is_script(self) -> bool:
        raise NotImplementedError

    def set_source(self, code: str) -> None:
        raise NotImplementedError

    def refresh(self) -> None:
        raise NotImplementedError


class ScriptDocument:
    """宿主文件（adapter 介面）."""

    def objects(self) -> Iterable[ScriptObject]:
        raise NotImplementedError


class DocumentApplier:
    """applySource(component_id, cleaned_code) -> bool.

    empty_target 決定空 id 的行為：
      "none" — 不比對任何物件，回傳 False（預設）
      "all"  — 更新文件中所有腳本物件
    """

    def __init__(
        self,
        get_document: Callable[[], Optional[ScriptDocument]],
        empty_target: str = EMPTY_TARGET_NONE,
    ):
        if empty_target not in (EMPTY_TARGET_NONE, EMPTY_TARGET_ALL):
            raise ValueError(f"Unknown empty target policy: {empty_target}")
        self.get_document = get_document
        self.empty_target = empty_target

    def apply_source(self, component_id: str, cleaned_code: str) -> bool:
        document = self.get_document()
        if document is None:
            raise ApplyError("No active document")

        if not component_id:
            if self.empty_target != EMPTY_TARGET_ALL:
                return False
            targets = [obj for obj in document.objects() if obj.is_script()]
            for obj in targets:
                self._update(obj, cleaned_code)
            return bool(targets)

        for obj in document.objects():
            if obj.instance_id != component_id or not obj.is_script():
                continue
            # 同 id 多個物件時只更新第一個
            self._update(obj, cleaned_code)
            return True
        return False

    def _update(self, obj: ScriptObject, code: str) -> None:
        try:
            obj.set_source(code)
            obj.refresh()
        except Exception as e:
            raise ApplyError(f"Failed to update component {obj.instance_id}: {e}") from e


class FileScriptObject(ScriptObject):
    """以單一原始碼檔案代表的腳本物件；refresh 時才寫回磁碟."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.instance_id = self.path.stem
        self._pending: Optional[str] = None

    def is_script(self) -> bool:
        return True

    def set_source(self, code: str) -> None:
        self._pending = code

    def refresh(self) -> None:
        if self._pending is None:
            return
        self.path.write_text(self._pending, encoding="utf-8", newline="")
        self._pending = None


class DirectoryDocument(ScriptDocument):
    """把一個目錄下的 `<id><ext>` 檔案當作宿主文件（serve 指令與測試用）."""

    def __init__(self, root, extension: str = ".cs"):
        self.root = Path(root)
        self.extension = extension

    def objects(self) -> Iterable[ScriptObject]:
        if not self.root.is_dir():
            return []
        return [FileScriptObject(p) for p in sorted(self.root.glob(f"*{self.extension}"))]
