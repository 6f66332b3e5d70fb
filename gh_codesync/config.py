"""設定檔載入與基本驗證."""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

TEMP_DIR_NAME = "gh-codesync"

# 已知有效的頂層欄位
_KNOWN_TOP_KEYS = {"sync", "transport", "project", "applier"}

# 各區塊已知欄位（用於拼字提示）
_KNOWN_SECTION_KEYS = {
    "sync": {"tempDir", "extension", "readRetries", "readRetryDelay", "writeGuide"},
    "transport": {"host", "port", "timeout", "retries"},
    "project": {"targetFramework", "langVersion", "hostVersion"},
    "applier": {"emptyTarget"},
}

_VALID_EMPTY_TARGETS = {"none", "all"}

# 數值欄位：(區塊, 欄位, 型別)
_NUMERIC_FIELDS = (
    ("sync", "readRetries", int),
    ("sync", "readRetryDelay", (int, float)),
    ("transport", "port", int),
    ("transport", "timeout", (int, float)),
    ("transport", "retries", int),
)


def _warn(msg: str) -> None:
    print(f"   ⚠️  [config] {msg}")


def _default_temp_dir() -> str:
    return os.path.join(tempfile.gettempdir(), TEMP_DIR_NAME)


def _section(cfg: dict, name: str) -> dict:
    section = cfg.get(name) if cfg else None
    return section if isinstance(section, dict) else {}


def _get(section: dict, section_name: str, key: str, default, convert):
    """取出欄位並轉型；型別不對時印警告、改用預設值。"""
    val = section.get(key)
    if val is None:
        return default
    try:
        if isinstance(val, bool) and convert in (int, float):
            raise TypeError(type(val).__name__)
        return convert(val)
    except (TypeError, ValueError):
        _warn(f"{section_name}.{key} 的值 {val!r} 無效，改用預設值 {default!r}")
        return default


def _text(val) -> str:
    if not isinstance(val, str):
        raise TypeError(type(val).__name__)
    return val


def _flag(val) -> bool:
    if not isinstance(val, bool):
        raise TypeError(type(val).__name__)
    return val


@dataclass
class SyncSettings:
    """執行期設定（由 config dict 轉換而來）."""
    temp_dir: str = field(default_factory=_default_temp_dir)
    extension: str = ".cs"
    read_retries: int = 3
    read_retry_delay: float = 0.1
    write_guide: bool = False
    host: str = "127.0.0.1"
    port: int = 51234
    timeout: float = 5.0
    retries: int = 2
    target_framework: str = "net48"
    lang_version: str = "latest"
    host_version: str = "8.18.25100.11001"
    empty_target: str = "none"

    @classmethod
    def from_config(cls, cfg: dict) -> "SyncSettings":
        """轉成 SyncSettings；不合法的值印警告後用預設值，不拋例外。"""
        sync = _section(cfg, "sync")
        transport = _section(cfg, "transport")
        project = _section(cfg, "project")
        applier = _section(cfg, "applier")
        d = cls()

        extension = _get(sync, "sync", "extension", d.extension, _text)
        if not extension.startswith("."):
            extension = "." + extension

        empty_target = _get(applier, "applier", "emptyTarget", d.empty_target, _text)
        if empty_target not in _VALID_EMPTY_TARGETS:
            empty_target = d.empty_target

        return cls(
            temp_dir=_get(sync, "sync", "tempDir", "", _text) or d.temp_dir,
            extension=extension,
            read_retries=_get(sync, "sync", "readRetries", d.read_retries, int),
            read_retry_delay=_get(sync, "sync", "readRetryDelay", d.read_retry_delay, float),
            write_guide=_get(sync, "sync", "writeGuide", d.write_guide, _flag),
            host=_get(transport, "transport", "host", d.host, _text),
            port=_get(transport, "transport", "port", d.port, int),
            timeout=_get(transport, "transport", "timeout", d.timeout, float),
            retries=_get(transport, "transport", "retries", d.retries, int),
            target_framework=_get(project, "project", "targetFramework", d.target_framework, _text),
            lang_version=_get(project, "project", "langVersion", d.lang_version, _text),
            host_version=_get(project, "project", "hostVersion", d.host_version, _text),
            empty_target=empty_target,
        )


def validate_config(cfg: dict) -> None:
    """對 config 做基本欄位驗證，印出警告但不拋例外。"""
    if not cfg:
        return

    # 頂層未知欄位
    for key in cfg:
        if key not in _KNOWN_TOP_KEYS:
            known = ", ".join(sorted(_KNOWN_TOP_KEYS))
            _warn(f"未知頂層欄位 '{key}'（已知欄位：{known}）")

    # 各區塊欄位
    for section, known_keys in _KNOWN_SECTION_KEYS.items():
        section_cfg = cfg.get(section, {})
        if not isinstance(section_cfg, dict):
            _warn(f"[{section}] 應為 JSON 物件，目前是 {type(section_cfg).__name__}")
            continue
        for key in section_cfg:
            if key not in known_keys:
                known = ", ".join(sorted(known_keys))
                _warn(f"[{section}] 未知欄位 '{key}'（已知欄位：{known}）")

    # 數值欄位類型（bool 也是 int 的子類別，要排除）
    for section, key, expected in _NUMERIC_FIELDS:
        section_cfg = cfg.get(section, {})
        if not isinstance(section_cfg, dict):
            continue
        val = section_cfg.get(key)
        if val is not None and (isinstance(val, bool) or not isinstance(val, expected)):
            _warn(f"{section}.{key} 應為數字，目前是 {type(val).__name__}")

    # applier.emptyTarget 值驗證
    applier_cfg = cfg.get("applier", {})
    empty_target = applier_cfg.get("emptyTarget") if isinstance(applier_cfg, dict) else None
    if empty_target and empty_target not in _VALID_EMPTY_TARGETS:
        valid = ", ".join(sorted(_VALID_EMPTY_TARGETS))
        _warn(f"applier.emptyTarget '{empty_target}' 不在已知值中（{valid}），改用 'none'")

    # tempDir 的上層目錄存在性提示（不強制，export 時會自動建立）
    sync_cfg = cfg.get("sync", {})
    temp_dir = sync_cfg.get("tempDir") if isinstance(sync_cfg, dict) else None
    if temp_dir and not Path(temp_dir).parent.exists():
        _warn(f"sync.tempDir 的上層目錄 '{Path(temp_dir).parent}' 不存在")


def load_config(config_path: str = "gh-codesync.config.json") -> dict:
    """載入 JSON 設定檔，不存在則回傳空 dict；存在則做基本驗證。"""
    path = Path(config_path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        try:
            cfg: Any = json.load(f)
        except json.JSONDecodeError as e:
            print(f"   ⚠️  [config] '{config_path}' 不是合法的 JSON（{e}），回傳空設定。")
            return {}
    if not isinstance(cfg, dict):
        print(f"   ⚠️  [config] '{config_path}' 格式錯誤，應為 JSON 物件，回傳空設定。")
        return {}
    validate_config(cfg)
    return cfg
