"""
gh-codesync — 腳本元件 ↔ 外部編輯器 雙向同步

Transform Engine（wrap / unwrap）＋ Sync Coordinator ＋ 宿主端/編輯器端的傳輸。
"""

__version__ = "0.1.0"

from .ide_transformer import derive_namespace, unwrap, wrap
from .project_file import (
    PackageReference,
    build_project_xml,
    extract_reference_directives,
    merge_package_references,
)
from .config import SyncSettings, load_config, validate_config
from .sync_coordinator import ConnectDescriptor, ExportResult, SyncCoordinator
from .applier import (
    ApplyError,
    DirectoryDocument,
    DocumentApplier,
    ScriptDocument,
    ScriptObject,
)
from .host_thread import HostThread
from .message_handler import MessageHandler
from .client import HostClient, HostConnectionError

__all__ = [
    "__version__",
    "wrap",
    "unwrap",
    "derive_namespace",
    "PackageReference",
    "build_project_xml",
    "extract_reference_directives",
    "merge_package_references",
    "SyncSettings",
    "load_config",
    "validate_config",
    "ConnectDescriptor",
    "ExportResult",
    "SyncCoordinator",
    "ApplyError",
    "DirectoryDocument",
    "DocumentApplier",
    "ScriptDocument",
    "ScriptObject",
    "HostThread",
    "MessageHandler",
    "HostClient",
    "HostConnectionError",
]
