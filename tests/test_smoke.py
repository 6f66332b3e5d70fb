"""
Smoke tests：驗證套件可匯入、版本與公開 API 存在。
"""
import pytest


def test_import_package():
    """套件可正常匯入"""
    import gh_codesync
    assert gh_codesync.__version__ == "0.1.0"


def test_public_api():
    """公開 API 可從 gh_codesync 取得"""
    from gh_codesync import (
        __version__,
        wrap,
        unwrap,
        derive_namespace,
        SyncCoordinator,
        SyncSettings,
        DocumentApplier,
        MessageHandler,
        HostClient,
        load_config,
    )
    assert __version__ == "0.1.0"
    assert callable(wrap)
    assert callable(unwrap)
    assert callable(derive_namespace)
    assert callable(load_config)


def test_wrap_unwrap_signature():
    """wrap(raw_code, component_id) / unwrap(ide_code)"""
    from gh_codesync import wrap, unwrap

    wrapped = wrap("int x;", "abcd-ef01")
    assert wrapped.startswith("namespace GH_Scripts_abcd_ef01;")
    assert unwrap(wrapped) == "int x;"
