"""
CLI 整合測試：export / strip / cleanup / health
透過 --config 把暫存工作目錄指到 tmp_path。
"""
import json
from unittest.mock import patch

import pytest
from gh_codesync.cli import build_parser, main
from gh_codesync.ide_transformer import wrap

GUID = "3f2b9c1e-0d4a-4e55-9a8e-1b2c3d4e5f60"
RAW = "using System;\n\npublic class Script_Instance : GH_ScriptInstance\n{\n}\n"


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "gh-codesync.config.json"
    path.write_text(json.dumps({"sync": {"tempDir": str(tmp_path / "ws")}}), encoding="utf-8")
    return str(path)


def test_no_command_prints_help(config_path, capsys):
    assert main(["--config", config_path]) == 0
    assert "usage:" in capsys.readouterr().out


def test_serve_requires_document():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["serve"])


class TestExport:
    def test_export_writes_wrapped_file(self, tmp_path, config_path, capsys):
        source = tmp_path / "script.cs"
        source.write_text(RAW, encoding="utf-8")

        assert main(["--config", config_path, "export", GUID, str(source)]) == 0
        exported = tmp_path / "ws" / f"{GUID}.cs"
        assert exported.read_text(encoding="utf-8") == wrap(RAW, GUID)
        assert (tmp_path / "ws" / "connect.cmd").exists()
        assert "Exporting" in capsys.readouterr().out

    def test_export_missing_source(self, tmp_path, config_path, capsys):
        assert main(["--config", config_path, "export", GUID, str(tmp_path / "nope.cs")]) == 1
        assert "找不到原始碼檔案" in capsys.readouterr().out


def test_strip_prints_raw_source(tmp_path, config_path, capsys):
    ide_file = tmp_path / "wrapped.cs"
    ide_file.write_text(wrap(RAW, GUID), encoding="utf-8")

    assert main(["--config", config_path, "strip", str(ide_file)]) == 0
    assert capsys.readouterr().out == RAW


def test_cleanup_removes_workspace(tmp_path, config_path):
    (tmp_path / "ws").mkdir()
    (tmp_path / "ws" / f"{GUID}.cs").write_text("x", encoding="utf-8")
    assert main(["--config", config_path, "cleanup"]) == 0
    assert not (tmp_path / "ws").exists()


class TestHealth:
    def test_host_ok(self, config_path, capsys):
        with patch("gh_codesync.cli.HostClient") as mock_client:
            mock_client.return_value.health_check.return_value = True
            assert main(["--config", config_path, "health"]) == 0
            mock_client.return_value.close.assert_called_once()
        assert "Host OK" in capsys.readouterr().out

    def test_host_down(self, config_path, capsys):
        with patch("gh_codesync.cli.HostClient") as mock_client:
            mock_client.return_value.health_check.return_value = False
            assert main(["--config", config_path, "health"]) == 1
        assert "not reachable" in capsys.readouterr().out


def test_bad_config_values_do_not_crash(tmp_path, capsys):
    path = tmp_path / "gh-codesync.config.json"
    path.write_text(json.dumps({
        "sync": {"tempDir": str(tmp_path / "ws"), "extension": 5},
        "transport": {"port": "abc"},
    }), encoding="utf-8")
    (tmp_path / "ws").mkdir()
    assert main(["--config", str(path), "cleanup"]) == 0
    assert "transport.port" in capsys.readouterr().out
