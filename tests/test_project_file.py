"""
gh_component.csproj 產生與合併測試
"""
import xml.etree.ElementTree as ET

import pytest
from gh_codesync.project_file import (
    PackageReference,
    build_project_xml,
    extract_reference_directives,
    merge_package_references,
)


def package_map(xml_text: str) -> dict:
    root = ET.fromstring(xml_text)
    return {e.get("Include"): e.get("Version") for e in root.iter("PackageReference")}


# ─── extract_reference_directives ────────────────────────────────────────────

class TestExtractReferenceDirectives:
    def test_name_and_version(self):
        refs = extract_reference_directives('#r "nuget: Newtonsoft.Json, 13.0.1"')
        assert refs == [PackageReference("Newtonsoft.Json", "13.0.1")]

    def test_missing_version_defaults_to_star(self):
        refs = extract_reference_directives('#r "nuget: CsvHelper"')
        assert refs == [PackageReference("CsvHelper", "*")]

    def test_commented_directive_is_found(self):
        refs = extract_reference_directives('//#r "nuget: MathNet.Numerics, 5.0.0"')
        assert refs == [PackageReference("MathNet.Numerics", "5.0.0")]

    def test_last_occurrence_wins(self):
        code = '#r "nuget: Foo, 1.0.0"\n#r "nuget: foo, 2.0.0"'
        refs = extract_reference_directives(code)
        assert refs == [PackageReference("foo", "2.0.0")]

    def test_non_nuget_lines_ignored(self):
        code = 'using System;\n#r "System.Drawing.dll"\n// nuget: Foo'
        assert extract_reference_directives(code) == []


# ─── build_project_xml ───────────────────────────────────────────────────────

class TestBuildProjectXml:
    def test_defaults(self):
        xml_text = build_project_xml()
        root = ET.fromstring(xml_text)
        assert root.tag == "Project"
        assert root.get("Sdk") == "Microsoft.NET.Sdk"
        assert root.findtext("PropertyGroup/TargetFramework") == "net48"
        assert root.findtext("PropertyGroup/LangVersion") == "latest"
        assert root.findtext("PropertyGroup/AllowUnsafeBlocks") == "true"
        assert package_map(xml_text) == {
            "RhinoCommon": "8.18.25100.11001",
            "Grasshopper": "8.18.25100.11001",
        }
        assert root.find("ItemGroup/Compile").get("Include") == "*.cs"

    def test_references_merged_with_defaults(self):
        xml_text = build_project_xml([PackageReference("Newtonsoft.Json", "13.0.1")])
        packages = package_map(xml_text)
        assert packages["Newtonsoft.Json"] == "13.0.1"
        assert "RhinoCommon" in packages

    def test_reference_overrides_default_version(self):
        xml_text = build_project_xml([PackageReference("Grasshopper", "8.0.0")], host_version="8.18")
        assert package_map(xml_text)["Grasshopper"] == "8.0.0"
        assert package_map(xml_text)["RhinoCommon"] == "8.18"

    def test_settings_applied(self):
        xml_text = build_project_xml(target_framework="net7.0", lang_version="11")
        root = ET.fromstring(xml_text)
        assert root.findtext("PropertyGroup/TargetFramework") == "net7.0"
        assert root.findtext("PropertyGroup/LangVersion") == "11"


# ─── merge_package_references ────────────────────────────────────────────────

class TestMergePackageReferences:
    def test_adds_missing_reference(self):
        merged = merge_package_references(build_project_xml(), [PackageReference("CsvHelper", "30.0.1")])
        assert package_map(merged)["CsvHelper"] == "30.0.1"

    def test_updates_different_version(self):
        base = build_project_xml([PackageReference("Foo", "1.0.0")])
        merged = merge_package_references(base, [PackageReference("foo", "2.0.0")])
        assert package_map(merged)["Foo"] == "2.0.0"

    def test_same_version_is_unchanged(self):
        base = build_project_xml([PackageReference("Foo", "1.0.0")])
        assert merge_package_references(base, [PackageReference("Foo", "1.0.0")]) == base

    def test_new_reference_goes_into_reference_group(self):
        merged = merge_package_references(build_project_xml(), [PackageReference("Bar", "1.0")])
        root = ET.fromstring(merged)
        groups = root.findall("ItemGroup")
        assert [e.get("Include") for e in groups[0].findall("PackageReference")][-1] == "Bar"
        assert groups[1].find("PackageReference") is None

    def test_project_without_references_gets_new_group(self):
        merged = merge_package_references('<Project Sdk="Microsoft.NET.Sdk" />', [PackageReference("Bar", "1.0")])
        assert package_map(merged) == {"Bar": "1.0"}

    def test_invalid_xml_raises(self):
        with pytest.raises(ET.ParseError):
            merge_package_references("<Project>", [PackageReference("Bar")])
