"""
Project File — 產生編輯器用的 gh_component.csproj

從 `#r "nuget: Name, Version"` 指令萃取套件參照，併入預設的 RhinoCommon / Grasshopper。
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

PROJECT_FILE_NAME = "gh_component.csproj"
DEFAULT_HOST_PACKAGES = ("RhinoCommon", "Grasshopper")

# 註解化（//#r）或原樣的 #r 都接受
_NUGET_DIRECTIVE_RE = re.compile(r'#r\s+"nuget:\s*([^,"\s]+)(?:\s*,\s*([^"]+))?"')


@dataclass
class PackageReference:
    name: str
    version: str = "*"


def extract_reference_directives(code: str) -> list:
    """依出現順序回傳 PackageReference；同名以最後一次出現為準。"""
    found: dict = {}
    for line in code.split("\n"):
        m = _NUGET_DIRECTIVE_RE.search(line)
        if not m:
            continue
        name = m.group(1).strip()
        version = (m.group(2) or "*").strip() or "*"
        found[name.lower()] = PackageReference(name, version)
    return list(found.values())


def _merge(defaults: list, references: list) -> list:
    merged: dict = {}
    for ref in list(defaults) + list(references):
        merged[ref.name.lower()] = ref
    return list(merged.values())


def build_project_xml(
    references: Optional[list] = None,
    target_framework: str = "net48",
    lang_version: str = "latest",
    host_version: str = "8.18.25100.11001",
) -> str:
    """組出完整 csproj 內容（字串）."""
    defaults = [PackageReference(name, host_version) for name in DEFAULT_HOST_PACKAGES]
    packages = _merge(defaults, references or [])

    project = ET.Element("Project", {"Sdk": "Microsoft.NET.Sdk"})
    props = ET.SubElement(project, "PropertyGroup")
    ET.SubElement(props, "TargetFramework").text = target_framework
    ET.SubElement(props, "LangVersion").text = lang_version
    ET.SubElement(props, "AllowUnsafeBlocks").text = "true"

    refs = ET.SubElement(project, "ItemGroup")
    for pkg in packages:
        ET.SubElement(refs, "PackageReference", {"Include": pkg.name, "Version": pkg.version})

    compile_group = ET.SubElement(project, "ItemGroup")
    ET.SubElement(compile_group, "Compile", {"Include": "*.cs"})

    ET.indent(project, space="  ")
    return ET.tostring(project, encoding="unicode") + "\n"


def merge_package_references(xml_text: str, references: list) -> str:
    """把 references 併入既有 csproj：版本不同就更新，沒有就加到第一個含參照的 ItemGroup.

    XML 壞掉時拋 ET.ParseError，由呼叫端處理。
    """
    project = ET.fromstring(xml_text)
    existing = {}
    target_group = None
    for group in project.findall("ItemGroup"):
        for elem in group.findall("PackageReference"):
            existing[elem.get("Include", "").lower()] = elem
            if target_group is None:
                target_group = group

    for ref in references:
        elem = existing.get(ref.name.lower())
        if elem is not None:
            if elem.get("Version") != ref.version:
                elem.set("Version", ref.version)
            continue
        if target_group is None:
            target_group = ET.SubElement(project, "ItemGroup")
        elem = ET.SubElement(target_group, "PackageReference", {"Include": ref.name, "Version": ref.version})
        existing[ref.name.lower()] = elem

    ET.indent(project, space="  ")
    return ET.tostring(project, encoding="unicode") + "\n"
