"""
IDE Code Transformer — 腳本元件原始碼 ↔ 編輯器用文件 雙向轉換

wrap() 與 unwrap() 為一對互逆操作：
  wrap   : #r 指令註解化 → 注入 namespace → 注入 DummyMembers
  unwrap : 移除 DummyMembers → 移除 namespace → 還原 #r 指令

純文字轉換，不做 I/O，也不拋例外；找不到標記時該步驟直接略過。
"""

import re

NAMESPACE_PREFIX = "GH_Scripts_"
CLASS_MARKER = "public class Script_Instance"
REGION_START = "#region DummyMembers"
REGION_END = "#endregion"
COMMENT_MARKER = "//"

# 讓編輯器的型別檢查看得到宿主注入的全域成員（不要手動修改這個 region）
DUMMY_MEMBERS_LINES = (
    "    #region DummyMembers",
    "    // Dummy implementation for IDE IntelliSense (do not touch this region)",
    "    RhinoDoc RhinoDocument;",
    "    GH_Document GrasshopperDocument;",
    "    IGH_Component Component;",
    "    int Iteration;",
    "    public override void InvokeRunScript(IGH_Component owner,",
    "                                        object rhinoDocument,",
    "                                        int iteration,",
    "                                        List<object> inputs,",
    "                                        IGH_DataAccess DA)",
    "    {",
    "        throw new NotImplementedException();",
    "    }",
    "    private void Print(string text) { throw new NotImplementedException(); }",
    "    private void Print(string format, params object[] args) { throw new NotImplementedException(); }",
    "    private void Reflect(object obj) { throw new NotImplementedException(); }",
    "    private void Reflect(object obj, string method_name) { throw new NotImplementedException(); }",
    "    #endregion",
)

# using 指示詞（排除 using (...) 與 using var 陳述式）
_USING_DIRECTIVE_RE = re.compile(
    r"^\s*(?:global\s+)?using\s+(?:static\s+)?[\w.]+\s*(?:=\s*[^;(]+)?;"
)
_CANONICAL_ID_RE = re.compile(r"^[A-Za-z0-9]+(?:-[A-Za-z0-9]+)*$")
# #r 指令行，可能已被使用者註解掉（前面有一個或多個 //）
_REFERENCE_LINE_RE = re.compile(r"^\s*(?://\s*)*#r\s")
_COMMENTED_REFERENCE_RE = re.compile(r"^(\s*)//(?=\s*(?://\s*)*#r\s)")


def _split_lines(code: str) -> list:
    # 只切 \n，CRLF 的 \r 留在行尾，join 回去即可原樣還原
    return code.split("\n")


def _line_end(code: str) -> str:
    return "\r" if "\r\n" in code else ""


def _escape_id(component_id: str) -> str:
    # ASCII 英數字原樣保留，其餘字元寫成 _<hex>_
    parts = []
    for ch in component_id:
        if ch.isascii() and ch.isalnum():
            parts.append(ch)
        else:
            parts.append(f"_{ord(ch):x}_")
    return "".join(parts)


def derive_namespace(component_id: str) -> str:
    """由 ComponentIdentifier 推導 namespace 名稱（純函數）.

    GUID 形式（以單一 `-` 分隔的英數字段）只把 `-` 換成 `_`，結果不會以 `_` 開頭。
    其他 id 以 `_` 開頭，並把每個非英數字元寫成 `_<hex>_`，
    兩種形式互不重疊，不同 id 一定得到不同名稱。
    """
    if _CANONICAL_ID_RE.match(component_id):
        return f"{NAMESPACE_PREFIX}{component_id.replace('-', '_')}"
    return f"{NAMESPACE_PREFIX}_{_escape_id(component_id)}"


def comment_out_reference_directives(code: str) -> str:
    """每個 #r 行前面加一個 `//`；已被註解掉的 #r 行也再加一個，unwrap 時只去掉一個。"""
    lines = []
    for line in _split_lines(code):
        if _REFERENCE_LINE_RE.match(line):
            line = COMMENT_MARKER + line
        lines.append(line)
    return "\n".join(lines)


def uncomment_reference_directives(code: str) -> str:
    """`//` 之後（可有空白）接著 `#r ` 的行，去掉 `//`，其餘空白保持不變。"""
    lines = []
    for line in _split_lines(code):
        m = _COMMENTED_REFERENCE_RE.match(line)
        if m:
            line = m.group(1) + line[m.end():]
        lines.append(line)
    return "\n".join(lines)


def inject_namespace(code: str, component_id: str) -> str:
    """在最後一個 using 指示詞之後插入 namespace 宣告與一個空行。"""
    lines = _split_lines(code)
    insert_at = -1
    for i, line in enumerate(lines):
        if _USING_DIRECTIVE_RE.match(line):
            insert_at = i

    cr = _line_end(code)
    declaration = f"namespace {derive_namespace(component_id)};{cr}"
    lines[insert_at + 1:insert_at + 1] = [declaration, cr]
    return "\n".join(lines)


def remove_namespace(code: str) -> str:
    """移除注入的 namespace 行，以及緊接其後的一個空行（若有）。"""
    marker = f"namespace {NAMESPACE_PREFIX}"
    kept = []
    skip_blank = False
    for line in _split_lines(code):
        stripped = line.strip()
        if stripped.startswith(marker):
            skip_blank = True
            continue
        if skip_blank and not stripped:
            skip_blank = False
            continue
        skip_blank = False
        kept.append(line)
    return "\n".join(kept)


def inject_dummy_members(code: str) -> str:
    """在 Script_Instance 類別的第一個 `{` 之後插入 DummyMembers 區塊。

    區塊內的換行跟 `{` 後面實際的換行一致：`{` 後面接 CRLF 才用 CRLF，否則用 LF。
    """
    idx = code.find(CLASS_MARKER)
    if idx < 0:
        return code
    brace = code.find("{", idx)
    if brace < 0:
        return code
    rest = code[brace + 1:]
    newline = "\r\n" if rest.startswith("\r\n") else "\n"
    block = newline + newline.join(DUMMY_MEMBERS_LINES)
    return code[:brace + 1] + block + rest


def remove_dummy_members(code: str) -> str:
    """移除 DummyMembers 區塊。

    `#endregion` 之後同一行剩下的文字（含行尾 `\\r`）原本就接在 `{` 後面，原樣接回上一行；
    區塊以 CRLF 插入時，上一行行尾的 `\\r` 是插入時加的，先拿掉。
    區塊沒有結尾（使用者刪掉了 `#endregion`）時整段原樣回傳，不吃掉後面的程式碼。
    """
    kept = []
    inside = False
    crlf = False
    for line in _split_lines(code):
        stripped = line.lstrip()
        if not inside:
            if stripped.startswith(REGION_START):
                inside = True
                crlf = line.endswith("\r")
                continue
            kept.append(line)
            continue
        if stripped.startswith(REGION_END):
            inside = False
            _rejoin(kept, stripped[len(REGION_END):], crlf)
    if inside:
        return code
    return "\n".join(kept)


def _rejoin(kept: list, tail: str, crlf: bool) -> None:
    if not kept:
        if tail:
            kept.append(tail)
        return
    prev = kept[-1]
    if crlf and prev.endswith("\r"):
        prev = prev[:-1]
    kept[-1] = prev + tail


def wrap(raw_code: str, component_id: str) -> str:
    """ScriptSource → IdeDocument."""
    code = comment_out_reference_directives(raw_code)
    code = inject_namespace(code, component_id)
    return inject_dummy_members(code)


def unwrap(ide_code: str) -> str:
    """IdeDocument → ScriptSource（wrap 的逆操作，順序相反）."""
    code = remove_dummy_members(ide_code)
    code = remove_namespace(code)
    return uncomment_reference_directives(code)
