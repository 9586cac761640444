"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest


@pytest.fixture
def simple_diff_content() -> str:
    """One hunk adding a single line at new line 12."""
    # Context lines start with exactly one space, the diff marker
    lines = [
        "diff --git a/src/SalesHelper.Codeunit.al b/src/SalesHelper.Codeunit.al",
        "index 1234567..abcdef0 100644",
        "--- a/src/SalesHelper.Codeunit.al",
        "+++ b/src/SalesHelper.Codeunit.al",
        '@@ -10,3 +10,4 @@ codeunit 50100 "Sales Helper"',
        " " + "    procedure Post()",
        " " + "    begin",
        "+" + "        with SalesHeader do",
        " " + "    end;",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def multi_file_diff_content() -> str:
    """A diff touching a modified, new, deleted, renamed, binary and moved file."""
    lines = [
        # Modified file with two hunks
        "diff --git a/src/Customer.Table.al b/src/Customer.Table.al",
        "index 1111111..2222222 100644",
        "--- a/src/Customer.Table.al",
        "+++ b/src/Customer.Table.al",
        "@@ -1,5 +1,5 @@",
        " " + "table 50100 Customer",
        " " + "{",
        "-" + "    Caption = 'Old';",
        "+" + "    Caption = 'New';",
        " " + "    DataClassification = CustomerContent;",
        " " + "}",
        "@@ -20,2 +20,3 @@",
        " " + '    field(1; "No."; Code[20]) { }',
        "+" + "    field(2; Name; Text[100]) { }",
        " " + "}",
        # New file
        "diff --git a/app.json b/app.json",
        "new file mode 100644",
        "index 0000000..3333333",
        "--- /dev/null",
        "+++ b/app.json",
        "@@ -0,0 +1,3 @@",
        "+" + "{",
        "+" + '  "name": "demo"',
        "+" + "}",
        # Deleted file
        "diff --git a/src/Old.Codeunit.al b/src/Old.Codeunit.al",
        "deleted file mode 100644",
        "index 4444444..0000000",
        "--- a/src/Old.Codeunit.al",
        "+++ /dev/null",
        "@@ -1,2 +0,0 @@",
        "-" + "codeunit 50101 Old",
        "-" + "{ }",
        # Renamed with a content change
        "diff --git a/src/A.Codeunit.al b/src/B.Codeunit.al",
        "similarity index 90%",
        "rename from src/A.Codeunit.al",
        "rename to src/B.Codeunit.al",
        "index 5555555..6666666 100644",
        "--- a/src/A.Codeunit.al",
        "+++ b/src/B.Codeunit.al",
        "@@ -1,2 +1,2 @@",
        "-" + "codeunit 50102 A",
        "+" + "codeunit 50102 B",
        " " + "{ }",
        # Binary file
        "diff --git a/logo.png b/logo.png",
        "index 7777777..8888888 100644",
        "Binary files a/logo.png and b/logo.png differ",
        # Pure rename, no content change
        "diff --git a/src/Keep.Page.al b/src/Moved.Page.al",
        "similarity index 100%",
        "rename from src/Keep.Page.al",
        "rename to src/Moved.Page.al",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def malformed_diff_content() -> str:
    """Three files; the middle one has a hunk header that cannot be parsed."""
    lines = [
        "diff --git a/first.al b/first.al",
        "--- a/first.al",
        "+++ b/first.al",
        "@@ -1,1 +1,2 @@",
        " " + "codeunit 1 First",
        "+" + "{ }",
        "diff --git a/broken.al b/broken.al",
        "--- a/broken.al",
        "+++ b/broken.al",
        "@@ -1,x +1 @@",
        "+" + "garbage",
        "diff --git a/last.al b/last.al",
        "--- a/last.al",
        "+++ b/last.al",
        "@@ -5,1 +5,1 @@",
        "-" + "old",
        "+" + "new",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def diff_file_path(tmp_path: Path, simple_diff_content: str) -> Path:
    """The simple diff written to disk."""
    path = tmp_path / "change.diff"
    path.write_text(simple_diff_content, encoding="utf-8")
    return path
