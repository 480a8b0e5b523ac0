"""
goal: render a side-by-side HTML diff of two text blobs, in the same table layout WordPress uses
      for its revision diffs (original on the left, local copy on the right). only changed hunks are
      rendered, each with a few lines of context, so identical inputs give a table with no rows.
"""

from __future__ import annotations

from difflib import SequenceMatcher

from markupsafe import escape

CONTEXT_LINES = 3  # unchanged lines kept around each hunk
_EMPTY_CELL = "<td>&nbsp;</td>"


def _normalize(text: str) -> list[str]:
    # only line endings are unified, a whitespace-only edit is still a change
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return text.split("\n") if text else []


def _cell(kind: str, line: str) -> str:
    if kind == "deleted":
        return f'<td class="diff-deletedline"><del>{escape(line)}</del></td>'
    if kind == "added":
        return f'<td class="diff-addedline"><ins>{escape(line)}</ins></td>'
    return f'<td class="diff-context">{escape(line)}</td>'


def _row(left: str, right: str) -> str:
    return f"<tr>{left}<td></td>{right}</tr>"


def _hunk_rows(
    old_lines: list[str], new_lines: list[str], group: list[tuple[str, int, int, int, int]]
) -> list[str]:
    first, last = group[0], group[-1]
    rows = [
        '<tr><td colspan="3" class="diff-hunk">'
        f"@@ -{first[1] + 1},{last[2] - first[1]} +{first[3] + 1},{last[4] - first[3]} @@"
        "</td></tr>"
    ]
    for tag, i1, i2, j1, j2 in group:
        if tag == "equal":
            for line in old_lines[i1:i2]:
                rows.append(_row(_cell("context", line), _cell("context", line)))
            continue
        old_chunk = old_lines[i1:i2] if tag in ("delete", "replace") else []
        new_chunk = new_lines[j1:j2] if tag in ("insert", "replace") else []
        # pair removed and added lines side by side, pad the shorter side
        for k in range(max(len(old_chunk), len(new_chunk))):
            left = _cell("deleted", old_chunk[k]) if k < len(old_chunk) else _EMPTY_CELL
            right = _cell("added", new_chunk[k]) if k < len(new_chunk) else _EMPTY_CELL
            rows.append(_row(left, right))
    return rows


def render_text_diff(
    original: str,
    modified: str,
    title_left: str = "Original",
    title_right: str = "Local",
) -> str:
    """return an HTML table comparing original (left) with modified (right)"""
    old_lines = _normalize(original)
    new_lines = _normalize(modified)

    matcher = SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    body: list[str] = []
    for group in matcher.get_grouped_opcodes(CONTEXT_LINES):
        body.extend(_hunk_rows(old_lines, new_lines, group))

    return (
        '<table class="diff">'
        '<col class="content diffsplit left" />'
        '<col class="content diffsplit middle" />'
        '<col class="content diffsplit right" />'
        f'<thead><tr class="diff-sub-title"><th>{escape(title_left)}</th><td></td>'
        f"<th>{escape(title_right)}</th></tr></thead>"
        f"<tbody>{''.join(body)}</tbody>"
        "</table>"
    )


def has_changes(html: str) -> bool:
    """true when a rendered diff contains at least one hunk"""
    return 'class="diff-hunk"' in html
