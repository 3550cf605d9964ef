"""Character-level diff between two versions of a document.

``compute_diff`` returns a minimal edit script: every character outside a
longest common subsequence is a deletion or an insertion. The LCS table is
computed bit-parallel (Allison-Dix / Hyyrö), one Python int per row of the
new text, which keeps a full rewrite of a multi-page résumé to a few
megabytes and well under a second. The common prefix and suffix are peeled
off first, so typical résumé edits only search the changed middle.

Within every run of changes, deleted text is emitted before inserted text, so a
script always reads as Equal / Delete / Insert / Equal / ...
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Tuple


class DiffOp(str, Enum):
    EQUAL = "equal"
    INSERT = "insert"
    DELETE = "delete"


class DiffPart(NamedTuple):
    op: DiffOp
    text: str


DiffScript = Tuple[DiffPart, ...]


def _common_prefix(a: str, b: str) -> int:
    n = min(len(a), len(b))
    i = 0
    while i < n and a[i] == b[i]:
        i += 1
    return i


def _common_suffix(a: str, b: str) -> int:
    n = min(len(a), len(b))
    i = 0
    while i < n and a[-1 - i] == b[-1 - i]:
        i += 1
    return i


def _lcs_rows(a: str, b: str) -> List[int]:
    """Bit-parallel LCS rows of ``b`` against ``a``.

    ``rows[j]`` has bit ``i`` clear exactly when LCS(b[:j], a[:i + 1]) exceeds
    LCS(b[:j], a[:i]), so a row costs ``len(a)`` bits instead of a table row.
    """
    full = (1 << len(a)) - 1
    masks: Dict[str, int] = {}
    for i, ch in enumerate(a):
        masks[ch] = masks.get(ch, 0) | (1 << i)
    v = full
    rows = [v]
    for ch in b:
        u = v & masks.get(ch, 0)
        v = ((v + u) | (v - u)) & full
        rows.append(v)
    return rows


def _backtrack(a: str, b: str, rows: List[int]) -> List[Tuple[DiffOp, str]]:
    def lcs(j: int, i: int) -> int:
        return i - (rows[j] & ((1 << i) - 1)).bit_count()

    i, j = len(a), len(b)
    edits: List[Tuple[DiffOp, str]] = []
    while i > 0 and j > 0:
        if a[i - 1] == b[j - 1]:
            edits.append((DiffOp.EQUAL, a[i - 1]))
            i -= 1
            j -= 1
        elif lcs(j - 1, i) >= lcs(j, i - 1):
            edits.append((DiffOp.INSERT, b[j - 1]))
            j -= 1
        else:
            edits.append((DiffOp.DELETE, a[i - 1]))
            i -= 1
    edits.extend((DiffOp.DELETE, a[x]) for x in range(i - 1, -1, -1))
    edits.extend((DiffOp.INSERT, b[y]) for y in range(j - 1, -1, -1))
    edits.reverse()
    return edits


def _coalesce(edits: Iterable[Tuple[DiffOp, str]]) -> List[DiffPart]:
    parts: List[DiffPart] = []
    deleted: List[str] = []
    inserted: List[str] = []
    equal: List[str] = []

    def flush_changes() -> None:
        if deleted:
            parts.append(DiffPart(DiffOp.DELETE, "".join(deleted)))
            deleted.clear()
        if inserted:
            parts.append(DiffPart(DiffOp.INSERT, "".join(inserted)))
            inserted.clear()

    for op, ch in edits:
        if op == DiffOp.EQUAL:
            flush_changes()
            equal.append(ch)
            continue
        if equal:
            parts.append(DiffPart(DiffOp.EQUAL, "".join(equal)))
            equal.clear()
        (deleted if op == DiffOp.DELETE else inserted).append(ch)
    flush_changes()
    if equal:
        parts.append(DiffPart(DiffOp.EQUAL, "".join(equal)))
    return parts


def compute_diff(old: str, new: str) -> DiffScript:
    """Return a minimal edit script turning ``old`` into ``new``."""
    if old == new:
        return (DiffPart(DiffOp.EQUAL, old),) if old else ()

    head = _common_prefix(old, new)
    tail = _common_suffix(old[head:], new[head:])
    a = old[head:len(old) - tail]
    b = new[head:len(new) - tail]

    edits: List[Tuple[DiffOp, str]] = [(DiffOp.EQUAL, c) for c in old[:head]]
    edits += _backtrack(a, b, _lcs_rows(a, b))
    edits += [(DiffOp.EQUAL, c) for c in old[len(old) - tail:]]
    return tuple(_coalesce(edits))


def old_text(script: DiffScript) -> str:
    return "".join(p.text for p in script if p.op != DiffOp.INSERT)


def new_text(script: DiffScript) -> str:
    return "".join(p.text for p in script if p.op != DiffOp.DELETE)


def edit_distance(script: DiffScript) -> int:
    """Number of inserted plus deleted characters."""
    return sum(len(p.text) for p in script if p.op != DiffOp.EQUAL)
