#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Line diff
=========
Structural diff of two line sequences using difflib's SequenceMatcher.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import difflib
from typing import Sequence

from wikicontent.schemas import DiffOp, DiffResult


# -----------------------------------------------------------------------------

def diff_lines(a_lines: Sequence[str], b_lines: Sequence[str]) -> DiffResult:
    """
    Return the ops turning *a_lines* into *b_lines*.
    A replaced block is reported as a delete followed by an insert.
    """
    a_lines = list(a_lines)
    b_lines = list(b_lines)

    ops: list[DiffOp] = []
    matcher = difflib.SequenceMatcher(None, a_lines, b_lines, autojunk=False)

    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            ops.append(DiffOp(type="equal", lines=a_lines[i1:i2]))
        elif tag == "replace":
            ops.append(DiffOp(type="delete", lines=a_lines[i1:i2]))
            ops.append(DiffOp(type="insert", lines=b_lines[j1:j2]))
        elif tag == "delete":
            ops.append(DiffOp(type="delete", lines=a_lines[i1:i2]))
        elif tag == "insert":
            ops.append(DiffOp(type="insert", lines=b_lines[j1:j2]))

    return DiffResult(ops=ops)


# -----------------------------------------------------------------------------
