"""
Preview pipeline — symbol name resolution.
"""

from __future__ import annotations

import re

from engine.preview.types import PreviewRecord

_IMPORT_NAME_RE = re.compile(r"^\s*import\s+([A-Za-z_$][\w$]*)")


def resolve_symbol(record: PreviewRecord) -> str:
    """
    The name used for the registry lookup and for finding the export.

    `import Button from './Button'` → "Button". Falls back to the record's
    display name when the import statement is empty or has no default
    binding (`import { Button } from ...`).
    """
    if record.import_statement:
        match = _IMPORT_NAME_RE.match(record.import_statement)
        if match:
            return match.group(1)
    return record.name
