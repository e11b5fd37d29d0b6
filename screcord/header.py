"""
Splitting of an X-SC record header block.

X-SC-* lines are collected into a dict keyed by the lower-cased field
name. Indented lines continue the previous X-SC field (RFC822 folding).
Everything else is kept verbatim, in order, as one passthrough string.
"""

import re
from typing import Optional


XSC_HEADER_RE = re.compile(r'^X-SC-([^:]+):(.*)', re.IGNORECASE)


def separate_header(header: Optional[str]) -> tuple[dict[str, str], str]:
    """
    Split a header block into X-SC fields and the non X-SC remainder.

    Args:
        header: Raw header text (everything before the blank line)

    Returns:
        (fields, passthrough) where fields maps lower-cased key to value
        and passthrough holds all other lines, each ending in a newline.
    """
    fields: dict[str, str] = {}
    passthrough = ""
    key = None

    for line in (header or "").split("\n"):
        match = XSC_HEADER_RE.match(line)
        if line == "":
            key = None
        elif match:
            key = match.group(1).strip().lower()
            fields[key] = match.group(2).strip()
        elif key and line[:1].isspace():
            folded = line.strip()
            if folded:
                fields[key] = f"{fields[key]} {folded}" if fields[key] else folded
        else:
            key = None
            passthrough += line + "\n"

    return fields, passthrough
