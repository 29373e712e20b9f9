from __future__ import annotations

import re
from typing import Dict, Optional

_FENCE = "```"
# Opening fence, optional language tag, optional newline, lazy body up to the next fence
_FENCED_BLOCK_RE = re.compile(r"```[\w]*\n?([\s\S]*?)```")


def first_fenced_block(text: str) -> Optional[str]:
    """Return the raw interior of the first ```lang ... ``` block, or None."""
    m = _FENCED_BLOCK_RE.search(text or "")
    if not m:
        return None
    return m.group(1)


def normalize(raw_text: Optional[str]) -> Dict[str, str]:
    """Turn raw model output into {"code": ...}.

    Strategy:
    - If a fenced block with a non-empty body exists, use the first one, trimmed.
      Text after its closing fence is dropped.
    - Otherwise strip every ``` marker from the whole text and trim.

    Never raises; any input yields a string (possibly empty).
    """
    text = raw_text if isinstance(raw_text, str) else ""
    body = first_fenced_block(text)
    if body:
        clean = body.strip()
    else:
        clean = text.replace(_FENCE, "").strip()
    return {"code": clean}
