"""Instruction-block extraction from free-text mediator output.

The mediator is asked to end its turn with::

    [A_PROMPT] instruction for debater A
    [B_PROMPT] instruction for debater B

Models follow this loosely, so a missing block is an ordinary outcome and is
reported through the ``*_found`` flags rather than an exception.
"""

import re
from dataclasses import dataclass

A_MARKER = "[A_PROMPT]"
B_MARKER = "[B_PROMPT]"

_MARKER_RE = re.compile(r"\[(A|B)_PROMPT\]")
_PLACEHOLDER_RE = re.compile(r"^[\s.…]*$")


@dataclass(frozen=True)
class ExtractedPrompts:
    a: str = ""
    b: str = ""
    a_found: bool = False
    b_found: bool = False

    def or_default(self, default: str) -> tuple[str, str]:
        """Return (a, b), substituting ``default`` for any empty block."""
        return self.a or default, self.b or default


def _clean_block(block: str) -> str:
    block = block.strip()
    if block.startswith(":"):
        block = block[1:].strip()
    # Echoed template placeholders ("[A_PROMPT] ...") carry no instruction
    if _PLACEHOLDER_RE.match(block):
        return ""
    return block


def extract_prompts(text: str) -> ExtractedPrompts:
    """Split mediator output into per-debater instructions.

    Each block runs from its marker to the next marker of either kind, or to
    the end of the text. When a marker repeats, the first occurrence wins.
    """
    blocks: dict[str, str] = {}
    matches = list(_MARKER_RE.finditer(text or ""))
    for i, match in enumerate(matches):
        label = match.group(1)
        if label in blocks:
            continue
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        blocks[label] = _clean_block(text[match.end():end])

    return ExtractedPrompts(
        a=blocks.get("A", ""),
        b=blocks.get("B", ""),
        a_found="A" in blocks,
        b_found="B" in blocks,
    )


def strip_instruction_blocks(text: str) -> str:
    """Return the human-readable part of mediator output, before any marker."""
    match = _MARKER_RE.search(text or "")
    if match is None:
        return (text or "").strip()
    return text[:match.start()].strip()
