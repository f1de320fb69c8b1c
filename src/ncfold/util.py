from __future__ import annotations

from textwrap import TextWrapper
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence


def human_readable_size(size: int) -> str:
    if size < 2**10:
        return f"{size} bytes"
    elif size < 2**20:
        return f"{size / float(2**10):.2f} KB"
    elif size < 2**30:
        return f"{size / float(2**20):.2f} MB"
    elif size < 2**40:
        return f"{size / float(2**30):.2f} GB"
    else:
        return f"{size / float(2**40):.2f} TB"


def format_shape(shape: Sequence[int]) -> str:
    """``(12 × 5)`` style shape text; ``()`` for scalars."""
    return "(" + " × ".join(str(s) for s in shape) + ")"


def info_text_report(items: Sequence[tuple[str, Any]]) -> str:
    keys = [k for k, v in items]
    max_key_len = max(len(k) for k in keys)
    report = ""
    for k, v in items:
        wrapper = TextWrapper(
            width=80,
            initial_indent=k.ljust(max_key_len) + " : ",
            subsequent_indent=" " * max_key_len + " : ",
        )
        text = wrapper.fill(str(v))
        report += text + "\n"
    return report


class NoLock:
    """A lock that doesn't lock."""

    def __enter__(self) -> None:
        pass

    def __exit__(self, *args: Any) -> None:
        pass


nolock = NoLock()
