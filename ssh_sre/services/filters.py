"""Output filters: grep / sort / uniq / head / tail / wc.

Filters run in a fixed order either as a shell pipeline appended to the
remote command, or over text that has already been fetched and formatted.
"""

from __future__ import annotations

import re
import shlex
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator

_WC_FLAGS = {"lines": "-l", "words": "-w", "chars": "-c"}


class OutputFilters(BaseModel):
    grep: Optional[str] = None
    grep_case_sensitive: bool = False
    head: Optional[int] = Field(default=None, gt=0)
    tail: Optional[int] = Field(default=None, gt=0)
    sort: Union[bool, Literal["reverse"], None] = None
    uniq: bool = False
    wc: Optional[Literal["lines", "words", "chars"]] = None

    @model_validator(mode="after")
    def _head_xor_tail(self) -> "OutputFilters":
        if self.head is not None and self.tail is not None:
            raise ValueError(
                "Cannot specify both 'head' and 'tail' filters - they are mutually exclusive"
            )
        return self

    @property
    def active(self) -> bool:
        return bool(
            self.grep or self.sort or self.uniq or self.wc
            or self.head is not None or self.tail is not None
        )


def apply_filters(command: str, filters: OutputFilters | None) -> str:
    """Append *filters* to *command* as a shell pipeline.

    ``grep="error", tail=50`` on ``docker logs web`` gives
    ``docker logs web | grep -i error | tail -n 50``.
    """
    if filters is None:
        return command

    parts = [command]
    if filters.grep:
        flags = "" if filters.grep_case_sensitive else "-i "
        parts.append(f"grep {flags}{shlex.quote(filters.grep)}")
    if filters.sort:
        parts.append("sort -r" if filters.sort == "reverse" else "sort")
    if filters.uniq:
        parts.append("uniq")
    if filters.head is not None:
        parts.append(f"head -n {filters.head}")
    elif filters.tail is not None:
        parts.append(f"tail -n {filters.tail}")
    if filters.wc:
        parts.append(f"wc {_WC_FLAGS[filters.wc]}")
    return " | ".join(parts)


def apply_filters_to_text(text: str, filters: OutputFilters | None) -> str:
    """Apply *filters* to already-fetched text, in pipeline order."""
    if filters is None:
        return text

    lines = text.split("\n")

    if filters.grep:
        pattern = re.compile(filters.grep, 0 if filters.grep_case_sensitive else re.I)
        lines = [line for line in lines if pattern.search(line)]

    if filters.sort:
        lines = sorted(lines, reverse=filters.sort == "reverse")

    if filters.uniq:
        deduped: list[str] = []
        for line in lines:
            if not deduped or deduped[-1] != line:
                deduped.append(line)
        lines = deduped

    if filters.head is not None:
        lines = lines[: filters.head]
    elif filters.tail is not None:
        lines = lines[-filters.tail:]

    if filters.wc == "lines":
        return str(len(lines))
    if filters.wc == "words":
        return str(len("\n".join(lines).split()))
    if filters.wc == "chars":
        return str(len("\n".join(lines)))

    return "\n".join(lines)
