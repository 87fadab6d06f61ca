"""Chinese (zh-CN) collation keys for file names.

Mirrors how a zh-CN collator orders mixed names: punctuation and symbols,
then digits, then Latin letters (case-insensitive, lowercase first on ties),
then Han characters in Hanyu Pinyin order.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import Tuple

from pypinyin import Style, lazy_pinyin

HAN_RE = re.compile(r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]")

SYMBOL, DIGIT, LETTER, HAN = range(4)


@lru_cache(maxsize=4096)
def _char_key(char: str) -> Tuple[int, str]:
    if HAN_RE.match(char):
        reading = lazy_pinyin(char, style=Style.TONE3)
        return (HAN, (reading[0] if reading else "") + char)
    if char.isdigit():
        return (DIGIT, char)
    if char.isalpha():
        return (LETTER, char.casefold())
    return (SYMBOL, char)


def zh_sort_key(text: str) -> Tuple[Tuple[Tuple[int, str], ...], str]:
    """Sort key giving a total order; equal keys imply equal text."""
    return tuple(_char_key(char) for char in text), text.swapcase()
