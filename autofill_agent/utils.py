"""
utils.py - Shared string helpers for the planner
"""
import re
from typing import List, Optional


def normalize(s: str) -> str:
    """
    Trim, lowercase and collapse whitespace to single spaces.
    Args:
        s: Input string (None is treated as empty).
    Returns:
        Normalized string.
    """
    return re.sub(r"\s+", " ", (s or "").strip()).lower()


def ci_match_label(val: str, labels: List[str]) -> Optional[str]:
    """
    Case-insensitive exact match to one of the labels.
    Returns the canonical label if found, else None.
    """
    v = (val or "").strip().casefold()
    if not v:
        return None
    for lab in labels:
        if v == (lab or "").strip().casefold():
            return lab
    return None


def clamp(x: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, x))
