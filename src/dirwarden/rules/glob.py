"""Minimal glob matching used by rule matchers.

Only ``*`` (any run of characters, including none) and ``?`` (exactly one
character) are special. There is no support for character classes or brace
expansion, and ``*`` happily crosses path separators, so ``*.pdf`` matches a
full path such as ``/home/user/report.pdf``.
"""

from __future__ import annotations


def match_glob(pattern: str, text: str) -> bool:
    """Return whether ``text`` matches ``pattern``.

    Args:
        pattern: Glob pattern made of literals, ``*`` and ``?``.
        text: Candidate string, usually a file path.

    Returns:
        bool: True when the whole of ``text`` matches the whole of ``pattern``.
    """
    return _match(pattern, text, 0, 0)


def _match(pattern: str, text: str, p_idx: int, t_idx: int) -> bool:
    # Recursion depth is bounded by the number of stars, not the text length.
    while p_idx < len(pattern):
        token = pattern[p_idx]
        if token == "*":
            # Zero characters first, then one more character per attempt.
            for start in range(t_idx, len(text) + 1):
                if _match(pattern, text, p_idx + 1, start):
                    return True
            return False

        if t_idx >= len(text):
            return False
        if token != "?" and token != text[t_idx]:
            return False
        p_idx += 1
        t_idx += 1

    return t_idx == len(text)


__all__ = ["match_glob"]
