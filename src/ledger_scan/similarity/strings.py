"""
String normalization and Jaro-Winkler similarity (SSOT).

Every text comparison in the package (ledger matching, categorization,
reversal detection) goes through `normalize` so that "Coffee Shop Ltd." and
"COFFEE" compare the same way everywhere.
"""

import re

# Corporate suffixes and point-of-sale noise removed as whole words
STOP_TERMS = ("POS", "STORE", "INC", "LLC", "LTD", "PVT", "CORP", "SHOP", "MARKET")

_NON_ALNUM = re.compile(r"[^A-Z0-9\s]")
_STOP_TERMS_RE = re.compile(r"\b(?:" + "|".join(STOP_TERMS) + r")\b")
_WHITESPACE = re.compile(r"\s+")

WINKLER_SCALING = 0.1
WINKLER_MAX_PREFIX = 4


def normalize(value: str | None) -> str:
    """
    Canonicalize free text for comparison.

    Uppercases, strips punctuation, removes stop terms and collapses
    whitespace. Idempotent: normalize(normalize(s)) == normalize(s).
    """
    if not value:
        return ""
    text = _NON_ALNUM.sub("", value.upper())
    text = _STOP_TERMS_RE.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def jaro_winkler(first: str, second: str) -> float:
    """
    Jaro-Winkler similarity in [0.0, 1.0].

    Returns 0.0 when either string is empty (two empty strings included)
    and 1.0 for identical non-empty strings.
    """
    if not first or not second:
        return 0.0
    if first == second:
        return 1.0

    match_window = max(len(first), len(second)) // 2 - 1
    first_matched = [False] * len(first)
    second_matched = [False] * len(second)
    matches = 0

    for i, char in enumerate(first):
        start = max(0, i - match_window)
        end = min(i + match_window + 1, len(second))
        for j in range(start, end):
            if second_matched[j] or second[j] != char:
                continue
            first_matched[i] = True
            second_matched[j] = True
            matches += 1
            break

    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, char in enumerate(first):
        if not first_matched[i]:
            continue
        while not second_matched[k]:
            k += 1
        if char != second[k]:
            transpositions += 1
        k += 1

    jaro = (
        matches / len(first)
        + matches / len(second)
        + (matches - transpositions / 2) / matches
    ) / 3

    prefix = 0
    for a, b in zip(first[:WINKLER_MAX_PREFIX], second[:WINKLER_MAX_PREFIX]):
        if a != b:
            break
        prefix += 1

    return jaro + prefix * WINKLER_SCALING * (1 - jaro)
