"""
backend/poolsettle/utils/team_matching.py

Purpose:
    Fuzzy team-name matching used by the event resolver to pair a pool's
    display names with provider records. Deterministic and symmetric so the
    DON nodes and the local precheck agree on every candidate.

Notes:
    - Provider ids always take precedence over fuzzy names (id_lookup tier).
    - Substring containment tolerates franchise suffixes ("Red Sox" vs
      "Boston Red Sox"); initialisms tolerate city abbreviations
      ("NY Yankees" vs "New York Yankees").
"""

from __future__ import annotations

import re
import unicodedata

_APOSTROPHES = re.compile("[’‘'`´]")
_NON_ALNUM = re.compile(r"[^a-z0-9 ]+")
_SPACES = re.compile(r"\s+")


def normalize_name(name: str | None) -> str:
    """Strip diacritics and punctuation, case-fold and collapse whitespace."""
    normalized = unicodedata.normalize("NFKD", name or "")
    normalized = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    normalized = _APOSTROPHES.sub("", normalized).casefold()
    normalized = _NON_ALNUM.sub(" ", normalized)
    return _SPACES.sub(" ", normalized).strip()


def _initialism_align(short: list[str], long: list[str]) -> bool:
    """Walk both token lists; a short token may stand for the initials of several long tokens."""
    i = j = 0
    whole_words = 0
    while i < len(short) and j < len(long):
        token = short[i]
        if token == long[j]:
            whole_words += 1
            i += 1
            j += 1
            continue
        span = len(token)
        if span >= 2 and j + span <= len(long) and "".join(t[0] for t in long[j:j + span]) == token:
            i += 1
            j += span
            continue
        return False
    return i == len(short) and j == len(long) and whole_words > 0


def teams_match(name_a: str | None, name_b: str | None) -> bool:
    """Return True when both names likely refer to the same team."""
    a = normalize_name(name_a)
    b = normalize_name(name_b)
    if not a or not b:
        return False
    if a == b or a in b or b in a:
        return True
    tokens_a, tokens_b = a.split(), b.split()
    return _initialism_align(tokens_a, tokens_b) or _initialism_align(tokens_b, tokens_a)


def pair_matches(home: str | None, away: str | None, team_a: str, team_b: str) -> bool:
    """Both requested teams appear as the two participants, in either order."""
    return (teams_match(home, team_a) and teams_match(away, team_b)) or (
        teams_match(home, team_b) and teams_match(away, team_a)
    )


def title_mentions(title: str | None, team_a: str, team_b: str) -> bool:
    """Event title ("Home vs Away") contains both requested names."""
    text = normalize_name(title)
    a, b = normalize_name(team_a), normalize_name(team_b)
    if not text or not a or not b:
        return False
    return a in text and b in text
