"""
backend/tests/test_team_matching.py

Purpose:
    Name normalization and the fuzzy team matcher used by the resolver.
"""

from __future__ import annotations

import pytest

from poolsettle.utils.team_matching import normalize_name, pair_matches, teams_match, title_mentions


def test_normalize_strips_diacritics_and_punctuation():
    assert normalize_name("José Ramírez") == "jose ramirez"
    assert normalize_name("  St. Louis   Cardinals ") == "st louis cardinals"
    assert normalize_name("Brighton & Hove Albion") == "brighton hove albion"
    assert normalize_name("Nottingham Forest's") == "nottingham forests"
    assert normalize_name(None) == ""


def test_accents_and_case_match():
    assert teams_match("José Ramírez", "JOSE RAMIREZ") is True


def test_suffix_containment():
    assert teams_match("Red Sox", "Boston Red Sox") is True
    assert teams_match("Boston Red Sox", "Red Sox") is True


def test_city_initialism():
    assert teams_match("NY Yankees", "New York Yankees") is True
    assert teams_match("LA Lakers", "Los Angeles Lakers") is True


def test_initialism_alone_is_not_enough():
    assert teams_match("NY", "New York Yankees") is False
    assert teams_match("NYY", "New York Yankees") is False


@pytest.mark.parametrize(
    "a, b",
    [
        ("New York Yankees", "New York Mets"),
        ("Arsenal", "Chelsea"),
        ("", "Arsenal"),
        ("   ", "   "),
    ],
)
def test_non_matches(a, b):
    assert teams_match(a, b) is False


@pytest.mark.parametrize(
    "a, b",
    [
        ("NY Yankees", "New York Yankees"),
        ("Red Sox", "Boston Red Sox"),
        ("Arsenal", "Chelsea"),
        ("Man City", "Manchester City"),
    ],
)
def test_matching_is_symmetric(a, b):
    assert teams_match(a, b) == teams_match(b, a)


def test_pair_matches_either_orientation():
    assert pair_matches("New York Yankees", "Boston Red Sox", "NY Yankees", "Red Sox") is True
    assert pair_matches("Boston Red Sox", "New York Yankees", "NY Yankees", "Red Sox") is True
    assert pair_matches("Boston Red Sox", "Toronto Blue Jays", "NY Yankees", "Red Sox") is False


def test_title_mentions_needs_both_names():
    assert title_mentions("Arsenal vs Brentford", "Arsenal", "Brentford") is True
    assert title_mentions("Arsenal vs Chelsea", "Arsenal", "Brentford") is False
    assert title_mentions(None, "Arsenal", "Brentford") is False
