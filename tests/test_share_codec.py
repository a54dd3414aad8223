from urllib.parse import parse_qsl, urlsplit

import pytest

from discquiz.engine.codec import build_share_url, decode_share_params, encode_share_params, parse_count
from discquiz.engine.types import AgeGroup, Gender, ScoreTally


@pytest.mark.parametrize(
    "tally, age, gender",
    [
        (ScoreTally(D=6, I=2, S=1, C=1), AgeGroup.TWENTIES, Gender.F),
        (ScoreTally(), AgeGroup.SIXTIES, Gender.O),
        (ScoreTally(D=0, I=12, S=30, C=3), AgeGroup.TEENS, None),
    ],
)
def test_decode_reverses_encode(tally, age, gender):
    shared = decode_share_params(encode_share_params(tally, age, gender))
    assert shared is not None
    assert (shared.tally, shared.age_group, shared.gender) == (tally, age, gender)


def test_share_url_carries_every_parameter():
    url = build_share_url("https://disc.example/", ScoreTally(D=1, I=2, S=3, C=4), AgeGroup.THIRTIES, Gender.M)
    parts = urlsplit(url)
    assert parts.path == "/"
    assert dict(parse_qsl(parts.query)) == {
        "view": "result",
        "d": "1",
        "i": "2",
        "s": "3",
        "c": "4",
        "age": "30s",
        "gender": "M",
    }


def test_share_url_appends_to_existing_query():
    url = build_share_url("https://disc.example/?utm=x", ScoreTally(D=1), AgeGroup.TWENTIES)
    assert url.startswith("https://disc.example/?utm=x&view=result")


@pytest.mark.parametrize(
    "params",
    [
        {},
        {"view": "home", "d": "1", "i": "1", "s": "1", "c": "1", "age": "20s"},
        {"view": "result", "d": "1", "i": "1", "s": "1", "age": "20s"},
        {"view": "result", "d": "1", "i": "", "s": "1", "c": "1", "age": "20s"},
        {"view": "result", "d": "1", "i": "1", "s": "1", "c": "1"},
        {"view": "result", "d": "1", "i": "1", "s": "1", "c": "1", "age": "70s"},
    ],
)
def test_incomplete_or_unknown_params_disable_shortcut(params):
    assert decode_share_params(params) is None


@pytest.mark.parametrize(
    "raw, expected",
    [("7", 7), ("12abc", 12), ("abc", 0), (" 3", 3), ("-4", 0), ("+5", 5), ("2.9", 2)],
)
def test_counts_use_leading_integer(raw, expected):
    assert parse_count(raw) == expected


def test_non_numeric_count_still_decodes():
    shared = decode_share_params({"view": "result", "d": "x", "i": "3", "s": "1", "c": "1", "age": "40s"})
    assert shared is not None
    assert shared.tally == ScoreTally(D=0, I=3, S=1, C=1)


def test_absent_or_unknown_gender_defaults_for_display():
    base = {"view": "result", "d": "1", "i": "1", "s": "1", "c": "1", "age": "20s"}
    assert decode_share_params(base).effective_gender is Gender.O
    odd = decode_share_params({**base, "gender": "X"})
    assert odd.gender is None
    assert odd.effective_gender is Gender.O
