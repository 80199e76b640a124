from __future__ import annotations

import pytest

from upload_monitor.naming import matches_name, strip_extension


@pytest.mark.parametrize(
    "name",
    [
        "abc__report.csv",
        "ABC__report.csv",
        "abcd__x.csv",
        "abcde__x.csv",
        "AbCdE__statement.pdf",
        "abc__x",
        "abc__.csv",  # base is exactly five characters
        "abc__x.tar.gz",
    ],
)
def test_accepts_conventional_names(name: str) -> None:
    assert matches_name(name)


@pytest.mark.parametrize(
    "name",
    [
        "ab__x.csv",  # prefix too short
        "12c__x.csv",  # prefix not all letters
        "abcdef__x.csv",  # six letters before the separator
        "abc_x.csv",  # single underscore
        "abc_.csv",
        "x__a.csv",
        "",
        "report.csv",
        "ab1__x.csv",
        "ábc__x.csv",  # non-ASCII letter
    ],
)
def test_rejects_other_names(name: str) -> None:
    assert not matches_name(name)


def test_only_final_extension_is_stripped() -> None:
    assert strip_extension("abc__x.tar.gz") == "abc__x.tar"
    assert strip_extension("abc__x") == "abc__x"
    assert strip_extension(".hidden") == ".hidden"


def test_separator_inside_extension_does_not_count() -> None:
    # base is "abc" once ".__x" is stripped
    assert not matches_name("abc.__x")


def test_is_deterministic() -> None:
    assert [matches_name("abc__r.csv") for _ in range(3)] == [True, True, True]
