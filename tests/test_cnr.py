import pytest

from ecourts_resolver.cnr import (
    CONSUMER,
    DISTRICT,
    HIGH,
    NCLT,
    SUPREME,
    cascade_order,
    classify_court_type,
    is_valid_cnr,
    is_valid_khc_cnr,
    is_valid_loose_cnr,
)

# --- strict rule ---


@pytest.mark.parametrize(
    "cnr",
    ["DLHC010011762021", "MHPU010012342023", "KA-B0100012-2024", "abcdefghijklmnop"],
)
def test_strict_cnr_accepts(cnr):
    assert is_valid_cnr(cnr)


@pytest.mark.parametrize(
    "cnr",
    ["", "DLHC01001176202", "DLHC0100117620211", "DLHC01001176 021", "DLHC01001176202!", None, 1234],
)
def test_strict_cnr_rejects(cnr):
    assert not is_valid_cnr(cnr)


def test_strict_cnr_allows_hyphens():
    assert is_valid_cnr("DL-HC-0100117620")


# --- loose and Karnataka rules ---


def test_loose_cnr_length_bounds():
    assert is_valid_loose_cnr("A" * 10)
    assert is_valid_loose_cnr("A" * 20)
    assert not is_valid_loose_cnr("A" * 9)
    assert not is_valid_loose_cnr("A" * 21)
    assert not is_valid_loose_cnr("DL-HC-0100117620")


def test_khc_cnr():
    assert is_valid_khc_cnr("KHC0100012024")
    assert is_valid_khc_cnr("khc0100012024")
    assert not is_valid_khc_cnr("DLHC010011762021")
    assert not is_valid_khc_cnr("KHC123")


# --- classification ---


@pytest.mark.parametrize(
    "cnr,expected",
    [
        ("DLHC010011762021", HIGH),
        ("KAHC010011762021", HIGH),
        ("DLSC010011762021", SUPREME),
        ("NCLT010011762021", NCLT),
        ("NCLAT01001176202", NCLT),
        ("DLCF010011762021", CONSUMER),
        ("MHPU010012342023", DISTRICT),
    ],
)
def test_classify_court_type(cnr, expected):
    assert classify_court_type(cnr) == expected


def test_classify_is_case_insensitive():
    assert classify_court_type("dlhc010011762021") == HIGH


# --- cascade order ---


def test_cascade_order_puts_classified_type_first():
    assert cascade_order(HIGH) == [HIGH, DISTRICT, SUPREME, NCLT, CONSUMER]
    assert cascade_order(DISTRICT) == [DISTRICT, HIGH, SUPREME, NCLT, CONSUMER]
    assert cascade_order(CONSUMER) == [CONSUMER, DISTRICT, HIGH, SUPREME, NCLT]


def test_cascade_order_unknown_type():
    assert cascade_order("tribunal") == [DISTRICT, HIGH, SUPREME, NCLT, CONSUMER]
