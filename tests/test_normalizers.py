from datetime import date, datetime

import pytest

from ecourts_resolver.models import CanonicalCase, PartyType
from ecourts_resolver.normalizers import (
    acts_from,
    case_payload,
    coerce_party_type,
    decision_date,
    dig,
    fallback_case_number,
    first_of,
    first_text,
    keys,
    normalize_kleopatra,
    normalize_official,
    normalize_third_party,
    orders_from,
    parse_date,
    to_number,
)

KLEOPATRA_PAYLOAD = {
    "data": {
        "cnr": "DLHC010011762021",
        "title": "Ramesh Kumar vs State of Delhi",
        "registrationNumber": "W.P.(C) 1176/2021",
        "filingNumber": "F-88/2021",
        "details": {
            "type": "WRIT PETITION",
            "filingDate": "2021-01-10",
            "registrationDate": "12-01-2021",
        },
        "status": {
            "caseStage": "ADMISSION",
            "courtNumberAndJudge": "Court No. 4 - Hon'ble Justice A",
            "firstHearingDate": "15th January 2021",
            "nextHearingDate": "2024-05-02",
            "decisionDate": "1970-01-01",
        },
        "parties": {
            "petitioners": ["Ramesh Kumar"],
            "respondents": [{"name": "State of Delhi"}],
            "petitionerAdvocates": ["A. Mehta"],
            "respondentAdvocates": [{"name": "B. Rao", "barNumber": "D/12/1999"}],
        },
        "history": {
            "hearings": [
                {"date": "2021-01-15", "purpose": "Admission", "judge": "Justice A"},
                {"date": "2021-03-01"},
            ]
        },
        "orders": [{"orderDate": "2021-03-01", "url": "https://x/o1.pdf"}, {"name": "Final"}],
        "actsAndSections": {"acts": "Constitution of India", "sections": ","},
    }
}


# --- accessor primitives ---


def test_dig_nested_and_missing():
    data = {"a": {"b": {"c": 1}}, "x": "str"}
    assert dig(data, "a.b.c") == 1
    assert dig(data, "a.z.c") is None
    assert dig(data, "x.y") is None
    assert dig(None, "a") is None


def test_first_of_skips_blank_and_raising_accessors():
    def boom(_):
        raise KeyError("nope")

    data = {"a": "  ", "b": "value"}
    assert first_of(data, [boom, *keys("a", "b")]) == "value"
    assert first_of(data, keys("z"), default="fallback") == "fallback"


def test_first_text_accepts_numbers_not_bools():
    assert first_text({"n": 42}, ("n",)) == "42"
    assert first_text({"b": True, "s": " x "}, ("b", "s")) == "x"
    assert first_text({}, ("n",), "default") == "default"


# --- value coercion ---


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-03-15", date(2024, 3, 15)),
        ("2024-03-15T10:00:00Z", date(2024, 3, 15)),
        ("15-03-2024", date(2024, 3, 15)),
        ("15/03/2024", date(2024, 3, 15)),
        ("15.03.2024", date(2024, 3, 15)),
        ("15th March 2024", date(2024, 3, 15)),
        ("1st Jan, 2024", date(2024, 1, 1)),
        ("March 15, 2024", date(2024, 3, 15)),
        (datetime(2024, 3, 15, 9, 30), date(2024, 3, 15)),
        (date(2024, 3, 15), date(2024, 3, 15)),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value) == expected


@pytest.mark.parametrize("value", [None, "", "   ", "not a date", "31-02-2024", 20240315, {}])
def test_parse_date_rejects(value):
    assert parse_date(value) is None


def test_decision_date_epoch_sentinel():
    assert decision_date("1970-01-01") is None
    assert decision_date("01-01-1970") is None
    assert decision_date("2023-07-01") == date(2023, 7, 1)


@pytest.mark.parametrize(
    "normalize, payload",
    [
        (normalize_official, {"decisionDate": "1970-01-01", "disposalDate": "2021-05-04"}),
        (normalize_kleopatra, {"decisionDate": "1970-01-01", "disposalDate": "2021-05-04"}),
        (normalize_third_party, {"decision_date": "1970-01-01", "decisionDate": "2021-05-04"}),
    ],
)
def test_epoch_decision_date_falls_through_to_next_key(normalize, payload):
    assert normalize(payload, "DLHC010011762021").decision_date == date(2021, 5, 4)


def test_to_number():
    assert to_number("1,50,000") == 150000.0
    assert to_number(12) == 12.0
    assert to_number("n/a") is None
    assert to_number(True) is None


def test_coerce_party_type_aliases():
    assert coerce_party_type("appellant", PartyType.RESPONDENT) is PartyType.PETITIONER
    assert coerce_party_type("Opposite Party", PartyType.PETITIONER) is PartyType.RESPONDENT
    assert coerce_party_type("witness", PartyType.PLAINTIFF) is PartyType.PLAINTIFF
    assert coerce_party_type(None, PartyType.DEFENDANT) is PartyType.DEFENDANT


def test_acts_from_suppresses_lone_comma_sections():
    acts = acts_from({"acts": "IPC", "sections": ","})
    assert acts.acts == "IPC"
    assert acts.sections == ""
    assert acts_from({"acts": "", "sections": ","}) is None
    assert acts_from("IPC") is None


def test_acts_from_list():
    acts = acts_from([{"act": "IPC", "section": "302"}, {"act": "CrPC", "section": "439"}])
    assert acts.acts == "IPC, CrPC"
    assert acts.sections == "302, 439"


def test_orders_from_numbers_entries():
    orders = orders_from([{"orderNumber": "7"}, {"name": "Final"}, "junk", {}])
    assert [o.number for o in orders] == [7, 2, 4]
    assert orders[2].name == "Order 4"


def test_fallback_case_number():
    assert fallback_case_number("CASE", "DLHC010011762021") == "CASE-762021"
    assert fallback_case_number("REG", "", 2) == "REG-UNKNOWN-3"


# --- payload recognition ---


def test_case_payload_recognition():
    assert case_payload({"data": {"cnr": "X"}}) == {"data": {"cnr": "X"}}
    assert case_payload([{"title": "A vs B"}]) == {"title": "A vs B"}
    assert case_payload({"status": "error", "message": "not found"}) is None
    assert case_payload({"data": {}}) is None
    assert case_payload([]) is None
    assert case_payload("oops") is None


# --- normalizer totality ---


@pytest.mark.parametrize(
    "normalize", [normalize_official, normalize_kleopatra, normalize_third_party]
)
@pytest.mark.parametrize(
    "payload",
    [None, {}, [], "text", 42, {"data": None}, {"parties": "x", "judges": 5, "orders": {}}],
)
def test_normalizers_are_total(normalize, payload):
    case = normalize(payload, "DLHC010011762021")
    assert isinstance(case, CanonicalCase)
    assert case.cnr == "DLHC010011762021"
    assert case.case_number
    assert case.title == "Unknown Case"


def test_normalizer_uses_payload_cnr_when_none_requested():
    case = normalize_third_party({"cnr_number": "MHPU010012342023"}, "")
    assert case.cnr == "MHPU010012342023"
    assert case.case_number == "REG-342023"


# --- Kleopatra family ---


def test_normalize_kleopatra_full_payload():
    case = normalize_kleopatra(KLEOPATRA_PAYLOAD, "DLHC010011762021")

    assert case.case_number == "W.P.(C) 1176/2021"
    assert case.filing_number == "F-88/2021"
    assert case.title == "Ramesh Kumar vs State of Delhi"
    assert case.court == "Court No. 4 - Hon'ble Justice A"
    assert case.case_type == "WRIT PETITION"
    assert case.case_status == "ADMISSION"
    assert case.filing_date == date(2021, 1, 10)
    assert case.last_hearing_date == date(2021, 1, 15)
    assert case.next_hearing_date == date(2024, 5, 2)
    assert case.first_hearing_date == date(2021, 1, 15)
    assert case.decision_date is None

    assert [(p.name, p.type) for p in case.parties] == [
        ("Ramesh Kumar", PartyType.PLAINTIFF),
        ("State of Delhi", PartyType.DEFENDANT),
    ]
    assert [(a.name, a.type) for a in case.advocates] == [
        ("A. Mehta", "PETITIONER"),
        ("B. Rao", "RESPONDENT"),
    ]
    assert case.advocates[1].bar_number == "D/12/1999"

    assert len(case.hearing_history) == 2
    assert case.hearing_history[1].purpose == "Hearing"
    assert case.hearing_history[1].judge == "Unknown Judge"
    assert [o.number for o in case.orders] == [1, 2]
    assert case.orders[0].url == "https://x/o1.pdf"
    assert case.acts_and_sections.sections == ""


def test_normalize_kleopatra_search_index_keeps_numbers_distinct():
    a = normalize_kleopatra({"title": "A"}, "", index=0)
    b = normalize_kleopatra({"title": "B"}, "", index=1)
    assert a.case_number != b.case_number


def test_normalize_kleopatra_nested_status_object_is_not_text():
    case = normalize_kleopatra({"status": {"nextHearingDate": "2024-01-01"}}, "X" * 16)
    assert case.case_status == "PENDING"


# --- official family ---


def test_normalize_official():
    case = normalize_official(
        {
            "caseNumber": "CS 12/2020",
            "courtName": "Saket District Court",
            "filingDate": "03-02-2020",
            "parties": [
                {"name": "Asha", "type": "appellant"},
                {"name": "Vikram", "type": "respondent"},
            ],
            "judges": ["Judge X"],
            "caseValue": "2,50,000",
        },
        "DLST010000122020",
    )
    assert case.case_number == "CS 12/2020"
    assert case.court == "Saket District Court"
    assert case.filing_date == date(2020, 2, 3)
    assert [p.type for p in case.parties] == [PartyType.PETITIONER, PartyType.RESPONDENT]
    assert case.judges[0].court == "Saket District Court"
    assert case.case_details.case_value == 250000.0


def test_normalize_official_fallback_case_number():
    case = normalize_official({}, "DLST010000122020")
    assert case.case_number == "CASE-122020"
    assert case.case_status == "PENDING"
    assert case.case_type == "CIVIL"
