from conftest import make_absence, make_member, make_party
from parliament_pulse.enrichment import (
    DirectoryIndex,
    enrich,
    full_name,
    member_image_url,
    member_initials,
)
from parliament_pulse.models import Absence, Party


def test_enrich_resolves_party_from_directory():
    raw = Absence.from_api(
        {
            "A_ns_MP_id": 7,
            "A_ns_C_id": 3,
            "A_ns_MPL_Name1": "Ivan",
            "A_ns_MPL_Name2": "",
            "A_ns_MPL_Name3": "Petrov",
            "A_ns_CL_value": "Hall A",
        }
    )
    parties = [Party.from_api({"A_ns_C_id": 3, "A_ns_CL_value": "GERB"})]

    [record] = enrich([raw], parties, [])

    assert record.full_name == "Ivan Petrov"
    assert record.party_name == "GERB"
    assert record.party_short_name == "GERB"
    assert record.member_image_url == "https://www.parliament.bg/images/Assembly/7.png"
    assert record.location == "Hall A"
    assert record.absence is raw


def test_party_short_name_prefers_directory_short_name():
    [record] = enrich([make_absence(7, 1)], [make_party(1, "GERB-SDS", "GERB")], [])

    assert record.party_name == "GERB-SDS"
    assert record.party_short_name == "GERB"


def test_member_directory_is_the_fallback():
    member = make_member(9, 42, "Vazrazhdane", "VAZ")

    [record] = enrich([make_absence(9, 42)], [make_party(1, "GERB")], [member])

    assert record.party_name == "Vazrazhdane"
    assert record.party_short_name == "VAZ"


def test_missing_join_targets_leave_party_fields_empty():
    [record] = enrich([make_absence(5, 99)], [], [])

    assert record.party_name is None
    assert record.party_short_name is None
    assert record.full_name == "Ivan Petrov"


def test_full_name_collapses_missing_parts():
    assert full_name("Ivan", "Ivanov", "Petrov") == "Ivan Ivanov Petrov"
    assert full_name("", "", "Petrov") == "Petrov"
    assert full_name("Ivan", "", "") == "Ivan"
    assert full_name("", "", "") == ""


def test_enrich_preserves_input_order_and_length():
    raw = [make_absence(i, 1, absence_id=i) for i in (3, 1, 2, 1)]

    enriched = enrich(raw, [make_party(1, "GERB")], [])

    assert [record.absence.id for record in enriched] == [3, 1, 2, 1]


def test_directory_index_keeps_first_duplicate():
    index = DirectoryIndex([make_party(1, "First"), make_party(1, "Second")], [])

    assert index.party(1).name == "First"
    assert index.party(2) is None
    assert index.member(1) is None


def test_image_url_honours_custom_base():
    assert member_image_url(4833, "http://localhost:8000/images/Assembly/") == (
        "http://localhost:8000/images/Assembly/4833.png"
    )
    [record] = enrich([make_absence(4833, 1)], [], [], images_base_url="/images/Assembly")
    assert record.member_image_url == "/images/Assembly/4833.png"


def test_member_initials():
    absence = make_absence(1, 1, first="ivan", last="petrov")
    [record] = enrich([absence], [], [])

    assert member_initials(absence) == "IP"
    assert member_initials(record) == "IP"
    assert member_initials(make_absence(1, 1, first="", last="Petrov")) == "P"
