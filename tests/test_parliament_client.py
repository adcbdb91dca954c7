import json

import httpx
import pytest

from parliament_pulse.models import AbsenceQuery
from parliament_pulse.parliament_client import NotFound, ParliamentClient, UpstreamUnavailable

BASE = "https://www.parliament.bg/api/v1"

ASSEMBLY = {
    "A_ns_C_id": 4263,
    "A_ns_CL_value": "52nd National Assembly",
    "A_ns_CL_value_short": "52 NA",
    "A_ns_C_active_count": 240,
    "A_ns_C_date_F": "2024-11-11",
    "A_ns_C_date_T": "9999-12-31",
}

MEMBERS = {
    "A_ns_C_id": 4263,
    "A_ns_CL_value": "52nd National Assembly",
    "A_ns_CL_value_short": "52 NA",
    "A_ns_C_active_count": 240,
    "colListMP": [
        {
            "A_ns_C_id": 4264,
            "A_ns_MP_id": 4833,
            "A_ns_CL_value": "GERB-SDS",
            "A_ns_CL_value_short": "GERB",
            "A_ns_MPL_Name1": "Ivan",
            "A_ns_MPL_Name2": "Ivanov",
            "A_ns_MPL_Name3": "Petrov",
            "A_ns_MP_PosL_value": "Member",
            "A_ns_MP_img": "4833.png",
        }
    ],
}

ABSENCE = {
    "MP_Ab_id": 11,
    "MP_Ab_date": "2024-12-04",
    "A_ns_MP_id": 4833,
    "MP_Ab_T_id": 2,
    "A_ns_MPL_Name1": "Ivan",
    "A_ns_MPL_Name2": "Ivanov",
    "A_ns_MPL_Name3": "Petrov",
    "A_ns_CL_value": "National Assembly",
    "A_ns_C_id": 4264,
}


def _client(handler) -> ParliamentClient:
    return ParliamentClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_assembly_returns_first_entry():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json=[ASSEMBLY, {**ASSEMBLY, "A_ns_C_id": 1}])

    client = _client(handler)
    assembly = await client.fetch_assembly()
    await client.close()

    assert seen == [f"{BASE}/fn-assembly/bg"]
    assert assembly.id == 4263
    assert assembly.short_name == "52 NA"
    assert assembly.to_api() == ASSEMBLY


@pytest.mark.asyncio
async def test_fetch_assembly_rejects_empty_list():
    client = _client(lambda request: httpx.Response(200, json=[]))

    with pytest.raises(UpstreamUnavailable):
        await client.fetch_assembly()
    await client.close()


@pytest.mark.asyncio
async def test_fetch_members_parses_nested_list():
    client = _client(lambda request: httpx.Response(200, json=MEMBERS))

    response = await client.fetch_members()
    await client.close()

    [member] = response.members
    assert member.id == 4833
    assert member.party_short_name == "GERB"
    assert member.image == "4833.png"
    assert response.to_api()["colListMP"][0]["A_ns_MPL_Name3"] == "Petrov"


@pytest.mark.asyncio
async def test_fetch_absences_posts_query_body():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["method"] = request.method
        captured["url"] = str(request.url)
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=[ABSENCE])

    client = _client(handler)
    absences = await client.fetch_absences(AbsenceQuery("2024-12-01", "2024-12-31", "Petrov"))
    await client.close()

    assert captured == {
        "method": "POST",
        "url": f"{BASE}/mp-absense/bg",
        "body": {"search": 1, "date1": "2024-12-01", "date2": "2024-12-31", "A_ns_MP_Name": "Petrov"},
    }
    [absence] = absences
    assert absence.absence_type == 2
    assert absence.to_api() == ABSENCE


@pytest.mark.asyncio
async def test_fetch_member_profile_keeps_raw_lists():
    payload = {
        "A_ns_MP_id": 4833,
        "A_ns_MPL_Name1": "Ivan",
        "A_ns_MPL_Name2": "Ivanov",
        "A_ns_MPL_Name3": "Petrov",
        "A_ns_MP_leg_count": None,
        "munList": [{"A_ns_Va_M_id": 1, "A_ns_Va_M_name": "Sofia"}],
        "mshipList": [{"A_ns_C_id": 4264, "A_ns_CL_value": "GERB-SDS", "A_ns_CT_id": 2}],
        "importActList": [{"L_Act_id": 5, "L_ActL_title": "Act"}],
    }
    client = _client(lambda request: httpx.Response(200, json=payload))

    profile = await client.fetch_member_profile(4833)
    await client.close()

    assert profile.full_name == "Ivan Ivanov Petrov"
    assert profile.legislation_count is None
    assert profile.municipalities[0].name == "Sofia"
    assert profile.memberships[0].structure_type == 2
    assert profile.to_api()["importActList"] == [{"L_Act_id": 5, "L_ActL_title": "Act"}]


@pytest.mark.asyncio
async def test_fetch_member_image_returns_bytes():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=b"\x89PNG-data")

    client = _client(handler)
    content = await client.fetch_member_image(4833)
    await client.close()

    assert content == b"\x89PNG-data"
    assert seen == ["https://www.parliament.bg/images/Assembly/4833.png"]


@pytest.mark.asyncio
async def test_404_raises_not_found():
    client = _client(lambda request: httpx.Response(404))

    with pytest.raises(NotFound) as caught:
        await client.fetch_member_profile(1)
    await client.close()

    assert caught.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [500, 502, 503])
async def test_server_errors_raise_upstream_unavailable(status_code):
    client = _client(lambda request: httpx.Response(status_code))

    with pytest.raises(UpstreamUnavailable) as caught:
        await client.fetch_parties()
    await client.close()

    assert caught.value.status_code == status_code
    assert not isinstance(caught.value, NotFound)


@pytest.mark.asyncio
async def test_network_errors_raise_upstream_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(UpstreamUnavailable) as caught:
        await client.fetch_parties()
    await client.close()

    assert isinstance(caught.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_invalid_json_raises_upstream_unavailable():
    client = _client(lambda request: httpx.Response(200, content=b"<html>maintenance</html>"))

    with pytest.raises(UpstreamUnavailable):
        await client.fetch_parties()
    await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "fetch,payload",
    [
        (lambda client: client.fetch_parties(), {"error": "maintenance"}),
        (lambda client: client.fetch_parties(), ["maintenance"]),
        (lambda client: client.fetch_members(), [MEMBERS]),
        (lambda client: client.fetch_members(), {**MEMBERS, "colListMP": [{"A_ns_MP_id": "n/a"}]}),
        (lambda client: client.fetch_absences(AbsenceQuery("2024-12-01", "2024-12-31")), {"rows": []}),
        (lambda client: client.fetch_absences(AbsenceQuery("2024-12-01", "2024-12-31")), [{"MP_Ab_id": "x"}]),
        (lambda client: client.fetch_assembly(), [{**ASSEMBLY, "A_ns_C_active_count": "many"}]),
        (lambda client: client.fetch_member_profile(1), {"A_ns_MP_id": "abc"}),
    ],
)
async def test_malformed_payloads_raise_upstream_unavailable(fetch, payload):
    client = _client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(UpstreamUnavailable):
        await fetch(client)
    await client.close()
