"""
Tests for the event store client, using a fake requests session.
"""

from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from codec import MalformedToken
from get_data.crabfit import CrabFitClient, event_id_from_url, get_event_data

EVENT = {
    "id": "team-sync-123456",
    "name": "Team sync",
    "times": ["0900-1", "0900-17112025", "1000-17112025"],
    "timezone": "Europe/Berlin",
    "created_at": 1762900000,
}
PEOPLE = [
    {"name": "A", "availability": ["0900-1"], "created_at": 1762900100},
    {"name": "B", "availability": ["1000-17112025"], "created_at": 1762900200},
]


def _response(payload, status=200):
    response = MagicMock()
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


def _client(*payloads):
    session = MagicMock()
    session.request.side_effect = [_response(p) for p in payloads]
    return CrabFitClient(base_url="https://api.example.test/", session=session, timeout=3), session


@pytest.mark.parametrize("url", [
    "https://crab.fit/team-sync-123456",
    "https://crab.fit/team-sync-123456/",
    "team-sync-123456",
    " /team-sync-123456 ",
])
def test_event_id_from_url(url):
    assert event_id_from_url(url) == "team-sync-123456"


def test_event_id_missing():
    with pytest.raises(ValueError):
        event_id_from_url("https://crab.fit/")


def test_get_event():
    client, session = _client(EVENT)
    event = client.get_event("team-sync-123456")

    assert event == {
        "id": "team-sync-123456",
        "name": "Team sync",
        "times": EVENT["times"],
        "timezone": "Europe/Berlin",
        "created_at": 1762900000,
    }
    method, url = session.request.call_args.args
    assert method == "GET"
    assert url == "https://api.example.test/event/team-sync-123456"
    assert session.request.call_args.kwargs["timeout"] == 3


def test_get_people_drops_extra_fields():
    client, _ = _client(PEOPLE)
    assert client.get_people("team-sync-123456") == [
        {"name": "A", "availability": ["0900-1"]},
        {"name": "B", "availability": ["1000-17112025"]},
    ]


def test_http_error_propagates():
    session = MagicMock()
    session.request.return_value = _response({}, status=404)
    client = CrabFitClient(session=session)
    with pytest.raises(requests.HTTPError):
        client.get_event("missing")


def test_bad_payload():
    client, _ = _client({"id": "x"})
    with pytest.raises(ValueError):
        client.get_event("x")


def test_update_person_sends_password_and_body():
    client, session = _client({"name": "A B", "availability": ["0900-17112025"]})
    person = client.update_person("evt", "A B", ["0900-17112025"], password="hunter2")

    assert person == {"name": "A B", "availability": ["0900-17112025"]}
    method, url = session.request.call_args.args
    kwargs = session.request.call_args.kwargs
    assert method == "PATCH"
    assert url == "https://api.example.test/event/evt/people/A%20B"
    assert kwargs["json"] == {"availability": ["0900-17112025"]}
    assert kwargs["headers"]["Authorization"] == "Bearer aHVudGVyMg=="


def test_update_person_rejects_malformed_tokens_before_sending():
    client, session = _client()
    with pytest.raises(MalformedToken):
        client.update_person("evt", "A", ["25a0-15112025"])
    session.request.assert_not_called()


def test_create_event():
    client, session = _client(EVENT)
    client.create_event(["0900-1"], "Europe/Berlin", name="Team sync")

    method, url = session.request.call_args.args
    assert (method, url) == ("POST", "https://api.example.test/event")
    assert session.request.call_args.kwargs["json"] == {
        "times": ["0900-1"],
        "timezone": "Europe/Berlin",
        "name": "Team sync",
    }
    assert "Authorization" not in session.request.call_args.kwargs["headers"]


def test_get_event_data_expands_times():
    client, _ = _client(EVENT, PEOPLE)
    data = get_event_data("https://crab.fit/team-sync-123456", date(2025, 11, 12), client=client, window_weeks=1)

    assert data["event"]["id"] == "team-sync-123456"
    assert [p["name"] for p in data["people"]] == ["A", "B"]
    assert [i["token"] for i in data["instants"]] == [
        "0900-17112025",
        "1000-17112025",
        "0900-24112025",
    ]
