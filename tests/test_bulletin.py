import pytest

from election_server.bulletin import board_payload, create_bulletin, periodic_broadcast
from election_server.errors import AlreadyRegisteredError

from conftest import CHAIRMAN, CITIZEN1, CITIZEN2, END, START


@pytest.fixture
def bulletin(contest):
    return create_bulletin(contest, async_mode="threading")


def test_index_serves_board(bulletin):
    app, _ = bulletin
    response = app.test_client().get("/")
    assert response.status_code == 200
    assert b"Election Results Board" in response.data


def test_api_board(bulletin, contest, clock):
    app, _ = bulletin
    clock.increase_to(START + 1)
    contest.vote_favorite_candidate(CITIZEN1, 2)
    data = app.test_client().get("/api/board").get_json()
    assert [p["abbreviation"] for p in data["parties"]] == ["PDP", "APC"]
    assert [(s["name"], s["vote_count"]) for s in data["scores"]] == [("John Doe", 0), ("Jane Smith", 1)]
    assert data["total_votes"] == 1
    assert data["state"] == "OPEN"
    assert data["time_left"] == END - START - 1
    assert (data["start_time"], data["end_time"]) == (START, END)
    assert data["events"] == len(contest.events)


def test_committed_events_are_broadcast(bulletin, contest):
    app, socketio = bulletin
    client = socketio.test_client(app)
    client.get_received()
    contest.register_political_party(CHAIRMAN, "Labour Party", "LP")
    received = client.get_received()
    assert [message["name"] for message in received] == ["update"]
    payload = received[0]["args"][0]
    assert payload["parties"][-1]["abbreviation"] == "LP"
    client.disconnect()


def test_failed_operations_are_not_broadcast(bulletin, contest):
    app, socketio = bulletin
    client = socketio.test_client(app)
    client.get_received()
    with pytest.raises(AlreadyRegisteredError):
        contest.register_as_citizen(CITIZEN2, "Jane Again")
    assert client.get_received() == []
    client.disconnect()


def test_periodic_broadcast_stops_when_election_ended(bulletin, contest, clock):
    app, socketio = bulletin
    client = socketio.test_client(app)
    client.get_received()
    clock.increase_to(END + 1)
    periodic_broadcast(app, contest, interval=0)
    received = client.get_received()
    assert len(received) == 1
    assert received[0]["args"][0]["state"] == "ENDED"
    client.disconnect()


def test_board_payload_before_any_candidate(election):
    payload = board_payload(election)
    assert payload["scores"] == []
    assert payload["total_votes"] == 0
    assert payload["state"] == "NOT_STARTED"
