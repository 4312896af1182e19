import json

import pytest

from election_client.prompt import build_signed_packet
from election_server.election import Election
from election_server.handler import MAX_LINE_LENGTH, handle_client, handle_packet

from conftest import END, NOW, START


@pytest.fixture
def election(clock, wallets):
    return Election(START, END, wallets[0].address, clock=clock)


def send(election, packet):
    response = handle_packet(packet, election)
    assert response.endswith("\n")
    status, _, rest = response.strip().partition("|")
    if status == "OK":
        return True, json.loads(rest) if rest else None
    kind, _, message = rest.partition("|")
    return False, kind


def signed(wallet, command, *args):
    return build_signed_packet(wallet, command, args)


def setup_contest(election, wallets):
    authority, citizen1, citizen2 = wallets
    assert send(election, signed(authority, "RP", "People's Democratic Party", "PDP")) == (True, {"id": 1})
    assert send(election, signed(authority, "RP", "All Progressive Congress", "APC")) == (True, {"id": 2})
    assert send(election, signed(citizen1, "RC", "John Doe")) == (True, {"address": citizen1.address})
    assert send(election, signed(citizen2, "RC", "Jane Smith")) == (True, {"address": citizen2.address})
    assert send(election, signed(authority, "RK", 1, citizen1.address)) == (True, None)
    assert send(election, signed(authority, "RK", 2, citizen2.address)) == (True, None)
    assert send(election, signed(citizen1, "RV")) == (True, {"address": citizen1.address})
    assert send(election, signed(citizen2, "RV")) == (True, {"address": citizen2.address})


def test_full_election_over_the_wire(election, wallets, clock):
    authority, citizen1, citizen2 = wallets
    setup_contest(election, wallets)
    assert send(election, signed(citizen1, "V", 2)) == (False, "ElectionNotStarted")
    clock.increase_to(START + 1)
    assert send(election, signed(citizen1, "V", 2)) == (True, None)
    assert send(election, signed(citizen2, "V", 1)) == (True, None)
    assert send(election, signed(citizen2, "V", 1)) == (False, "AlreadyVoted")

    ok, scores = send(election, "LS")
    assert ok
    assert [(s["name"], s["party_abbreviation"], s["vote_count"]) for s in scores] == [
        ("John Doe", "PDP", 1),
        ("Jane Smith", "APC", 1),
    ]
    assert send(election, "TV") == (True, 2)
    assert send(election, "GS|2") == (True, {
        "name": "Jane Smith",
        "party_name": "All Progressive Congress",
        "party_abbreviation": "APC",
        "vote_count": 1,
    })
    ok, details = send(election, f"GC|{citizen1.address}")
    assert ok
    assert details["has_voted"] and details["is_candidate"] and details["party_abbreviation"] == "PDP"


def test_read_commands(election, wallets):
    setup_contest(election, wallets)
    ok, parties = send(election, "LP")
    assert ok and [p["abbreviation"] for p in parties] == ["PDP", "APC"]
    assert send(election, "GP|1") == (True, {"id": 1, "name": "People's Democratic Party", "abbreviation": "PDP"})
    ok, state = send(election, "ST")
    assert ok
    assert state["state"] == "NOT_STARTED"
    assert state["time_left"] == START - NOW
    assert state["authority"] == wallets[0].address
    assert (state["start_time"], state["end_time"]) == (START, END)


def test_citizen_lookup_accepts_uppercase_address(election, wallets):
    citizen1 = wallets[1]
    send(election, signed(citizen1, "RC", "John Doe"))
    ok, details = send(election, f"GC|{citizen1.address.upper().replace('0X', '0x')}")
    assert ok and details["name"] == "John Doe"


@pytest.mark.parametrize(('packet', 'kind'), [
    ("GP|0", "InvalidParty"),
    ("GP|7", "InvalidParty"),
    ("GP|x", "MalformedPacket"),
    ("GC|0x" + "ab" * 20, "NotRegisteredAsCitizen"),
    ("GC|nope", "MalformedPacket"),
    ("GS|1", "InvalidCandidate"),
    ("LP|extra", "MalformedPacket"),
    ("XX", "UnknownCommand"),
    ("", "UnknownCommand"),
])
def test_read_errors(election, packet, kind):
    assert send(election, packet) == (False, kind)


def test_authority_commands_reject_other_callers(election, wallets):
    citizen1 = wallets[1]
    assert send(election, signed(citizen1, "RP", "Labour Party", "LP")) == (False, "OnlyAuthority")
    send(election, signed(citizen1, "RC", "John Doe"))
    assert send(election, signed(citizen1, "RK", 1, citizen1.address)) == (False, "OnlyAuthority")


def test_core_errors_are_reported_verbatim(election, wallets):
    authority, citizen1, _ = wallets
    assert send(election, signed(citizen1, "RV")) == (False, "NotRegisteredAsCitizen")
    send(election, signed(authority, "RP", "Labour Party", "LP"))
    assert send(election, signed(authority, "RP", "Labour Party", "LAB")) == (False, "PartyAlreadyExists")
    send(election, signed(citizen1, "RC", "John Doe"))
    assert send(election, signed(citizen1, "RC", "John Doe")) == (False, "AlreadyRegistered")
    assert send(election, signed(authority, "RK", 999, citizen1.address)) == (False, "InvalidPoliticalParty")


def test_tampered_packet_is_rejected(election, wallets):
    authority = wallets[0]
    packet = signed(authority, "RP", "Labour Party", "LP")
    tampered = packet.replace("Labour Party", "Labour Partyy")
    assert send(election, tampered) == (False, "InvalidSignature")
    assert election.get_all_political_parties() == []


def test_packet_signed_by_another_key_is_rejected(election, wallets):
    authority, citizen1, _ = wallets
    packet = signed(citizen1, "RP", "Labour Party", "LP")
    forged = packet.replace(citizen1.get_public_key(), authority.get_public_key(), 1)
    assert send(election, forged) == (False, "InvalidSignature")


@pytest.mark.parametrize('packet', ["RP|abc|sig", "RV", "V|00|1|2|3", "RC"])
def test_signed_packets_with_wrong_arity(election, packet):
    assert send(election, packet) == (False, "MalformedPacket")


def test_vote_with_non_integer_reference(election, wallets, clock):
    setup_contest(election, wallets)
    clock.increase_to(START + 1)
    assert send(election, signed(wallets[1], "V", "two")) == (False, "MalformedPacket")
    assert send(election, "TV") == (True, 0)


class FakeConnection:
    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.sent = b""
        self.closed = False

    def recv(self, size):
        return self.chunks.pop(0) if self.chunks else b""

    def sendall(self, data):
        self.sent += data

    def close(self):
        self.closed = True


def test_handle_client_splits_lines_across_reads(election, wallets):
    packet = signed(wallets[0], "RP", "Labour Party", "LP").encode() + b"\n"
    conn = FakeConnection([packet[:10], packet[10:] + b"LP\n", b"\nTV\n"])
    handle_client(conn, ("127.0.0.1", 5555), election)
    lines = conn.sent.decode().splitlines()
    assert lines[0] == 'OK|{"id": 1}'
    assert json.loads(lines[1].partition("|")[2]) == [{"id": 1, "name": "Labour Party", "abbreviation": "LP"}]
    assert lines[2] == "OK|0"
    assert conn.closed


def test_handle_client_survives_undecodable_line(election):
    conn = FakeConnection([b"\xff\xfe\n", b"TV\n"])
    handle_client(conn, ("127.0.0.1", 5555), election)
    lines = conn.sent.decode().splitlines()
    assert lines[0].startswith("ERROR|MalformedPacket|")
    assert lines[1] == "OK|0"
    assert conn.closed


def test_handle_client_drops_overlong_line(election):
    conn = FakeConnection([b"TV\n", b"A" * (MAX_LINE_LENGTH + 1), b"TV\n"])
    handle_client(conn, ("127.0.0.1", 5555), election)
    lines = conn.sent.decode().splitlines()
    assert lines[0] == "OK|0"
    assert lines[1].startswith("ERROR|MalformedPacket|")
    assert len(lines) == 2
    assert conn.closed
