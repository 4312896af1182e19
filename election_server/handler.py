import json
import logging

from .auth import address_from_public_key, normalize_address, verify_signature
from .errors import ElectionError

logger = logging.getLogger("server.handler")

MALFORMED_PACKET = "MalformedPacket"
INVALID_SIGNATURE = "InvalidSignature"
UNKNOWN_COMMAND = "UnknownCommand"

# a signed packet carries a 2048-bit key and signature in hex, well under this
MAX_LINE_LENGTH = 16 * 1024

# command -> number of arguments between the public key and the signature
SIGNED_COMMANDS = {
    "RP": 2,  # name, abbreviation
    "RC": 1,  # name
    "RV": 0,
    "RK": 2,  # party id, candidate address
    "V": 1,   # candidate reference
}


class PacketError(Exception):
    def __init__(self, kind, message):
        super().__init__(message)
        self.kind = kind
        self.message = message


def ok(payload=None):
    if payload is None:
        return "OK\n"
    return f"OK|{json.dumps(payload)}\n"


def error(kind, message):
    return f"ERROR|{kind}|{message}\n"


def parse_int(value, what):
    try:
        return int(value)
    except ValueError:
        raise PacketError(MALFORMED_PACKET, f"{what} must be an integer, got {value!r}")


def parse_address(value):
    try:
        return normalize_address(value)
    except ValueError as e:
        raise PacketError(MALFORMED_PACKET, str(e))


def expect_fields(fields, count):
    if len(fields) != count:
        raise PacketError(MALFORMED_PACKET, f"{fields[0]} expects {count - 1} field(s), got {len(fields) - 1}")


def authenticate(fields):
    """Check the signature of a signed packet and return (caller, args)."""
    command = fields[0]
    expect_fields(fields, SIGNED_COMMANDS[command] + 3)
    pubkey_hex, signature_hex = fields[1], fields[-1]
    message = "|".join(fields[:-1])
    if not verify_signature(message, pubkey_hex, signature_hex):
        raise PacketError(INVALID_SIGNATURE, f"Signature does not match {command} packet")
    return address_from_public_key(pubkey_hex), fields[2:-1]


def state_payload(election):
    return {
        "state": election.phase(),
        "time_left": int(election.time_left()),
        "start_time": election.start_time,
        "end_time": election.end_time,
        "authority": election.authority,
    }


def handle_read(fields, election):
    command = fields[0]
    if command == "LP":
        expect_fields(fields, 1)
        return ok([party.as_dict() for party in election.get_all_political_parties()])
    if command == "GP":
        expect_fields(fields, 2)
        return ok(election.get_party_details(parse_int(fields[1], "Party id")).as_dict())
    if command == "GC":
        expect_fields(fields, 2)
        return ok(election.get_citizen_details(parse_address(fields[1])).as_dict())
    if command == "LS":
        expect_fields(fields, 1)
        return ok([score.as_dict() for score in election.get_voting_scores()])
    if command == "GS":
        expect_fields(fields, 2)
        return ok(election.get_candidate_score(parse_int(fields[1], "Candidate reference")).as_dict())
    if command == "TV":
        expect_fields(fields, 1)
        return ok(election.get_total_votes_cast())
    if command == "ST":
        expect_fields(fields, 1)
        return ok(state_payload(election))
    return None


def handle_signed(fields, election):
    command = fields[0]
    caller, args = authenticate(fields)
    if command == "RP":
        party_id = election.register_political_party(caller, args[0], args[1])
        return ok({"id": party_id})
    if command == "RC":
        election.register_as_citizen(caller, args[0])
        return ok({"address": caller})
    if command == "RV":
        election.register_as_voter(caller)
        return ok({"address": caller})
    if command == "RK":
        election.register_candidate(caller, parse_int(args[0], "Party id"), parse_address(args[1]))
        return ok()
    election.vote_favorite_candidate(caller, parse_int(args[0], "Candidate reference"))
    return ok()


def handle_packet(packet, election):
    """Answer one request line. Never raises for bad input."""
    fields = packet.strip().split("|")
    command = fields[0]
    try:
        if command in SIGNED_COMMANDS:
            return handle_signed(fields, election)
        response = handle_read(fields, election)
        if response is None:
            raise PacketError(UNKNOWN_COMMAND, f"Unknown command {command!r}")
        return response
    except PacketError as e:
        logger.warning(f"Rejected {command} packet: {e.kind}: {e.message}")
        return error(e.kind, e.message)
    except ElectionError as e:
        logger.warning(f"{command} refused: {e.kind}: {e.message}")
        return error(e.kind, e.message)


def handle_client(conn, addr, election):
    buffer = b""
    try:
        while True:
            data = conn.recv(4096)
            if not data:
                break
            buffer += data
            while b"\n" in buffer:
                line, buffer = buffer.split(b"\n", 1)
                try:
                    packet = line.decode().strip()
                except UnicodeDecodeError:
                    logger.warning(f"[client {addr[0]}:{addr[1]}] sent a line that is not UTF-8")
                    conn.sendall(error(MALFORMED_PACKET, "Packet is not valid UTF-8").encode())
                    continue
                if not packet:
                    continue
                logger.info(f"[client {addr[0]}:{addr[1]}] {packet[:80]}")
                conn.sendall(handle_packet(packet, election).encode())
            if len(buffer) > MAX_LINE_LENGTH:
                logger.warning(f"[client {addr[0]}:{addr[1]}] line exceeds {MAX_LINE_LENGTH} bytes, dropping connection")
                conn.sendall(error(MALFORMED_PACKET, f"Packet longer than {MAX_LINE_LENGTH} bytes").encode())
                break
    finally:
        logger.info(f"Connection with {addr[0]}:{addr[1]} closed.")
        conn.close()
