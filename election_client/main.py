import json
import logging
import os
import shlex
import socket
import ssl
import sys

from election_server.auth import normalize_address
from .prompt import build_signed_packet, check_field, format_table, get_passphrase, get_user_message, print_help
from .tools.wallet import Wallet

logger = logging.getLogger("client.main")

HOST = os.getenv("ELECTION_HOST", "127.0.0.1")
PORT = int(os.getenv("ELECTION_PORT", "8443"))
CA_CERT = os.getenv("ELECTION_CA_CERT", "election_client/cert.pem")

# command -> (packet code, number of arguments)
READ_COMMANDS = {
    "parties": ("LP", 0),
    "party": ("GP", 1),
    "citizen": ("GC", 1),
    "scores": ("LS", 0),
    "score": ("GS", 1),
    "total": ("TV", 0),
    "state": ("ST", 0),
}

SIGNED_COMMANDS = {
    "register_party": ("RP", 2),
    "register_citizen": ("RC", 1),
    "register_voter": ("RV", 0),
    "register_candidate": ("RK", 2),
    "vote": ("V", 1),
}

TABLE_COLUMNS = {
    "LP": [("id", "ID"), ("name", "Name"), ("abbreviation", "Abbreviation")],
    "LS": [("name", "Candidate"), ("party_name", "Party"), ("party_abbreviation", "Abbr"), ("vote_count", "Votes")],
}


def build_packet(command, options, wallet):
    if command == "citizen" and not options:
        options = [wallet.address]
    if command in READ_COMMANDS:
        code, arity = READ_COMMANDS[command]
        signed = False
    elif command in SIGNED_COMMANDS:
        code, arity = SIGNED_COMMANDS[command]
        signed = True
    else:
        raise ValueError(f"Unknown command: {command}")
    if len(options) != arity:
        raise ValueError(f"{command} expects {arity} argument(s), got {len(options)}")
    if command == "register_candidate":
        options = [options[0], normalize_address(options[1])]
    if not signed:
        return "|".join([code] + [check_field(option) for option in options])
    passphrase = get_passphrase() if wallet.get("encrypted") else None
    return build_signed_packet(wallet, code, options, passphrase)


def parse_response(response_text):
    """Split a server line into (ok, payload); payload is (kind, message) on errors."""
    status, _, rest = response_text.strip().partition("|")
    if status == "OK":
        return True, json.loads(rest) if rest else None
    if status == "ERROR":
        kind, _, message = rest.partition("|")
        return False, (kind, message)
    raise ValueError(f"Malformed response from server: {response_text!r}")


def render(code, payload):
    if payload is None:
        return "OK"
    if code in TABLE_COLUMNS:
        if not payload:
            return "(none)"
        return format_table(payload, TABLE_COLUMNS[code])
    if isinstance(payload, dict):
        return "\n".join(f"{key}: {value}" for key, value in payload.items())
    return str(payload)


def exchange(ssock, packet):
    ssock.sendall((packet + "\n").encode())
    buffer = b""
    while not buffer.endswith(b"\n"):
        data = ssock.recv(4096)
        if not data:
            raise ConnectionError("Server closed the connection.")
        buffer += data
    return buffer.decode()


def run_command(ssock, command, options, wallet):
    try:
        packet = build_packet(command, options, wallet)
    except ValueError as e:
        logger.error(str(e))
        return False
    ok, payload = parse_response(exchange(ssock, packet))
    if not ok:
        kind, message = payload
        logger.error(f"{kind}: {message}")
        return False
    print(render(packet.split("|", 1)[0], payload))
    return True


def connect():
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=CA_CERT)
    context.check_hostname = True
    sock = socket.create_connection((HOST, PORT))
    return context.wrap_socket(sock, server_hostname=HOST)


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s"
    )
    if len(sys.argv) < 2:
        logger.error("Usage: python3 -m election_client.main <wallet_path> [command] [options]")
        return 1
    wallet = Wallet(sys.argv[1]).load()
    if not wallet.is_initialized():
        logger.error(f"No key in {sys.argv[1]}. Run 'python3 -m election_client.tools.wallet {sys.argv[1]} init' first.")
        return 1
    command = sys.argv[2] if len(sys.argv) > 2 else None
    options = sys.argv[3:]

    try:
        with connect() as ssock:
            if command:
                return 0 if run_command(ssock, command, options, wallet) else 1

            logger.info(f"TLS established as {wallet.address}. Type 'help' for commands. Ctrl+D to exit.")
            while True:
                message = get_user_message()
                if message is None or message.strip().lower() == "exit":
                    logger.info("Exiting client.")
                    break
                try:
                    words = shlex.split(message)
                except ValueError as e:
                    logger.warning(f"Could not parse command: {e}")
                    continue
                if not words:
                    continue
                if words[0].lower() == "help":
                    print_help()
                    continue
                run_command(ssock, words[0].lower(), words[1:], wallet)
    except OSError as e:
        logger.error(f"Connection to {HOST}:{PORT} failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
