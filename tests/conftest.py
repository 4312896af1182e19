import pytest

from election_server.election import Election
from election_server.state import ManualClock

NOW = 1_700_000_000
START = NOW + 24 * 60 * 60
END = START + 3 * 24 * 60 * 60

CHAIRMAN = "0x" + "c0" * 20
CITIZEN1 = "0x" + "a1" * 20
CITIZEN2 = "0x" + "b2" * 20
CITIZEN3 = "0x" + "c3" * 20


@pytest.fixture
def clock():
    return ManualClock(NOW)


@pytest.fixture
def election(clock):
    election = Election(START, END, CHAIRMAN, clock=clock)
    election.register_political_party(CHAIRMAN, "People's Democratic Party", "PDP")
    election.register_political_party(CHAIRMAN, "All Progressive Congress", "APC")
    return election


@pytest.fixture
def contest(election):
    """Two citizens running for parties 1 and 2, both registered voters."""
    election.register_as_citizen(CITIZEN1, "John Doe")
    election.register_as_citizen(CITIZEN2, "Jane Smith")
    election.register_candidate(CHAIRMAN, 1, CITIZEN1)
    election.register_candidate(CHAIRMAN, 2, CITIZEN2)
    election.register_as_voter(CITIZEN1)
    election.register_as_voter(CITIZEN2)
    return election


@pytest.fixture(scope="session")
def wallets(tmp_path_factory):
    """Three initialised 1024-bit wallets: authority, citizen 1, citizen 2."""
    from election_client.tools.wallet import Wallet, mode_init

    directory = tmp_path_factory.mktemp("wallets")
    result = []
    for label in ("authority", "citizen1", "citizen2"):
        wallet = Wallet(str(directory / f"{label}.json"))
        mode_init(wallet, bits=1024)
        result.append(wallet)
    return result
