"""Rehearse a full election in-process against a simulated clock.

The authority registers three parties, two citizens become candidates and
voters, the clock is moved into the voting window and each citizen votes for
the other's party slot. Every stage is printed as a table.
"""
import hashlib
import logging
import time
from datetime import datetime

from election_client.prompt import format_table
from election_server.election import Election
from election_server.state import ManualClock

logger = logging.getLogger("client.scenario")

PARTIES = [
    ("People's Democratic Party", "PDP"),
    ("All Progressive Congress", "APC"),
    ("Labour Party", "LP"),
]


def account(label):
    return "0x" + hashlib.sha256(label.encode("utf-8")).digest()[-20:].hex()


def fmt_time(timestamp):
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def run_scenario(now=None, out=print):
    now = int(time.time()) if now is None else now
    clock = ManualClock(now)
    chairman, citizen1, citizen2 = account("chairman"), account("citizen1"), account("citizen2")
    out("################## Checking accounts.... ##################")
    out(format_table(
        [{"role": "chairman", "address": chairman},
         {"role": "citizen 1", "address": citizen1},
         {"role": "citizen 2", "address": citizen2}],
        [("role", "Role"), ("address", "Address")],
    ))

    start_time = now + 120
    end_time = start_time + 86400
    out(f"\nCurrent Time: {fmt_time(now)}")
    out(f"Start Time: {fmt_time(start_time)}")
    out(f"End Time: {fmt_time(end_time)}\n")
    election = Election(start_time, end_time, chairman, clock=clock)

    out("################## Registering Political Parties.... ##################")
    for name, abbreviation in PARTIES:
        election.register_political_party(chairman, name, abbreviation)
        out(f"{abbreviation} registered successfully!")
    out(format_table(
        [party.as_dict() for party in election.get_all_political_parties()],
        [("id", "ID"), ("name", "Name"), ("abbreviation", "Abbreviation")],
    ))

    out("################## Registering Citizens.... ##################")
    election.register_as_citizen(citizen1, "John Doe")
    election.register_as_citizen(citizen2, "Jane Smith")

    out("################## Registering Candidates.... ##################")
    election.register_candidate(chairman, 1, citizen1)
    election.register_candidate(chairman, 2, citizen2)

    out("################## Registering Voters.... ##################")
    election.register_as_voter(citizen1)
    election.register_as_voter(citizen2)

    out("################## Starting Voting Process.... ##################")
    clock.increase_to(start_time + 60)
    out(f"Current time after advance: {fmt_time(clock())}")
    election.vote_favorite_candidate(citizen1, 2)
    election.vote_favorite_candidate(citizen2, 1)

    out("################## Voting Results.... ##################")
    out(format_table(
        [score.as_dict() for score in election.get_voting_scores()],
        [("name", "Name"), ("party_name", "Party"), ("party_abbreviation", "Abbr"), ("vote_count", "Votes")],
    ))
    for reference in (1, 2):
        score = election.get_candidate_score(reference)
        out(f"\nCandidate {reference}: {score.name}, {score.party_name} "
            f"({score.party_abbreviation}), {score.vote_count} vote(s)")
    details = election.get_citizen_details(citizen1)
    out(f"\nCitizen 1: {details.name}, voter={details.is_voter}, candidate={details.is_candidate}, "
        f"voted={details.has_voted}, party={details.party_name} ({details.party_abbreviation})")
    out(f"\nTotal votes cast: {election.get_total_votes_cast()}")
    return election


def main():
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s"
    )
    run_scenario()


if __name__ == "__main__":
    main()
