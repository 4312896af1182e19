import logging
import threading
import time

from . import events
from .errors import (
    AlreadyRegisteredError,
    AlreadyVotedError,
    ElectionEndedError,
    ElectionNotStartedError,
    InvalidCandidateError,
    InvalidPartyError,
    InvalidPoliticalPartyError,
    NotRegisteredAsCitizenError,
    NotRegisteredAsVoterError,
    OnlyAuthorityError,
    PartyAlreadyExistsError,
)
from .events import EventLog
from .records import CandidateScore, Citizen, CitizenView, Party, Role
from .state import ENDED, NOT_STARTED, ElectionWindow

logger = logging.getLogger("server.election")


def is_id(value):
    # bool is an int subclass and True == 1
    return isinstance(value, int) and not isinstance(value, bool)


class Election:
    """Registry for a single election cycle.

    Holds the parties, the citizen records, the candidate slots and the tally.
    Callers pass an already authenticated identity to every mutating
    operation; the current time comes from ``clock`` and is read afresh on
    every vote. A single re-entrant lock serialises mutations and gives reads
    a consistent snapshot.

    A candidate is referenced by the id of the party slot it was registered
    into, and each party holds at most one candidate.
    """

    def __init__(self, start_time, end_time, authority, clock=time.time):
        self.window = ElectionWindow(start_time, end_time)
        self.window.validate(clock())
        self.authority = authority
        self.clock = clock
        self.events = EventLog()
        self._lock = threading.RLock()
        self._parties = []
        self._party_names = set()
        self._party_abbreviations = set()
        self._citizens = {}
        # party id -> candidate address, in candidate registration order
        self._candidates = {}
        self._tally = {}
        self._total_votes_cast = 0
        logger.info(f"Election created by {authority}: window {start_time} -> {end_time}")

    @property
    def start_time(self):
        return self.window.start_time

    @property
    def end_time(self):
        return self.window.end_time

    def phase(self):
        return self.window.phase(self.clock())

    def time_left(self):
        return self.window.time_left(self.clock())

    def _require_authority(self, caller, action):
        if caller != self.authority:
            logger.warning(f"{caller} is not the election authority, {action} refused")
            raise OnlyAuthorityError(f"Only the election authority can {action}")

    # -- parties

    def register_political_party(self, caller, name, abbreviation):
        with self._lock:
            self._require_authority(caller, "register political parties")
            if name in self._party_names or abbreviation in self._party_abbreviations:
                logger.warning(f"Party {name!r} ({abbreviation!r}) collides with a registered party")
                raise PartyAlreadyExistsError(f"Party {name!r} or {abbreviation!r} already exists")
            party = Party(len(self._parties) + 1, name, abbreviation)
            self._parties.append(party)
            self._party_names.add(name)
            self._party_abbreviations.add(abbreviation)
            event = self.events.record(events.POLITICAL_PARTY_REGISTERED, party.id, name, abbreviation)
        logger.info(f"Political party #{party.id} {name} ({abbreviation}) registered")
        self.events.deliver(event)
        return party.id

    def _party(self, party_id):
        if is_id(party_id) and 0 < party_id <= len(self._parties):
            return self._parties[party_id - 1]
        return None

    def get_party_details(self, party_id):
        with self._lock:
            party = self._party(party_id)
        if party is None:
            raise InvalidPartyError(f"No political party with id {party_id}")
        return party

    def get_all_political_parties(self):
        with self._lock:
            return list(self._parties)

    # -- citizens, voters, candidates

    def register_as_citizen(self, caller, name):
        with self._lock:
            if caller in self._citizens:
                logger.warning(f"{caller} tried to register as citizen twice")
                raise AlreadyRegisteredError(f"{caller} is already registered as a citizen")
            self._citizens[caller] = Citizen(caller, name)
            event = self.events.record(events.CITIZEN_REGISTERED, caller, name)
        logger.info(f"Citizen {caller} registered as {name!r}")
        self.events.deliver(event)

    def _citizen(self, address):
        citizen = self._citizens.get(address)
        if citizen is None:
            raise NotRegisteredAsCitizenError(f"{address} is not registered as a citizen")
        return citizen

    def register_as_voter(self, caller):
        with self._lock:
            citizen = self._citizen(caller)
            if citizen.is_voter:
                logger.warning(f"{caller} tried to register as voter twice")
                raise AlreadyRegisteredError(f"{caller} is already registered as a voter")
            citizen.grant(Role.VOTER)
            event = self.events.record(events.VOTER_REGISTERED, caller, citizen.name)
        logger.info(f"Voter {caller} ({citizen.name}) registered")
        self.events.deliver(event)

    def register_candidate(self, caller, party_id, candidate_address):
        with self._lock:
            self._require_authority(caller, "register candidates")
            if self._party(party_id) is None:
                logger.warning(f"Candidate registration for unknown party {party_id}")
                raise InvalidPoliticalPartyError(f"No political party with id {party_id}")
            citizen = self._citizen(candidate_address)
            if citizen.is_candidate:
                logger.warning(f"{candidate_address} is already a candidate for party {citizen.party_id}")
                raise AlreadyRegisteredError(
                    f"{candidate_address} is already a candidate for party {citizen.party_id}")
            if party_id in self._candidates:
                logger.warning(f"Party {party_id} already has a candidate, {candidate_address} refused")
                raise AlreadyRegisteredError(
                    f"Party {party_id} already has candidate {self._candidates[party_id]}")
            citizen.grant(Role.CANDIDATE)
            citizen.party_id = party_id
            self._candidates[party_id] = candidate_address
            self._tally.setdefault(party_id, 0)
            event = self.events.record(events.CANDIDATE_REGISTERED, caller, candidate_address)
        logger.info(f"Candidate {candidate_address} registered for party {party_id}")
        self.events.deliver(event)

    def get_citizen_details(self, address):
        with self._lock:
            citizen = self._citizen(address)
            return CitizenView.join(citizen, self._party(citizen.party_id))

    # -- voting

    def vote_favorite_candidate(self, caller, candidate_reference):
        with self._lock:
            state = self.window.phase(self.clock())
            if state == NOT_STARTED:
                raise ElectionNotStartedError("Election has not started yet")
            if state == ENDED:
                raise ElectionEndedError("Election has ended")
            citizen = self._citizens.get(caller)
            if citizen is None or not citizen.is_voter:
                logger.warning(f"{caller} tried to vote without being a registered voter")
                raise NotRegisteredAsVoterError(f"{caller} is not registered as a voter")
            if citizen.has_voted:
                logger.warning(f"{caller} tried to vote twice")
                raise AlreadyVotedError(f"{caller} has already voted")
            if not is_id(candidate_reference) or candidate_reference not in self._candidates:
                raise InvalidCandidateError(f"No candidate registered for {candidate_reference}")
            citizen.has_voted = True
            self._tally[candidate_reference] += 1
            self._total_votes_cast += 1
            event = self.events.record(events.VOTE_CAST, caller, candidate_reference)
        logger.info(f"Vote cast by {caller} for candidate {candidate_reference}")
        self.events.deliver(event)

    # -- results

    def _score(self, candidate_reference):
        citizen = self._citizens[self._candidates[candidate_reference]]
        party = self._party(candidate_reference)
        return CandidateScore(citizen.name, party.name, party.abbreviation, self._tally[candidate_reference])

    def get_voting_scores(self):
        with self._lock:
            return [self._score(reference) for reference in self._candidates]

    def get_candidate_score(self, candidate_reference):
        with self._lock:
            if not is_id(candidate_reference) or candidate_reference not in self._candidates:
                raise InvalidCandidateError(f"No candidate registered for {candidate_reference}")
            return self._score(candidate_reference)

    def get_total_votes_cast(self):
        with self._lock:
            return self._total_votes_cast
