import enum
from dataclasses import dataclass, asdict

# Party id 0 is never assigned; it marks a citizen without a party.
NO_PARTY = 0


@dataclass(frozen=True)
class Party:
    id: int
    name: str
    abbreviation: str

    def as_dict(self):
        return asdict(self)


class Role(enum.Flag):
    CITIZEN = enum.auto()
    VOTER = enum.auto()
    CANDIDATE = enum.auto()


@dataclass
class Citizen:
    """Registry-owned record for one participant identity.

    Roles are only ever added; a record without ``Role.CITIZEN`` cannot be built.
    """
    address: str
    name: str
    roles: Role = Role.CITIZEN
    has_voted: bool = False
    party_id: int = NO_PARTY

    def __post_init__(self):
        self.roles |= Role.CITIZEN

    @property
    def is_citizen(self):
        return Role.CITIZEN in self.roles

    @property
    def is_voter(self):
        return Role.VOTER in self.roles

    @property
    def is_candidate(self):
        return Role.CANDIDATE in self.roles

    def grant(self, role):
        self.roles |= role


@dataclass(frozen=True)
class CitizenView:
    name: str
    is_citizen: bool
    is_voter: bool
    is_candidate: bool
    has_voted: bool
    political_party_id: int
    party_name: str = ""
    party_abbreviation: str = ""

    @classmethod
    def join(cls, citizen, party=None):
        return cls(
            name=citizen.name,
            is_citizen=citizen.is_citizen,
            is_voter=citizen.is_voter,
            is_candidate=citizen.is_candidate,
            has_voted=citizen.has_voted,
            political_party_id=citizen.party_id,
            party_name=party.name if party else "",
            party_abbreviation=party.abbreviation if party else "",
        )

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class CandidateScore:
    name: str
    party_name: str
    party_abbreviation: str
    vote_count: int

    def as_dict(self):
        return asdict(self)
