class ElectionError(Exception):
    """Base class for every rejected registry operation.

    ``kind`` is the stable name reported to callers and over the wire.
    """
    kind = "ElectionError"

    def __init__(self, message=None):
        super().__init__(message or self.kind)
        self.message = message or self.kind


class OnlyAuthorityError(ElectionError):
    kind = "OnlyAuthority"


class AlreadyRegisteredError(ElectionError):
    kind = "AlreadyRegistered"


class NotRegisteredAsCitizenError(ElectionError):
    kind = "NotRegisteredAsCitizen"


class NotRegisteredAsVoterError(ElectionError):
    kind = "NotRegisteredAsVoter"


class PartyAlreadyExistsError(ElectionError):
    kind = "PartyAlreadyExists"


class InvalidPoliticalPartyError(ElectionError):
    kind = "InvalidPoliticalParty"


class InvalidPartyError(ElectionError):
    kind = "InvalidParty"


class InvalidCandidateError(ElectionError):
    kind = "InvalidCandidate"


class ElectionNotStartedError(ElectionError):
    kind = "ElectionNotStarted"


class ElectionEndedError(ElectionError):
    kind = "ElectionEnded"


class AlreadyVotedError(ElectionError):
    kind = "AlreadyVoted"


class InvalidElectionPeriodError(ElectionError):
    kind = "InvalidElectionPeriod"
