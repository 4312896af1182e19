import logging
import threading
from collections import namedtuple

logger = logging.getLogger("server.events")

POLITICAL_PARTY_REGISTERED = "PoliticalPartyRegistered"
CITIZEN_REGISTERED = "CitizenRegistered"
VOTER_REGISTERED = "VoterRegistered"
CANDIDATE_REGISTERED = "CandidateRegistered"
VOTE_CAST = "VoteCast"

Event = namedtuple("Event", ["sequence", "name", "args"])


class EventLog:
    """Append-only record of committed registry mutations.

    ``record`` runs inside the registry lock alongside the state change.
    ``deliver`` runs after the lock is released, under a lock of its own that
    keeps delivery in sequence order; a failing listener is logged
    and never affects the committed state.
    """

    def __init__(self):
        self._events = []
        self._listeners = []
        self._delivered = 0
        self._delivery_lock = threading.RLock()

    def __len__(self):
        return len(self._events)

    def __iter__(self):
        return iter(list(self._events))

    def __getitem__(self, index):
        return self._events[index]

    def record(self, name, *args):
        event = Event(len(self._events) + 1, name, tuple(args))
        self._events.append(event)
        return event

    def since(self, sequence):
        return list(self._events[sequence:])

    def subscribe(self, callback):
        self._listeners.append(callback)

    def unsubscribe(self, callback):
        self._listeners.remove(callback)

    def deliver(self, event):
        """Hand every recorded event up to ``event`` to the listeners.

        Events reach listeners in sequence order even when the committing
        threads finish out of order; an event already delivered is skipped.
        """
        with self._delivery_lock:
            while self._delivered < event.sequence:
                pending = self._events[self._delivered]
                self._delivered += 1
                self._notify(pending)

    def _notify(self, event):
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Listener {callback!r} failed on event #{event.sequence} {event.name}")
