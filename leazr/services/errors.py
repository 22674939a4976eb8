"""
Domain errors raised by services.

The API layer translates them into HTTP errors; lookup misses are never
errors and do not appear here.
"""


class OfferError(Exception):
    """Base class for offer and workflow errors."""


class OfferNotFoundError(OfferError):
    def __init__(self, offer_id: int):
        super().__init__(f"Offer {offer_id} not found")
        self.offer_id = offer_id


class OfferLockedError(OfferError):
    """The offer was converted to a contract and can no longer be edited."""

    def __init__(self, offer_id: int):
        super().__init__(f"Offer {offer_id} has been converted to a contract")
        self.offer_id = offer_id


class InvalidTransitionError(OfferError):
    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move offer from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested


class WorkflowLogError(OfferError):
    """The log-of-record row could not be written; the status was not touched."""
