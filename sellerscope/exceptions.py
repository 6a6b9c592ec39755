"""Exception hierarchy for sellerscope.

Exceptions are raised by individual components and caught at the pipeline
boundaries: acquisition turns them into an unavailable result, seller
reconciliation turns them into a fallthrough to the next strategy.
"""


class SellerscopeError(Exception):
    """Base class for all sellerscope errors."""


class PayloadUnavailableError(SellerscopeError):
    """Embedded data container is not present on the page."""


class PayloadShapeError(SellerscopeError):
    """Embedded data container is present but not usable.

    Raised for invalid JSON and for payloads missing the product sub-object.
    """


class OfferQueryError(SellerscopeError):
    """Remote offers query failed (network, status or response shape)."""


class OfferQueryBlockedError(OfferQueryError):
    """Remote offers query was rejected by bot protection.

    Attributes:
        status: HTTP status code of the rejected response.
    """

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
