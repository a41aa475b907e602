"""Domain errors.

Everything subclasses ``ValueError`` so callers that only care about
"the operation was rejected" can keep catching ``ValueError``.
"""


class CanteenError(ValueError):
    pass


class AuthError(CanteenError):
    """Bad credentials, duplicate sign-up or an unusable token."""


class NotAuthenticatedError(CanteenError):
    pass


class PermissionDeniedError(CanteenError):
    pass


class NotFoundError(CanteenError):
    pass


class InvalidTransitionError(CanteenError):
    """Order status or assignment change that the lifecycle does not allow."""


class EmptyCartError(CanteenError):
    pass


class CartSyncError(CanteenError):
    """The database write behind a cart change failed.

    The in-memory cart and local cache already hold the new state when this
    is raised, so the caller decides whether to retry or just tell the user.
    """


class OrderPlacementError(CanteenError):
    def __init__(self, message: str, order_id: int | None = None):
        super().__init__(message)
        # set when the order row exists but its items could not be written
        self.order_id = order_id


class PaymentError(CanteenError):
    pass
