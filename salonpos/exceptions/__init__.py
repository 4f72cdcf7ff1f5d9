"""Custom exceptions for the salon POS application."""


class SalonError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv


class BusinessLogicError(SalonError):
    """Exception raised for business logic violations."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)


class NotFoundError(SalonError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)


class ValidationError(BusinessLogicError):
    """A sale cannot be finalized. Raised before anything is written."""

    EMPTY_CART = 'empty_cart'
    MISSING_CUSTOMER = 'missing_customer'
    MISSING_STAFF = 'missing_staff'
    INVALID_PAYMENT_MODE = 'invalid_payment_mode'

    def __init__(self, message, reason, service_id=None):
        payload = {'reason': reason}
        if service_id is not None:
            payload['service_id'] = service_id
        super().__init__(message, status_code=422, payload=payload)
        self.reason = reason
        self.service_id = service_id


class DiscountRangeError(SalonError):
    """A discount value outside its valid range reached the pricing engine."""
    def __init__(self, discount_type, value, upper):
        message = f"Discount {discount_type} value {value} is outside [0, {upper}]"
        super().__init__(message, status_code=500,
                         payload={'discount_type': discount_type, 'value': str(value)})


class WriteError(SalonError):
    """
    Persisting the unit rows of a sale failed.

    written_ids holds the rows that reached the store before the failure.
    When it is not empty the sale is partially persisted and must be
    reconciled by the caller.
    """
    def __init__(self, message, written_ids=None, total_rows=0):
        self.written_ids = list(written_ids or [])
        self.total_rows = total_rows
        super().__init__(message, status_code=502, payload={
            'written_ids': self.written_ids,
            'total_rows': total_rows,
            'partial': self.partial,
        })

    @property
    def partial(self):
        return bool(self.written_ids)


class DeletionAuthError(SalonError):
    """Re-authentication for deleting a sale failed or was not supplied."""
    def __init__(self, message="Incorrect passphrase. Access denied."):
        super().__init__(message, 403)
