"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed or out of range (amounts, rates, client data)"""

    pass


class LedgerStateError(DomainException):
    """Cash register operation invoked in the wrong session state"""

    pass


class RecordsDeliveryError(DomainException):
    """Closure report could not be delivered to the system of record"""

    pass
