"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed or legally impossible; raised before any state change"""

    pass


class CurrencyMismatchError(ValidationError):
    """Arithmetic attempted between amounts in different currencies"""

    pass


class InvalidPercentageError(ValidationError):
    """Percentage outside the 0-100 range"""

    pass


class InvalidAllocationError(ValidationError):
    """Allocation requested into zero parts or with unusable ratios"""

    pass


class ComputationError(DomainException):
    """A distribution calculator cannot proceed with the given family structure"""

    pass


class NoSurvivingUnitsError(ComputationError):
    """Polygamous estate has no surviving wives or children to allocate to"""

    pass


class AdjustmentAlreadyAppliedError(ComputationError):
    """An adjustment pass was run against shares it has already adjusted"""

    pass


class NotFoundError(DomainException):
    """Referenced scenario or share does not exist"""

    pass


class ScenarioNotFoundError(NotFoundError):
    pass


class ShareNotFoundError(NotFoundError):
    pass


class ConcurrencyConflictError(DomainException):
    """Stored aggregate version is not older than the version being written"""

    pass
