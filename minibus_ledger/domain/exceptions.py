"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """A required field is missing or is not a valid amount/date"""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConfigurationMissingError(DomainException):
    """Rate configuration could not be resolved; a deployment defect, not a user error"""

    def __init__(self, key: str, reason: str = "not configured"):
        super().__init__(f"Rate configuration '{key}' {reason}")
        self.key = key


class DuplicateRecordError(DomainException):
    """A daily record already exists for this bus and date"""

    pass
