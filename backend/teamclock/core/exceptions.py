"""
TeamClock - Domain Errors
=========================

Every core operation either returns a value or raises one of these. The API
layer maps them to HTTP responses; the core never formats user-facing text
beyond the message.
"""


class TeamClockError(Exception):
    """Base class for domain errors."""

    code = "TEAMCLOCK_ERROR"

    def __init__(self, message: str, **context):
        self.message = message
        self.context = context
        super().__init__(message)


class NotFoundError(TeamClockError):
    """A referenced user, company, project or session does not exist."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier} not found", entity=entity)


class ValidationFailedError(TeamClockError):
    """Input got past the boundary but the core rejects it."""

    code = "VALIDATION_FAILED"

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message, field=field)


class ResourceExhaustedError(TeamClockError):
    """A bounded search (e.g. invite code generation) ran out of attempts."""

    code = "RESOURCE_EXHAUSTED"


class ConflictError(TeamClockError):
    """A write found the record in a different state than it required."""

    code = "CONFLICT"
