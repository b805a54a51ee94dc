"""
Portal Errors

Store and form failures raised by the services and caught by the blueprints,
which turn them into flashed messages.
"""


class PortalError(Exception):
    """Base class for errors surfaced to the user."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class FetchError(PortalError):
    """A read or write against the database failed. Safe to retry."""


class PermissionDenied(PortalError):
    """The acting account lacks the role the operation requires."""

    def __init__(self, message="You don't have permission to perform this action.", required_role=None):
        super().__init__(message)
        self.required_role = required_role


class ValidationError(PortalError):
    """One or more submitted fields are missing or invalid."""

    def __init__(self, errors):
        self.errors = dict(errors)
        super().__init__('; '.join(self.errors.values()))
