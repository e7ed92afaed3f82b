"""
Application error taxonomy.

Services raise these; ``app.register_error_handlers`` turns each one into a
JSON body ``{"error": kind, "message": text}`` with the matching status code.
"""


class FamilyConnectError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = 'error'
    status_code = 500
    default_message = 'Something went wrong.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.kind, 'message': self.message}


class ValidationError(FamilyConnectError):
    """Malformed or missing input."""
    kind = 'validation_error'
    status_code = 400
    default_message = 'Invalid request.'


class Forbidden(FamilyConnectError):
    """The requester's membership does not allow the action."""
    kind = 'forbidden'
    status_code = 403
    default_message = 'Not authorized.'


class NotFoundError(FamilyConnectError):
    kind = 'not_found'
    status_code = 404
    default_message = 'Not found.'


class ConflictError(FamilyConnectError):
    """Duplicate membership request or like."""
    kind = 'conflict'
    status_code = 409
    default_message = 'Already exists.'


class ExternalFailure(FamilyConnectError):
    """The blob store or the email collaborator failed."""
    kind = 'external_failure'
    status_code = 500
    default_message = 'An external service failed.'


class AuthenticationError(FamilyConnectError):
    """No logged-in user, or bad credentials."""
    kind = 'unauthorized'
    status_code = 401
    default_message = 'Authentication required.'
