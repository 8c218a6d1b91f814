"""OAuth error taxonomy.

Every error is terminal for the request. The HTTP layer turns them into
{"error": message} bodies with the class's status code.
"""


class OAuthError(Exception):
    """Base class for errors returned to OAuth clients."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class NotFoundProvider(OAuthError):
    status_code = 404


class InvalidRequest(OAuthError):
    """Bad grant type, unparseable body, or unknown token on revoke."""

    status_code = 400


class InvalidGrant(OAuthError):
    """Unknown, mismatched or expired authorization code."""

    status_code = 400


class Unauthorized(OAuthError):
    """Missing, malformed, unknown, mismatched or expired bearer token."""

    status_code = 401
