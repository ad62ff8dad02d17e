"""
OAuth error taxonomy. The core raises these; the HTTP layer maps them to
{"error", "error_description"} bodies. Descriptions stay generic on purpose:
unknown and expired codes read the same, as do all bearer-token failures.
"""


class OAuthError(Exception):
    error = "server_error"
    status_code = 500
    default_description = "Internal error"

    def __init__(self, description: str | None = None):
        self.description = description or self.default_description
        super().__init__(self.description)

    def to_dict(self) -> dict:
        return {"error": self.error, "error_description": self.description}


class UnknownClient(OAuthError):
    error = "invalid_client"
    status_code = 400
    default_description = "Unknown client"


class ClientMismatch(OAuthError):
    error = "invalid_grant"
    status_code = 400
    default_description = "Client mismatch"


class InvalidGrant(OAuthError):
    error = "invalid_grant"
    status_code = 400
    default_description = "Invalid or expired grant"


class ResourceMismatch(OAuthError):
    error = "invalid_target"
    status_code = 400
    default_description = "Resource mismatch"


class AccessDenied(OAuthError):
    error = "access_denied"
    status_code = 403
    default_description = "Access denied"


class Unauthorized(OAuthError):
    error = "invalid_token"
    status_code = 401
    default_description = "Invalid or expired access token"


class InvalidRequest(OAuthError):
    error = "invalid_request"
    status_code = 400
    default_description = "Invalid request"


class InvalidClientMetadata(OAuthError):
    error = "invalid_client_metadata"
    status_code = 400
    default_description = "Invalid client metadata"
