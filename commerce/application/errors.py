"""Error taxonomy for the commerce core.

Each error carries the HTTP status the API layer answers with, so services
stay free of transport details while routes stay free of try/except.
"""


class CommerceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(CommerceError):
    status_code = 404


class InvalidRequest(CommerceError):
    status_code = 400


class OptionValidationError(InvalidRequest):
    """Variant options violate the count or uniqueness constraints."""


class InvalidState(CommerceError):
    status_code = 400


class Unauthorized(CommerceError):
    status_code = 401


class Forbidden(CommerceError):
    status_code = 403


class StorageFailure(CommerceError):
    status_code = 500
