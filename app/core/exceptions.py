"""Base class for policy violations raised by domain services."""


class DomainError(Exception):
    """
    A local validation failure returned synchronously to the caller.

    Subclasses set ``error_code`` and ``status_code`` so the API exception
    handler can render them without knowing every concrete type.
    """

    error_code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str = "", **details):
        super().__init__(message or self.__class__.__name__)
        self.details = details
