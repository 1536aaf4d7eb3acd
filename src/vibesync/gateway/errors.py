"""Errors raised by remote gateways."""


class GatewayError(Exception):
    """Base exception for remote document store failures."""

    pass


class RemoteUnavailable(GatewayError):
    """Network, transport or server-side failure; the call may have had no effect."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFound(GatewayError):
    """The addressed document does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"{collection}/{document_id} not found")
        self.collection = collection
        self.document_id = document_id
