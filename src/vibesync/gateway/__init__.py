"""Remote document store access."""

from .errors import GatewayError, NotFound, RemoteUnavailable
from .firestore import FirestoreGateway
from .memory import InMemoryGateway
from .protocol import RemoteGateway

__all__ = [
    "FirestoreGateway",
    "GatewayError",
    "InMemoryGateway",
    "NotFound",
    "RemoteGateway",
    "RemoteUnavailable",
]
