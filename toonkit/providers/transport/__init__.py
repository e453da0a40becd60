"""Transport implementations: the raw httpx transport and the retry decorator."""

from toonkit.providers.transport.httpx_transport import HttpxTransport
from toonkit.providers.transport.retry import RetryingTransport

__all__ = ["HttpxTransport", "RetryingTransport"]
