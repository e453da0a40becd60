"""Abstract interfaces for the transport and platform adapter layers.

- :class:`ITransport` / :class:`HttpRequest` -- outbound HTTP contract.
- :class:`IPlatformAdapter` -- per-platform wire-to-domain translation.
"""

from toonkit.interfaces.platform_adapter import IPlatformAdapter
from toonkit.interfaces.transport import HttpRequest, ITransport

__all__ = ["HttpRequest", "IPlatformAdapter", "ITransport"]
