from relay.sanitizer import sanitize
from relay.service import RelayService
from relay.upstream import UpstreamClient

__all__ = ["RelayService", "UpstreamClient", "sanitize"]
