"""Cache providers.

EntityCache is the per-Client single-flight memo for expensive entity
pages (webtoon metadata, creator profiles, episode viewer pages).  It is
in-memory and never expires; listings are streamed, not cached.
"""

from toonkit.providers.cache.entity_cache import EntityCache

__all__ = ["EntityCache"]
