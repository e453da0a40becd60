"""webtoons.com adapter: HTML pages plus the community JSON API."""

from toonkit.providers.webtoons.adapter import WebtoonsAdapter

__all__ = ["WebtoonsAdapter"]
