"""comic.naver.com adapter: JSON endpoints plus the cbox comment API."""

from toonkit.providers.naver.adapter import NaverAdapter

__all__ = ["NaverAdapter"]
