"""Concrete transport, cache and platform adapter implementations."""
