"""A small asyncio HTTP/1.1 web framework with trie routing, route groups and middleware."""

__version__ = "0.1.0"
__all__ = ["__version__"]