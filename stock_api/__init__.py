"""
stock_api -- HTTP surface of the stock service.

Translates requests into ``stock_modules`` calls and kernel errors into
JSON error responses.  Authentication is out of scope; the acting user
comes from the ``X-Actor-Id`` header.
"""

from stock_api.app import create_app

__all__ = ["create_app"]
