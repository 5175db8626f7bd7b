"""Storefront catalog layer.

Catalog browsing and cart staging for a mobile bookstore.

This package provides:
- A catalog store that reads the remote Books collection and keeps a
  local copy for offline use
- Client-side search and sort over the cached catalog
- Add-to-cart as appends to the remote Cart collection
- A connectivity probe that warns the user when offline
"""

__version__ = "1.0.0"
