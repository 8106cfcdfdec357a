"""Catalog list entry service.

Search, link, move and delete catalog categories and products as one
listing.
"""

__version__ = "0.1.0"
