"""
                        Services Module

Business logic behind the HTTP layer.

Services:
    - items: batch create/update and remaining-items queries for order
      line-items
"""

from order_tracker.services.items import BaseItemStore, SqlItemStore, build_item_store

__all__ = ["BaseItemStore", "SqlItemStore", "build_item_store"]
