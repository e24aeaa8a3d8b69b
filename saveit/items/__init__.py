"""
SaveIt.AI items - saved links, notes, code and components with AI metadata.
"""

from saveit.items.models import Category, Item, ItemType, Platform
from saveit.items.repository import ItemRepository

__all__ = ["Category", "Item", "ItemRepository", "ItemType", "Platform"]
