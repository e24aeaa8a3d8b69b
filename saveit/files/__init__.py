"""
SaveIt.AI file library - uploaded files grouped into industries.
"""

from saveit.files.models import FileCategory, FileItem, Industry
from saveit.files.repository import FileItemRepository, IndustryRepository

__all__ = ["FileCategory", "FileItem", "FileItemRepository", "Industry", "IndustryRepository"]
