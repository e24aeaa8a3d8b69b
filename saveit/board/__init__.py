"""
SaveIt.AI whiteboard - persisted shapes plus per-user undo/redo history.
"""

from saveit.board.history import BoardHistory
from saveit.board.repository import BoardStateRepository

__all__ = ["BoardHistory", "BoardStateRepository"]
