"""
SaveIt.AI notes - sticky notes on the notes board and diary entries.
"""

from saveit.notes.models import DiaryNote, Note
from saveit.notes.repository import DiaryNoteRepository, NoteRepository

__all__ = ["DiaryNote", "DiaryNoteRepository", "Note", "NoteRepository"]
