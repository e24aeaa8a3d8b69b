"""Diary notes: titled entries, pinned ones first."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError
from saveit.notes.models import DiaryNote
from saveit.notes.repository import DiaryNoteRepository
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api/diary-notes", tags=["diary"])


class DiaryNoteRequest(ApiModel):
    title: str | None = None
    content: str | None = None
    color: str | None = None
    is_pinned: bool | None = None


@router.get("")
async def list_diary_notes(user: AuthenticatedUser = Depends(get_current_user)):
    return ok([n.to_api() for n in DiaryNoteRepository.list_for_user(user.id)])


@router.post("")
async def create_diary_note(
    body: DiaryNoteRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    note = DiaryNoteRepository.create(DiaryNote(user_id=user.id, **body.model_dump(exclude_none=True)))
    return ok(note.to_api(), status_code=201)


@router.put("/{note_id}")
async def update_diary_note(
    note_id: str, body: DiaryNoteRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    note = DiaryNoteRepository.update(note_id, user.id, **body.model_dump(exclude_none=True))
    if not note:
        raise NotFoundError("Diary note not found")
    return ok(note.to_api())


@router.delete("/{note_id}")
async def delete_diary_note(note_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not DiaryNoteRepository.delete(note_id, user.id):
        raise NotFoundError("Diary note not found")
    return ok(message="Diary note deleted")
