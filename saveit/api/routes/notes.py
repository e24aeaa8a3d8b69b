"""Sticky notes board: CRUD, position updates and stacking order."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError
from saveit.notes.models import Note, Position, Size
from saveit.notes.repository import NoteRepository
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api/notes", tags=["notes"])


class NoteRequest(ApiModel):
    text: str | None = None
    color: str | None = None
    position: Position | None = None
    size: Size | None = None
    attached_links: list[str] | None = None
    z_index: int | None = None
    is_pinned: bool | None = None


class PositionRequest(ApiModel):
    x: float
    y: float


def _get_or_404(note_id: str, user_id: str) -> Note:
    note = NoteRepository.get(note_id, user_id)
    if not note:
        raise NotFoundError("Note not found")
    return note


@router.get("")
async def list_notes(user: AuthenticatedUser = Depends(get_current_user)):
    return ok([n.to_api() for n in NoteRepository.list_for_user(user.id)])


@router.post("")
async def create_note(body: NoteRequest, user: AuthenticatedUser = Depends(get_current_user)):
    fields = body.model_dump(exclude_none=True, exclude={"z_index"})
    note = NoteRepository.create(Note(user_id=user.id, **fields))
    return ok(note.to_api(), status_code=201)


@router.delete("")
async def delete_all_notes(user: AuthenticatedUser = Depends(get_current_user)):
    deleted = NoteRepository.delete_all(user.id)
    return ok({"deleted": deleted}, message="All notes deleted")


@router.get("/{note_id}")
async def get_note(note_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    return ok(_get_or_404(note_id, user.id).to_api())


@router.put("/{note_id}")
async def update_note(
    note_id: str, body: NoteRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = _get_or_404(note_id, user.id)
    changes = current.validated_changes(body.model_dump(exclude_none=True))
    note = NoteRepository.update(note_id, user.id, **changes)
    if not note:
        raise NotFoundError("Note not found")
    return ok(note.to_api())


@router.put("/{note_id}/position")
async def move_note(
    note_id: str, body: PositionRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    note = NoteRepository.update(note_id, user.id, position=Position(x=body.x, y=body.y))
    if not note:
        raise NotFoundError("Note not found")
    return ok(note.to_api())


@router.put("/{note_id}/bring-to-front")
async def bring_note_to_front(note_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    note = NoteRepository.bring_to_front(note_id, user.id)
    if not note:
        raise NotFoundError("Note not found")
    return ok(note.to_api())


@router.delete("/{note_id}")
async def delete_note(note_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not NoteRepository.delete(note_id, user.id):
        raise NotFoundError("Note not found")
    return ok(message="Note deleted")
