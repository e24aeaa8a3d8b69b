"""
Learning tracker: courses and their sub-courses.

Course progress is derived from sub-course completion and is not writable
through the API. Status can be set by hand but is recomputed on every
sub-course change once any sub-course is completed.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from saveit.api.middleware.auth import AuthenticatedUser, get_current_user
from saveit.api.responses import ok
from saveit.errors import NotFoundError
from saveit.learning.importer import analyze_course_url, create_course_from_structure
from saveit.learning.models import Course, CoursePriority, CourseStatus, SubCourse
from saveit.learning.repository import CourseRepository, SubCourseRepository
from saveit.storage.models import ApiModel

router = APIRouter(prefix="/api", tags=["learning"])


class CourseRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    category: str | None = None
    platform: str | None = None
    url: str | None = None
    icon: str | None = None
    status: CourseStatus | None = None
    priority: CoursePriority | None = None
    position: int | None = None


class SubCourseRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    duration: str | None = None
    resources: list[str] | None = None
    notes: str | None = None
    status: CourseStatus | None = None
    position: int | None = None

class AnalyzeCourseUrlRequest(ApiModel):
    url: str | None = None
    user_role: str | None = None
    target_skill_level: str | None = None


class CreateFromStructureRequest(ApiModel):
    course_data: dict[str, Any] | None = None


def _course_or_404(course_id: str, user_id: str) -> Course:
    course = CourseRepository.get(course_id, user_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def _subcourse_or_404(sub_id: str, user_id: str) -> SubCourse:
    sub = SubCourseRepository.get(sub_id, user_id)
    if not sub:
        raise NotFoundError("Sub-course not found")
    return sub


@router.get("/courses")
async def list_courses(
    status: CourseStatus | None = None,
    category: str | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
):
    courses = CourseRepository.list_for_user(
        user.id, status=status.value if status else None, category=category
    )
    return ok([c.to_api() for c in courses], count=len(courses))


@router.get("/courses/next")
async def next_course(user: AuthenticatedUser = Depends(get_current_user)):
    course = CourseRepository.next_for_user(user.id)
    return ok(course.to_api() if course else None)


@router.post("/courses/analyze-url")
def analyze_url(body: AnalyzeCourseUrlRequest, user: AuthenticatedUser = Depends(get_current_user)):
    """Syllabus of a course page, for review before import. Nothing is saved."""
    structure = analyze_course_url(
        body.url, user.id, user_role=body.user_role, target_skill_level=body.target_skill_level
    )
    return ok(structure.model_dump(by_alias=True))


@router.post("/courses/create-from-structure")
def create_from_structure(
    body: CreateFromStructureRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    return ok(create_course_from_structure(body.course_data, user.id), status_code=201)


@router.get("/courses/{course_id}")
async def get_course(course_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    payload = _course_or_404(course_id, user.id).to_api()
    payload["subcourses"] = [
        s.to_api() for s in SubCourseRepository.list_for_course(course_id, user.id)
    ]
    return ok(payload)


@router.post("/courses")
async def create_course(body: CourseRequest, user: AuthenticatedUser = Depends(get_current_user)):
    course = CourseRepository.create(Course(user_id=user.id, **body.model_dump(exclude_none=True)))
    return ok(course.to_api(), status_code=201)


@router.put("/courses/{course_id}")
async def update_course(
    course_id: str, body: CourseRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = _course_or_404(course_id, user.id)
    changes = current.validated_changes(body.model_dump(exclude_none=True))
    return ok(CourseRepository.update(course_id, user.id, **changes).to_api())


@router.delete("/courses/{course_id}")
async def delete_course(course_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    if not CourseRepository.delete(course_id, user.id):
        raise NotFoundError("Course not found")
    return ok(message="Course deleted successfully")


@router.get("/courses/{course_id}/subcourses")
async def list_subcourses(course_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    _course_or_404(course_id, user.id)
    subs = SubCourseRepository.list_for_course(course_id, user.id)
    return ok([s.to_api() for s in subs], count=len(subs))


@router.post("/courses/{course_id}/subcourses")
async def create_subcourse(
    course_id: str, body: SubCourseRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    _course_or_404(course_id, user.id)
    sub = SubCourseRepository.create(
        SubCourse(course_id=course_id, user_id=user.id, **body.model_dump(exclude_none=True))
    )
    return ok(
        sub.to_api(), status_code=201, course=CourseRepository.get(course_id, user.id).to_api()
    )


@router.put("/subcourses/{sub_id}")
async def update_subcourse(
    sub_id: str, body: SubCourseRequest, user: AuthenticatedUser = Depends(get_current_user)
):
    current = _subcourse_or_404(sub_id, user.id)
    changes = current.validated_changes(body.model_dump(exclude_none=True))
    sub = SubCourseRepository.update(sub_id, user.id, **changes)
    return ok(sub.to_api(), course=CourseRepository.get(sub.course_id, user.id).to_api())


@router.post("/subcourses/{sub_id}/complete")
async def complete_subcourse(sub_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    _subcourse_or_404(sub_id, user.id)
    sub = SubCourseRepository.complete(sub_id, user.id)
    return ok(sub.to_api(), course=CourseRepository.get(sub.course_id, user.id).to_api())


@router.delete("/subcourses/{sub_id}")
async def delete_subcourse(sub_id: str, user: AuthenticatedUser = Depends(get_current_user)):
    sub = _subcourse_or_404(sub_id, user.id)
    SubCourseRepository.delete(sub_id, user.id)
    return ok(
        message="Sub-course deleted successfully",
        course=CourseRepository.get(sub.course_id, user.id).to_api(),
    )
