"""
SaveIt.AI learning tracker - courses broken into sub-courses.
"""

from saveit.learning.models import Course, CourseStatus, SubCourse
from saveit.learning.repository import CourseRepository, SubCourseRepository

__all__ = ["Course", "CourseRepository", "CourseStatus", "SubCourse", "SubCourseRepository"]
