"""Course catalogue façade."""

import logging

from learnquest_client.api.multipart import FileUpload
from learnquest_client.facades.base import Facade, convert
from learnquest_client.models.courses import (
    Course,
    CourseFilter,
    CourseImage,
    CourseLevel,
    CoursePage,
    CourseProgress,
    CreateCourseRequest,
    Enrollment,
    UpdateCourseRequest,
)
from learnquest_client.types.models import ApiResponse

logger = logging.getLogger(__name__)


class CourseFacade(Facade):
    """Operations under ``/Courses``."""

    async def get_courses(self, course_filter: CourseFilter | None = None) -> ApiResponse[CoursePage]:
        params = (course_filter or CourseFilter()).to_params()
        return convert(await self._client.get("/Courses/get-courses", params=params), CoursePage)

    async def search_courses(
        self,
        search_term: str,
        *,
        page_number: int = 1,
        page_size: int = 12,
    ) -> ApiResponse[CoursePage]:
        """Full-text search; a thin wrapper over :meth:`get_courses`."""
        return await self.get_courses(
            CourseFilter(search_term=search_term, page_number=page_number, page_size=page_size)
        )

    async def get_enrolled_courses(self) -> ApiResponse[list[Course]]:
        return convert(await self._client.get("/Courses/enrolled-courses"), list[Course])

    async def get_instructor_courses(self) -> ApiResponse[list[Course]]:
        return convert(await self._client.get("/Courses/instructor-courses"), list[Course])

    async def get_course(self, course_id: int) -> ApiResponse[Course]:
        return convert(await self._client.get(f"/Courses/get-course/{course_id}"), Course)

    async def create_course(self, request: CreateCourseRequest) -> ApiResponse[Course]:
        logger.info("Creating course %r", request.course_name)
        return convert(await self._client.post("/Courses/create-course", request.to_payload()), Course)

    async def update_course(self, request: UpdateCourseRequest) -> ApiResponse[Course]:
        return convert(await self._client.put("/Courses/update-course", request.to_payload()), Course)

    async def delete_course(self, course_id: int) -> ApiResponse[object]:
        return await self._client.delete(f"/Courses/delete-course/{course_id}")

    async def enroll_in_course(self, course_id: int) -> ApiResponse[Enrollment]:
        return convert(await self._client.post("/Courses/enroll", {"courseId": course_id}), Enrollment)

    async def get_course_structure(self, course_id: int) -> ApiResponse[list[CourseLevel]]:
        return convert(await self._client.get(f"/Courses/structure/{course_id}"), list[CourseLevel])

    async def get_course_progress(self, course_id: int) -> ApiResponse[CourseProgress]:
        return convert(await self._client.get(f"/Courses/progress/{course_id}"), CourseProgress)

    async def upload_course_image(self, course_id: int, image: FileUpload) -> ApiResponse[CourseImage]:
        return convert(
            await self._client.upload(f"/Courses/upload-image/{course_id}", files={"courseImage": image}),
            CourseImage,
        )

    async def get_course_stats(self, course_id: int) -> ApiResponse[object]:
        return await self._client.get(f"/Courses/stats/{course_id}")
