"""Course authoring façade: levels, sections, contents and quizzes.

Create operations answer with the new entity id; reorder operations send a
list of ``{<entity>Id, order}`` pairs.
"""

from collections.abc import Sequence

from learnquest_client.api.multipart import FileUpload
from learnquest_client.facades.base import Facade, convert
from learnquest_client.models.course_content import (
    Content,
    ContentOrder,
    CourseStructure,
    CreateContentRequest,
    CreateLevelRequest,
    CreateSectionRequest,
    Level,
    LevelOrder,
    Quiz,
    Section,
    SectionOrder,
    UpdateContentRequest,
    UpdateLevelRequest,
    UpdateSectionRequest,
    UploadedAttachment,
    UploadedVideo,
)
from learnquest_client.types.models import ApiResponse


class CourseContentFacade(Facade):
    """Operations under ``/Levels``, ``/Sections``, ``/Contents`` and ``/Quizzes``."""

    async def get_course_structure(self, course_id: int) -> ApiResponse[CourseStructure]:
        return convert(await self._client.get(f"/Courses/{course_id}/structure"), CourseStructure)

    # Levels

    async def get_course_levels(self, course_id: int) -> ApiResponse[list[Level]]:
        return convert(await self._client.get(f"/Courses/{course_id}/levels"), list[Level])

    async def get_level(self, level_id: int) -> ApiResponse[Level]:
        return convert(await self._client.get(f"/Levels/{level_id}"), Level)

    async def create_level(self, request: CreateLevelRequest) -> ApiResponse[int]:
        return convert(await self._client.post("/Levels", request.to_payload()), int)

    async def update_level(self, level_id: int, request: UpdateLevelRequest) -> ApiResponse[object]:
        return await self._client.put(f"/Levels/{level_id}", request.to_payload())

    async def delete_level(self, level_id: int) -> ApiResponse[object]:
        return await self._client.delete(f"/Levels/{level_id}")

    async def reorder_levels(self, course_id: int, orders: Sequence[LevelOrder]) -> ApiResponse[object]:
        payload = [order.to_payload() for order in orders]
        return await self._client.patch(f"/Courses/{course_id}/levels/reorder", payload)

    # Sections

    async def get_level_sections(self, level_id: int) -> ApiResponse[list[Section]]:
        return convert(await self._client.get(f"/Levels/{level_id}/sections"), list[Section])

    async def get_section(self, section_id: int) -> ApiResponse[Section]:
        return convert(await self._client.get(f"/Sections/{section_id}"), Section)

    async def create_section(self, request: CreateSectionRequest) -> ApiResponse[int]:
        return convert(await self._client.post("/Sections", request.to_payload()), int)

    async def update_section(self, section_id: int, request: UpdateSectionRequest) -> ApiResponse[object]:
        return await self._client.put(f"/Sections/{section_id}", request.to_payload())

    async def delete_section(self, section_id: int) -> ApiResponse[object]:
        return await self._client.delete(f"/Sections/{section_id}")

    async def reorder_sections(self, level_id: int, orders: Sequence[SectionOrder]) -> ApiResponse[object]:
        payload = [order.to_payload() for order in orders]
        return await self._client.patch(f"/Levels/{level_id}/sections/reorder", payload)

    # Contents

    async def get_section_contents(self, section_id: int) -> ApiResponse[list[Content]]:
        return convert(await self._client.get(f"/Sections/{section_id}/contents"), list[Content])

    async def get_content(self, content_id: int) -> ApiResponse[Content]:
        return convert(await self._client.get(f"/Contents/{content_id}"), Content)

    async def create_content(
        self,
        request: CreateContentRequest,
        attachment: FileUpload | None = None,
    ) -> ApiResponse[int]:
        """Create a content item as a multipart form, with an optional attachment."""
        files = {"attachmentFile": attachment} if attachment is not None else None
        response = await self._client.upload("/Contents", request.to_payload(), files)
        return convert(response, int)

    async def update_content(self, content_id: int, request: UpdateContentRequest) -> ApiResponse[object]:
        return await self._client.put(f"/Contents/{content_id}", request.to_payload())

    async def delete_content(self, content_id: int) -> ApiResponse[object]:
        return await self._client.delete(f"/Contents/{content_id}")

    async def reorder_contents(self, section_id: int, orders: Sequence[ContentOrder]) -> ApiResponse[object]:
        payload = [order.to_payload() for order in orders]
        return await self._client.patch(f"/Sections/{section_id}/contents/reorder", payload)

    async def upload_video(self, video: FileUpload) -> ApiResponse[UploadedVideo]:
        return convert(await self._client.upload("/Contents/upload-video", files={"video": video}), UploadedVideo)

    async def upload_attachment(self, attachment: FileUpload) -> ApiResponse[UploadedAttachment]:
        return convert(
            await self._client.upload("/Contents/upload-attachment", files={"attachment": attachment}),
            UploadedAttachment,
        )

    # Quizzes

    async def get_section_quizzes(self, section_id: int) -> ApiResponse[list[Quiz]]:
        return convert(await self._client.get(f"/Sections/{section_id}/quizzes"), list[Quiz])

    async def get_quiz(self, quiz_id: int) -> ApiResponse[Quiz]:
        return convert(await self._client.get(f"/Quizzes/{quiz_id}"), Quiz)
