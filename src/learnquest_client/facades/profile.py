"""Profile façade: account details, payments, favorites and dashboard."""

from learnquest_client.api.multipart import FileUpload
from learnquest_client.facades.base import Facade, convert
from learnquest_client.models.profile import (
    ChangePasswordRequest,
    ChangeUserNameRequest,
    ChangeUserNameResult,
    FavoriteCourses,
    MyCourses,
    PaymentRequest,
    StudentStats,
    UserActivity,
    UserProfile,
    UserProfileUpdate,
)
from learnquest_client.types.models import ApiResponse


class ProfileFacade(Facade):
    """Operations under ``/profile``."""

    async def get_profile(self) -> ApiResponse[UserProfile]:
        return convert(await self._client.get("/profile"), UserProfile)

    async def update_profile(self, update: UserProfileUpdate) -> ApiResponse[object]:
        return await self._client.post("/profile/update", update.to_payload())

    async def change_user_name(self, request: ChangeUserNameRequest) -> ApiResponse[ChangeUserNameResult]:
        return convert(
            await self._client.post("/profile/change-name", request.to_payload()),
            ChangeUserNameResult,
        )

    async def change_password(self, request: ChangePasswordRequest) -> ApiResponse[object]:
        return await self._client.post("/profile/change-password", request.to_payload())

    async def upload_profile_photo(self, photo: FileUpload) -> ApiResponse[object]:
        return await self._client.upload("/profile/upload-photo", files={"file": photo})

    async def delete_profile_photo(self) -> ApiResponse[object]:
        return await self._client.delete("/profile/delete-photo")

    async def pay_for_course(self, payment: PaymentRequest) -> ApiResponse[object]:
        return await self._client.post("/profile/pay-course", payment.to_payload())

    async def confirm_payment(self, payment_id: int) -> ApiResponse[object]:
        return await self._client.post(f"/profile/confirm-payment/{payment_id}")

    async def get_my_courses(self) -> ApiResponse[MyCourses]:
        return convert(await self._client.get("/profile/my-courses"), MyCourses)

    async def get_favorite_courses(self) -> ApiResponse[FavoriteCourses]:
        return convert(await self._client.get("/profile/favorite-courses"), FavoriteCourses)

    async def add_to_favorites(self, course_id: int) -> ApiResponse[object]:
        return await self._client.post(f"/profile/favorites/{course_id}")

    async def remove_from_favorites(self, course_id: int) -> ApiResponse[object]:
        return await self._client.delete(f"/profile/favorites/{course_id}")

    async def get_user_stats(self) -> ApiResponse[StudentStats]:
        return convert(await self._client.get("/profile/stats"), StudentStats)

    async def get_dashboard(self) -> ApiResponse[object]:
        # Dashboard shape varies by role; returned as raw JSON
        return await self._client.get("/profile/dashboard")

    async def get_recent_activities(self, limit: int = 10) -> ApiResponse[list[UserActivity]]:
        return convert(
            await self._client.get("/profile/activities", params={"limit": limit}),
            list[UserActivity],
        )
