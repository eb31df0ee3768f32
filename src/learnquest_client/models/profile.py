"""Profile, payment and dashboard DTOs."""

from datetime import datetime

from pydantic import Field

from learnquest_client.models.base import ApiModel


class UserProgress(ApiModel):
    course_id: int
    course_name: str | None = None
    current_level_id: int | None = None
    current_section_id: int | None = None
    last_updated: datetime | None = None


class UserProfile(ApiModel):
    id: int
    full_name: str = ""
    email_address: str = ""
    role: str | None = None
    profile_photo: str | None = None
    created_at: datetime | None = None
    birth_date: str | None = None
    edu: str | None = None
    national: str | None = None
    progress: list[UserProgress] = Field(default_factory=list)


class UserProfileUpdate(ApiModel):
    birth_date: str
    edu: str
    national: str


class ChangeUserNameRequest(ApiModel):
    new_full_name: str
    change_reason: str | None = None


class ChangeUserNameResult(ApiModel):
    success: bool = True
    new_full_name: str = ""
    requires_token_refresh: bool = False
    changed_at: datetime | None = None


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(repr=False)
    new_password: str = Field(repr=False)
    confirm_password: str = Field(repr=False)
    change_reason: str | None = None


class PaymentRequest(ApiModel):
    course_id: int
    amount: float
    transaction_id: str
    payment_method: str


class MyCourse(ApiModel):
    course_id: int
    course_name: str = ""
    description: str | None = None
    course_image: str | None = None
    course_price: float = 0.0
    instructor_name: str | None = None
    enrollment_date: datetime | None = None
    progress: float = 0.0
    is_completed: bool = False
    last_accessed: datetime | None = None


class FavoriteCourse(ApiModel):
    course_id: int
    course_name: str = ""
    description: str | None = None
    course_image: str | None = None
    course_price: float = 0.0
    instructor_name: str | None = None
    average_rating: float | None = None
    review_count: int = 0
    enrollment_count: int = 0
    is_active: bool = True
    created_at: datetime | None = None


class MyCourses(ApiModel):
    count: int = 0
    courses: list[MyCourse] = Field(default_factory=list)


class FavoriteCourses(ApiModel):
    count: int = 0
    favorites: list[FavoriteCourse] = Field(default_factory=list)


class CourseProgressSummary(ApiModel):
    course_id: int
    progress_percentage: float = 0.0


class StudentStats(ApiModel):
    shared_courses: int = 0
    completed_sections: int = 0
    progress: list[CourseProgressSummary] = Field(default_factory=list)


class UserActivity(ApiModel):
    activity_type: str = ""
    description: str = ""
    timestamp: datetime | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    time_ago: str | None = None
    activity_icon: str | None = None
    formatted_timestamp: str | None = None
