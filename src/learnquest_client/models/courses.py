"""Course catalogue and enrollment DTOs."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from learnquest_client.models.base import ApiModel, camel_params


class CourseSortField(StrEnum):
    NAME = "name"
    PRICE = "price"
    RATING = "rating"
    CREATED = "created"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class AboutCourse(ApiModel):
    about_course_id: int | None = None
    text: str = ""
    type: str = ""


class CourseSkill(ApiModel):
    course_skill_id: int | None = None
    skill_name: str = ""


class CourseProgress(ApiModel):
    course_id: int
    user_id: int | None = None
    current_level_id: int | None = None
    current_section_id: int | None = None
    completed_levels: int = 0
    total_levels: int = 0
    completed_sections: int = 0
    total_sections: int = 0
    progress_percentage: float = 0.0
    last_accessed_at: datetime | None = None


class Course(ApiModel):
    course_id: int
    course_name: str = ""
    description: str | None = None
    course_price: float = 0.0
    is_active: bool = True
    instructor_id: int | None = None
    instructor_name: str | None = None
    course_image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    enrollment_count: int = 0
    average_rating: float | None = None
    total_ratings: int = 0
    is_enrolled: bool | None = None
    enrollment_date: datetime | None = None
    progress: CourseProgress | None = None
    about_course: list[AboutCourse] = Field(default_factory=list)
    course_skills: list[CourseSkill] = Field(default_factory=list)


class CoursePage(ApiModel):
    courses: list[Course] = Field(default_factory=list)
    total_count: int = 0
    current_page: int = 1
    page_size: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_previous: bool = False


class CourseFilter(ApiModel):
    page_number: int = Field(default=1, ge=1)
    page_size: int = Field(default=12, ge=1)
    search_term: str | None = None
    instructor_id: int | None = None
    is_active: bool | None = None
    min_price: float | None = None
    max_price: float | None = None
    sort_by: CourseSortField | None = None
    sort_direction: SortDirection | None = None

    def to_params(self) -> dict[str, str | int | float | bool | None]:
        return camel_params(
            {
                "page_number": self.page_number,
                "page_size": self.page_size,
                "search_term": self.search_term or None,
                "instructor_id": self.instructor_id,
                "is_active": self.is_active,
                "min_price": self.min_price,
                "max_price": self.max_price,
                "sort_by": self.sort_by.value if self.sort_by else None,
                "sort_direction": self.sort_direction.value if self.sort_direction else None,
            }
        )


class AboutCourseInput(ApiModel):
    text: str
    type: str


class CourseSkillInput(ApiModel):
    skill_name: str


class CreateCourseRequest(ApiModel):
    course_name: str
    description: str
    course_price: float = 0.0
    is_active: bool = True
    about_course_inputs: list[AboutCourseInput] = Field(default_factory=list)
    course_skill_inputs: list[CourseSkillInput] = Field(default_factory=list)


class UpdateCourseRequest(ApiModel):
    course_id: int
    course_name: str | None = None
    description: str | None = None
    course_price: float | None = None
    is_active: bool | None = None
    about_course_inputs: list[AboutCourseInput] | None = None
    course_skill_inputs: list[CourseSkillInput] | None = None


class Enrollment(ApiModel):
    course_id: int
    enrollment_date: datetime | None = None
    is_active: bool = True


class CourseContentItem(ApiModel):
    content_id: int
    title: str = ""
    description: str | None = None
    content_type: str = ""
    content_url: str | None = None
    duration: int | None = None
    is_completed: bool = False
    order: int = 0


class CourseSection(ApiModel):
    section_id: int
    section_name: str = ""
    section_order: int = 0
    is_completed: bool = False
    contents: list[CourseContentItem] = Field(default_factory=list)


class CourseLevel(ApiModel):
    level_id: int
    level_name: str = ""
    level_order: int = 0
    is_unlocked: bool = False
    sections: list[CourseSection] = Field(default_factory=list)


class CourseImage(ApiModel):
    course_image: str
