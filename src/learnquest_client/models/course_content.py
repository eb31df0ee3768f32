"""Course authoring DTOs: levels, sections, contents and quizzes."""

from datetime import datetime
from enum import StrEnum

from pydantic import Field

from learnquest_client.models.base import ApiModel


class ContentType(StrEnum):
    VIDEO = "Video"
    TEXT = "Text"
    ATTACHMENT = "Attachment"
    QUIZ = "Quiz"
    ASSIGNMENT = "Assignment"


class QuestionType(StrEnum):
    MULTIPLE_CHOICE = "MultipleChoice"
    TRUE_FALSE = "TrueFalse"
    SHORT_ANSWER = "ShortAnswer"
    ESSAY = "Essay"


class Content(ApiModel):
    content_id: int
    content_name: str = ""
    content_description: str | None = None
    content_type: str = ContentType.TEXT
    content_order: int = 0
    is_visible: bool = True
    is_free: bool = False
    section_id: int | None = None
    section_name: str | None = None
    estimated_duration_minutes: int = 0
    created_at: datetime | None = None
    video_url: str | None = None
    video_thumbnail: str | None = None
    video_duration_seconds: int | None = None
    text_content: str | None = None
    attachment_url: str | None = None
    attachment_name: str | None = None
    attachment_size: int | None = None


class Section(ApiModel):
    section_id: int
    section_name: str = ""
    section_description: str | None = None
    section_order: int = 0
    is_visible: bool = True
    level_id: int | None = None
    level_name: str | None = None
    contents_count: int = 0
    quizzes_count: int = 0
    estimated_duration_minutes: int = 0
    created_at: datetime | None = None
    contents: list[Content] | None = None


class Level(ApiModel):
    level_id: int
    level_name: str = ""
    level_description: str | None = None
    level_order: int = 0
    is_visible: bool = True
    course_id: int | None = None
    course_name: str | None = None
    sections_count: int = 0
    contents_count: int = 0
    quizzes_count: int = 0
    estimated_duration_minutes: int = 0
    created_at: datetime | None = None
    sections: list[Section] | None = None


class CourseStructure(ApiModel):
    course_id: int
    course_name: str = ""
    levels: list[Level] = Field(default_factory=list)
    total_levels: int = 0
    total_sections: int = 0
    total_contents: int = 0
    total_quizzes: int = 0
    estimated_duration_minutes: int = 0


class CreateLevelRequest(ApiModel):
    level_name: str
    level_order: int
    course_id: int
    is_visible: bool = True
    level_description: str | None = None


class UpdateLevelRequest(ApiModel):
    level_name: str | None = None
    level_description: str | None = None
    level_order: int | None = None
    is_visible: bool | None = None


class CreateSectionRequest(ApiModel):
    section_name: str
    section_order: int
    level_id: int
    is_visible: bool = True
    section_description: str | None = None


class UpdateSectionRequest(ApiModel):
    section_name: str | None = None
    section_description: str | None = None
    section_order: int | None = None
    is_visible: bool | None = None


class CreateContentRequest(ApiModel):
    """Fields of a new content item; sent as multipart form fields."""

    content_name: str
    content_type: ContentType
    content_order: int
    section_id: int
    is_visible: bool = True
    is_free: bool = False
    estimated_duration_minutes: int = 0
    content_description: str | None = None
    video_url: str | None = None
    text_content: str | None = None


class UpdateContentRequest(ApiModel):
    content_name: str | None = None
    content_description: str | None = None
    content_type: ContentType | None = None
    content_order: int | None = None
    is_visible: bool | None = None
    is_free: bool | None = None
    estimated_duration_minutes: int | None = None
    video_url: str | None = None
    text_content: str | None = None


class LevelOrder(ApiModel):
    level_id: int
    order: int


class SectionOrder(ApiModel):
    section_id: int
    order: int


class ContentOrder(ApiModel):
    content_id: int
    order: int


class QuizOption(ApiModel):
    option_id: int
    option_text: str = ""
    is_correct: bool = False


class QuizQuestion(ApiModel):
    question_id: int
    question_text: str = ""
    question_type: str = QuestionType.MULTIPLE_CHOICE
    question_order: int = 0
    points: float = 0
    options: list[QuizOption] | None = None
    correct_answer: str | None = None


class Quiz(ApiModel):
    quiz_id: int
    quiz_name: str = ""
    quiz_description: str | None = None
    section_id: int | None = None
    section_name: str | None = None
    questions_count: int = 0
    time_limit: int | None = None
    passing_score: float = 0
    max_attempts: int = 0
    is_visible: bool = True
    created_at: datetime | None = None
    questions: list[QuizQuestion] | None = None


class UploadedVideo(ApiModel):
    video_url: str


class UploadedAttachment(ApiModel):
    url: str
    name: str = ""
    size: int = 0
