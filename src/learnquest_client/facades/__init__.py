"""Domain façades over :class:`~learnquest_client.api.client.ApiClient`."""

from learnquest_client.facades.auth import AuthFacade
from learnquest_client.facades.course_content import CourseContentFacade
from learnquest_client.facades.courses import CourseFacade
from learnquest_client.facades.notifications import NotificationFacade
from learnquest_client.facades.profile import ProfileFacade

__all__ = [
    "AuthFacade",
    "CourseContentFacade",
    "CourseFacade",
    "NotificationFacade",
    "ProfileFacade",
]
