from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.course import Course, CourseInstructor  # noqa: F401
from app.models.room import Room, RoomType  # noqa: F401
from app.models.schedule import Schedule, ScheduleStatus  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
