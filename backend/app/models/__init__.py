from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.assignment import Assignment  # noqa: F401
from app.models.course import Course, DurationUnit  # noqa: F401
from app.models.enrollment import Enrollment, EnrollmentStatus  # noqa: F401
from app.models.schedule_slot import ScheduleSlot  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401
