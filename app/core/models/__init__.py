from app.core.models.academic_session import AcademicSession
from app.core.models.attendance_record import AttendanceRecord
from app.core.models.notification import Notification
from app.core.models.student import Student
from app.core.models.supervisor import Supervisor
from app.core.models.supervisor_assignment import SupervisorAssignment
from app.core.models.week import Week

__all__ = [
    "AcademicSession",
    "AttendanceRecord",
    "Notification",
    "Student",
    "Supervisor",
    "SupervisorAssignment",
    "Week",
]
