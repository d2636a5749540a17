from drivingschool.auth.models import Role, User
from drivingschool.core.models.class_type import ClassType, ClassTypePriceHistory
from drivingschool.core.models.student import Student
from drivingschool.core.models.payment_record import PaymentRecord
from drivingschool.core.models.coach import Coach
from drivingschool.core.models.exam_venue import ExamVenue
from drivingschool.core.models.exam_schedule import ExamSchedule
from drivingschool.core.models.exam_registration import ExamRegistration
from drivingschool.core.models.student_exam_progress import StudentExamProgress
from drivingschool.core.models.exam_warning_log import ExamWarningLog
from drivingschool.core.models.salary_config import SalaryConfig
from drivingschool.core.models.coach_monthly_salary import CoachMonthlySalary

__all__ = [
    "Role",
    "User",
    "ClassType",
    "ClassTypePriceHistory",
    "Student",
    "PaymentRecord",
    "Coach",
    "ExamVenue",
    "ExamSchedule",
    "ExamRegistration",
    "StudentExamProgress",
    "ExamWarningLog",
    "SalaryConfig",
    "CoachMonthlySalary",
]
