from enum import Enum


class EnrollmentStatus(str, Enum):
    CONSULTING = "咨询中"
    RESERVED = "预约报名"
    ENROLLED_UNPAID = "报名未缴费"
    ENROLLED_PARTIAL = "报名部分缴费"
    ENROLLED_PAID = "报名已缴费"
    REFUNDED = "已退费"
    DISQUALIFIED = "废考"


# Statuses a general student update may set; the rest are owned by the
# payment and exam engines.
DIRECTLY_SETTABLE_ENROLLMENT = frozenset(
    {
        EnrollmentStatus.CONSULTING,
        EnrollmentStatus.RESERVED,
        EnrollmentStatus.ENROLLED_UNPAID,
    }
)

# Contract amount is re-snapshotted from the class type only before enrollment.
PRE_ENROLLMENT = frozenset({EnrollmentStatus.CONSULTING, EnrollmentStatus.RESERVED})


class PaymentStatus(str, Enum):
    UNPAID = "未缴费"
    PARTIAL = "部分缴费"
    PAID = "已缴费"
    REFUNDED = "已退费"

    @property
    def enrollment_status(self) -> EnrollmentStatus:
        return _PAYMENT_TO_ENROLLMENT[self]


_PAYMENT_TO_ENROLLMENT = {
    PaymentStatus.UNPAID: EnrollmentStatus.ENROLLED_UNPAID,
    PaymentStatus.PARTIAL: EnrollmentStatus.ENROLLED_PARTIAL,
    PaymentStatus.PAID: EnrollmentStatus.ENROLLED_PAID,
    PaymentStatus.REFUNDED: EnrollmentStatus.REFUNDED,
}


class PaymentRecordType(str, Enum):
    PAYMENT = "payment"
    REFUND = "refund"
    DISCOUNT = "discount"


class ExamSubject(str, Enum):
    SUBJECT1 = "科目一"
    SUBJECT2 = "科目二"
    SUBJECT3 = "科目三"
    SUBJECT4 = "科目四"

    @property
    def prefix(self) -> str:
        """Column prefix on student_exam_progress, e.g. subject2."""
        return "subject" + str(list(ExamSubject).index(self) + 1)


class SubjectStatus(str, Enum):
    NOT_TAKEN = "未考"
    PASSED = "已通过"
    FAILED = "未通过"


class ExamResult(str, Enum):
    PENDING = "pending"
    PASS = "通过"
    FAIL = "未通过"


class ExamQualification(str, Enum):
    NORMAL = "正常"
    REVOKED = "已作废"


class WarningType(str, Enum):
    THIRD_FAILURE = "3次预警"
    FOURTH_FAILURE = "4次预警"
    REVOKED = "资格作废"


class ClassTypeStatus(str, Enum):
    ENABLED = "启用"
    DISABLED = "停用"


class CoachStatus(str, Enum):
    ACTIVE = "在职"
    LEFT = "离职"


class SalaryConfigType(str, Enum):
    BASE_DAILY_SALARY = "base_daily_salary"
    SUBJECT2_COMMISSION = "subject2_commission"
    SUBJECT3_COMMISSION = "subject3_commission"
    RECRUITMENT_COMMISSION = "recruitment_commission"


class SalaryStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    PAID = "paid"


class UserStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"
