from ecole_manager.core.models.academic_year import AcademicYear
from ecole_manager.core.models.people import Guardian, Student, StudentGuardian, Teacher
from ecole_manager.core.models.class_model import Enrollment, SchoolClass, TeacherAssignment
from ecole_manager.core.models.grading import Grade, GradeItem, Subject, SubjectEnrollment
from ecole_manager.core.models.timetable import TimetableBlock
from ecole_manager.core.models.attendance import AttendanceRecord, AttendanceSession, TeacherAttendance
from ecole_manager.core.models.billing import (
    ExtraFee,
    FeesPerClass,
    Payment,
    Service,
    StudentFeeActivation,
    StudentServiceActivation,
)

__all__ = [
    "AcademicYear",
    "AttendanceRecord",
    "AttendanceSession",
    "Enrollment",
    "ExtraFee",
    "FeesPerClass",
    "Grade",
    "GradeItem",
    "Guardian",
    "Payment",
    "SchoolClass",
    "Service",
    "Student",
    "StudentFeeActivation",
    "StudentGuardian",
    "StudentServiceActivation",
    "Subject",
    "SubjectEnrollment",
    "Teacher",
    "TeacherAssignment",
    "TeacherAttendance",
    "TimetableBlock",
]
