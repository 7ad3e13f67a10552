from enum import Enum

# Stored values keep the vocabulary of the legacy data set.


class Gender(str, Enum):
    MALE = "homme"
    FEMALE = "femme"


class TeacherPaymentType(str, Enum):
    FIXED = "fixe"
    HOURLY = "horaire"


class ContactType(str, Enum):
    PHONE = "telephone"
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    SMS = "sms"


class EnrollmentStatus(str, Enum):
    ACTIVE = "active"
    TRANSFERRED = "transferred"
    GRADUATED = "graduated"
    LEFT = "left"


class Term(str, Enum):
    FIRST = "premier"
    SECOND = "deuxieme"


class LanguageType(str, Enum):
    LV1 = "LV1"
    LV2 = "LV2"


class Weekday(str, Enum):
    """School days, declared in calendar order (Monday .. Saturday)."""

    MONDAY = "Lundi"
    TUESDAY = "Mardi"
    WEDNESDAY = "Mercredi"
    THURSDAY = "Jeudi"
    FRIDAY = "Vendredi"
    SATURDAY = "Samedi"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "retard"
    DISMISSED = "renvoi"


class TeacherAttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "retard"
    NONE = "aucun"


class Periodicity(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PaymentType(str, Enum):
    REGISTRATION = "inscription"
    MONTHLY_FEE = "mensualite"
    EXTRA_FEE = "frais"
    SERVICE = "service"


def check_in(column: str, enum_cls: type) -> str:
    """SQL CHECK expression restricting ``column`` to the values of ``enum_cls``."""
    values = ", ".join(f"'{member.value}'" for member in enum_cls)
    return f"{column} IN ({values})"
