"""
Translation of legacy flat-store records into repository payloads.

Legacy records spell some fields in two ways (localized and canonical,
e.g. ``nom`` / ``name``). The canonical spelling wins when both are set.
"""

from datetime import date
from typing import Any, Dict, Mapping, Optional


class LegacyFieldError(ValueError):
    """A legacy record lacks a field the target row cannot do without."""


def pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first of ``keys`` that is set (not None, not an empty string)."""
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return default


def require(record: Mapping[str, Any], *keys: str) -> Any:
    value = pick(record, *keys)
    if value is None:
        raise LegacyFieldError(f"missing required field {' / '.join(keys)}")
    return value


def date_part(value: Any) -> Optional[str]:
    """``YYYY-MM-DD`` prefix of a date or ISO datetime string."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value.isoformat()[:10]
    return str(value)[:10]


def record_id(record: Any) -> Optional[str]:
    if isinstance(record, Mapping) and record.get("id") is not None:
        return str(record["id"])
    return None


def academic_year(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(require(record, "id")),
        "name": require(record, "name", "nom"),
        "start_date": date_part(pick(record, "start_date", "debut")),
        "end_date": date_part(pick(record, "end_date", "fin")),
        "closed": bool(record.get("closed") or False),
    }


def student(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(require(record, "id")),
        "first_name": pick(record, "firstName", "prenom", default=""),
        "last_name": pick(record, "lastName", "nom", default=""),
        "birth_date": date_part(record.get("birthDate")),
        "birth_place": pick(record, "birthPlace"),
        "gender": pick(record, "gender"),
        "student_number": pick(record, "studentNumber"),
    }


def teacher(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(require(record, "id")),
        "first_name": pick(record, "firstName", "prenom", default=""),
        "last_name": pick(record, "lastName", "nom", default=""),
        "email": pick(record, "email"),
        "phone": pick(record, "phone"),
        "subject": pick(record, "subject"),
        "hire_date": date_part(record.get("hireDate")),
        "payment_type": pick(record, "paymentType", default="fixe"),
        "salary": pick(record, "salary"),
        "hourly_rate": pick(record, "hourlyRate"),
        "residence": pick(record, "residence"),
        "contact_type": pick(record, "contactType", default="telephone"),
        "years_experience": pick(record, "yearsExperience", default=0),
        "nationality": pick(record, "nationality"),
        "emergency_contact": pick(record, "emergencyContact"),
        "emergency_phone": pick(record, "emergencyPhone"),
    }


def school_class(record: Mapping[str, Any], year_id: str) -> Dict[str, Any]:
    return {
        "id": str(require(record, "id")),
        "year_id": year_id,
        "name": require(record, "name", "nom"),
        "level": pick(record, "level", "niveau"),
        "description": pick(record, "description"),
        "capacity": pick(record, "capacity", default=30),
    }


def enrollment(record: Mapping[str, Any], year_id: str, today: date) -> Dict[str, Any]:
    student_id = str(require(record, "studentId"))
    return {
        "id": str(pick(record, "id", default=f"{student_id}-{year_id}")),
        "student_id": student_id,
        "class_id": str(require(record, "classId")),
        "year_id": year_id,
        "status": pick(record, "status", default="active"),
        "enrollment_date": date_part(pick(record, "date")) or today.isoformat(),
    }


def enrollment_from_student(record: Mapping[str, Any], year_id: str, today: date) -> Dict[str, Any]:
    """One active enrollment synthesised from the old single ``classId`` field of a student."""
    student_id = str(require(record, "id"))
    return {
        "id": f"{student_id}-{year_id}",
        "student_id": student_id,
        "class_id": str(require(record, "classId")),
        "year_id": year_id,
        "status": "active",
        "enrollment_date": today.isoformat(),
    }


def fees_per_class(class_id: str, record: Mapping[str, Any], year_id: str) -> Dict[str, Any]:
    return {
        "year_id": year_id,
        "class_id": str(class_id),
        "inscription": pick(record, "inscription", default=0),
        "mensualite": pick(record, "mensualite", default=0),
    }


def priced_item(record: Mapping[str, Any], year_id: str, item_id: str) -> Dict[str, Any]:
    """Extra fee or service: ``{id, name|nom, amount|montant}``."""
    return {
        "id": item_id,
        "year_id": year_id,
        "name": require(record, "name", "nom"),
        "amount": require(record, "amount", "montant"),
    }


def payment(record: Mapping[str, Any], year_id: str, payment_id: str, today: date) -> Dict[str, Any]:
    return {
        "id": payment_id,
        "year_id": year_id,
        "student_id": str(require(record, "studentId")),
        "type": require(record, "type"),
        "class_id": pick(record, "classId", "classeId"),
        "month": pick(record, "month", "mois"),
        "item_id": pick(record, "itemId"),
        "method": pick(record, "method"),
        "amount": require(record, "amount", "montant"),
        "payment_date": date_part(pick(record, "date")) or today.isoformat(),
    }
