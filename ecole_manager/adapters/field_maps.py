"""
Explicit field-name tables between the legacy (external, camelCase or
French) record shape and the relational (internal, snake_case) shape.
"""

from typing import Any, Dict, Mapping, Tuple


class FieldMap:
    def __init__(self, *pairs: Tuple[str, str]) -> None:
        self.external_to_internal: Dict[str, str] = dict(pairs)
        self.internal_to_external: Dict[str, str] = {i: e for e, i in pairs}
        if len(self.internal_to_external) != len(self.external_to_internal):
            raise ValueError("FieldMap pairs must be one-to-one")

    def to_internal(self, external: Mapping[str, Any]) -> Dict[str, Any]:
        """Rename external keys; keys without a mapping are dropped."""
        return {
            self.external_to_internal[key]: value
            for key, value in external.items()
            if key in self.external_to_internal
        }

    def to_external(self, internal: Mapping[str, Any]) -> Dict[str, Any]:
        return {
            self.internal_to_external[key]: value
            for key, value in internal.items()
            if key in self.internal_to_external
        }


STUDENT_FIELDS = FieldMap(
    ("id", "id"),
    ("firstName", "first_name"),
    ("lastName", "last_name"),
    ("birthDate", "birth_date"),
    ("birthPlace", "birth_place"),
    ("gender", "gender"),
    ("studentNumber", "student_number"),
)

YEAR_FIELDS = FieldMap(
    ("id", "id"),
    ("nom", "name"),
    ("debut", "start_date"),
    ("fin", "end_date"),
    ("closed", "closed"),
)

ENROLLMENT_FIELDS = FieldMap(
    ("id", "id"),
    ("studentId", "student_id"),
    ("classId", "class_id"),
    ("yearId", "year_id"),
    ("status", "status"),
    ("date", "enrollment_date"),
)
