from datetime import date

import pytest

from ecole_manager.core.exceptions import ConstraintViolationError, DuplicateKeyError
from ecole_manager.repositories.academic_years.repository import AcademicYearsRepository
from ecole_manager.repositories.classes.repository import ClassesRepository
from ecole_manager.repositories.guardians.repository import GuardiansRepository
from ecole_manager.repositories.payments.repository import PaymentsRepository
from ecole_manager.repositories.students.repository import StudentsRepository
from ecole_manager.repositories.teachers.repository import TeachersRepository
from tests.factories import CURRENT_YEAR_ID, make_class, make_student, make_teacher, make_year


@pytest.mark.asyncio
async def test_create_returns_row_read_back(database) -> None:
    teacher = await make_teacher(database, "1")
    # Server defaults are reflected, not just the input.
    assert teacher.payment_type == "fixe"
    assert teacher.contact_type == "telephone"
    assert teacher.years_experience == 0
    assert teacher.created_at is not None


@pytest.mark.asyncio
async def test_create_duplicate_key(database) -> None:
    await make_student(database, "1")
    with pytest.raises(DuplicateKeyError):
        await make_student(database, "1", first_name="Grace", last_name="Hopper")


@pytest.mark.asyncio
async def test_same_local_id_allowed_in_another_year(database) -> None:
    other = await make_year(database, "2026-2027")
    await make_class(database, CURRENT_YEAR_ID, "1")
    await make_class(database, other.id, "1")
    with pytest.raises(DuplicateKeyError):
        await make_class(database, other.id, "1", name="6e B")


@pytest.mark.asyncio
async def test_get_missing_is_none(database) -> None:
    assert await StudentsRepository(database).get_by_id("404") is None
    assert await ClassesRepository(database).get_by_id("1", CURRENT_YEAR_ID) is None


@pytest.mark.asyncio
async def test_update_semantics(database) -> None:
    repo = StudentsRepository(database)
    await make_student(database, "1")

    assert await repo.update("1", {}) is False
    # Identity and creation timestamp are not writable.
    assert await repo.update("1", {"id": "2", "created_at": "2000-01-01 00:00:00"}) is False
    assert await repo.update("1", {"first_name": "Augusta", "birth_place": "Londres"}) is True

    student = await repo.get_by_id("1")
    assert student.first_name == "Augusta"
    assert student.birth_place == "Londres"
    assert student.last_name == "Lovelace"
    assert await repo.get_by_id("2") is None


@pytest.mark.asyncio
async def test_update_missing_row_returns_false(database) -> None:
    assert await StudentsRepository(database).update("404", {"first_name": "X"}) is False


@pytest.mark.asyncio
async def test_delete_returns_count(database) -> None:
    repo = StudentsRepository(database)
    await make_student(database, "1")
    assert await repo.delete("1") == 1
    assert await repo.delete("1") == 0


@pytest.mark.asyncio
async def test_people_ordered_by_last_then_first_name(database) -> None:
    await make_student(database, "1", "Marie", "Curie")
    await make_student(database, "2", "Ada", "Lovelace")
    await make_student(database, "3", "Pierre", "Curie")
    students = await StudentsRepository(database).list()
    assert [(s.last_name, s.first_name) for s in students] == [
        ("Curie", "Marie"),
        ("Curie", "Pierre"),
        ("Lovelace", "Ada"),
    ]


@pytest.mark.asyncio
async def test_enrolling_twice_keeps_one_row_with_latest_data(database) -> None:
    repo = StudentsRepository(database)
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1", "6e A")
    await make_class(database, CURRENT_YEAR_ID, "2", "6e B")

    await repo.enroll({"id": "1-2025-2026", "student_id": "1", "class_id": "1", "year_id": CURRENT_YEAR_ID})
    await repo.enroll(
        {
            "id": "1-2025-2026",
            "student_id": "1",
            "class_id": "2",
            "year_id": CURRENT_YEAR_ID,
            "enrollment_date": "2025-11-03",
        }
    )

    enrollments = await repo.list_enrollments_by_year(CURRENT_YEAR_ID)
    assert len(enrollments) == 1
    assert enrollments[0].class_id == "2"
    assert enrollments[0].enrollment_date == date(2025, 11, 3)


@pytest.mark.asyncio
async def test_invalid_enum_value_is_a_constraint_violation(database) -> None:
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1")
    with pytest.raises(ConstraintViolationError):
        await StudentsRepository(database).enroll(
            {"id": "1", "student_id": "1", "class_id": "1", "year_id": CURRENT_YEAR_ID, "status": "expelled"}
        )


@pytest.mark.asyncio
async def test_class_from_another_year_cannot_be_referenced(database) -> None:
    other = await make_year(database, "2026-2027")
    await make_student(database, "1")
    await make_class(database, other.id, "9")
    with pytest.raises(ConstraintViolationError):
        await StudentsRepository(database).enroll(
            {"id": "1", "student_id": "1", "class_id": "9", "year_id": CURRENT_YEAR_ID}
        )


@pytest.mark.asyncio
async def test_current_year_is_latest_open_year(database) -> None:
    years = AcademicYearsRepository(database)
    await make_year(database, "2026-2027")
    assert (await years.get_current()).id == "2026-2027"

    assert await years.close("2026-2027") is True
    assert (await years.get_current()).id == CURRENT_YEAR_ID
    # Closing keeps the year.
    assert (await years.get_by_id("2026-2027")).closed is True

    await years.close(CURRENT_YEAR_ID)
    assert await years.get_current() is None


@pytest.mark.asyncio
async def test_history_lists_every_year(database) -> None:
    repo = StudentsRepository(database)
    other = await make_year(database, "2026-2027")
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1", "6e A")
    await make_class(database, other.id, "1", "5e A")
    await repo.enroll({"id": "1", "student_id": "1", "class_id": "1", "year_id": CURRENT_YEAR_ID})
    await repo.enroll({"id": "1", "student_id": "1", "class_id": "1", "year_id": other.id})

    history = await repo.history("1")
    assert [(h.year_id, h.class_name) for h in history] == [(CURRENT_YEAR_ID, "6e A"), (other.id, "5e A")]


@pytest.mark.asyncio
async def test_class_student_count_counts_active_enrollments(database) -> None:
    students = StudentsRepository(database)
    await make_class(database, CURRENT_YEAR_ID, "1", "6e A")
    await make_class(database, CURRENT_YEAR_ID, "2", "6e B")
    for student_id, status in (("1", "active"), ("2", "active"), ("3", "left")):
        await make_student(database, student_id, last_name=f"Eleve{student_id}")
        await students.enroll(
            {"id": student_id, "student_id": student_id, "class_id": "1", "year_id": CURRENT_YEAR_ID, "status": status}
        )

    counts = await ClassesRepository(database).list_with_student_count(CURRENT_YEAR_ID)
    assert [(c.name, c.student_count) for c in counts] == [("6e A", 2), ("6e B", 0)]


@pytest.mark.asyncio
async def test_guardians_primary_first(database) -> None:
    guardians = GuardiansRepository(database)
    await make_student(database, "1")
    await guardians.create({"id": "1", "first_name": "Anne", "last_name": "Byron"})
    await guardians.create({"id": "2", "first_name": "George", "last_name": "Byron"})
    await guardians.link_student("1", "2")
    await guardians.link_student("1", "1", is_primary=True)

    linked = await guardians.list_for_student("1")
    assert [g.id for g in linked] == ["1", "2"]


@pytest.mark.asyncio
async def test_teacher_assignment(database) -> None:
    teachers = TeachersRepository(database)
    await make_teacher(database, "1")
    await make_teacher(database, "2", "Grace", "Hopper")
    await make_class(database, CURRENT_YEAR_ID, "1")
    await teachers.assign({"id": "1", "year_id": CURRENT_YEAR_ID, "teacher_id": "1", "class_id": "1"})

    assert await teachers.is_assigned("1", CURRENT_YEAR_ID) is True
    assert await teachers.is_assigned("2", CURRENT_YEAR_ID) is False
    assert [t.id for t in await teachers.list_assigned_teachers(CURRENT_YEAR_ID)] == ["1"]


@pytest.mark.asyncio
async def test_payments_newest_first_and_summary(database) -> None:
    payments = PaymentsRepository(database)
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1")
    for payment_id, month, amount, paid_on in (
        ("1", "09", 50, "2025-09-05"),
        ("2", "10", 50, "2025-10-04"),
        ("3", "10", 25, "2025-10-20"),
    ):
        await payments.create_payment(
            {
                "id": payment_id,
                "year_id": CURRENT_YEAR_ID,
                "student_id": "1",
                "type": "mensualite",
                "class_id": "1",
                "month": month,
                "amount": amount,
                "payment_date": paid_on,
            }
        )

    listed = await payments.list_student_payments("1", CURRENT_YEAR_ID)
    assert [p.id for p in listed] == ["3", "2", "1"]

    october = await payments.payment_summary("1", CURRENT_YEAR_ID, "mensualite", class_id="1", month="10")
    assert october.total_paid == 75
    assert october.payment_count == 2
    assert october.last_payment_date == date(2025, 10, 20)
    assert await payments.payment_summary("1", CURRENT_YEAR_ID, "inscription") is None


@pytest.mark.asyncio
async def test_fees_due_follow_class_configuration(database) -> None:
    payments = PaymentsRepository(database)
    await make_student(database, "1")
    await make_class(database, CURRENT_YEAR_ID, "1")
    await StudentsRepository(database).enroll(
        {"id": "1", "student_id": "1", "class_id": "1", "year_id": CURRENT_YEAR_ID}
    )
    assert (await payments.fees_due("1", CURRENT_YEAR_ID)).mensualite_due == 0

    await payments.set_fees_per_class(
        {"year_id": CURRENT_YEAR_ID, "class_id": "1", "inscription": 150, "mensualite": 60}
    )
    due = await payments.fees_due("1", CURRENT_YEAR_ID)
    assert (due.inscription_due, due.mensualite_due) == (150, 60)


@pytest.mark.asyncio
async def test_service_activation_per_month(database) -> None:
    payments = PaymentsRepository(database)
    await make_student(database, "1")
    await payments.create_service({"id": "1", "year_id": CURRENT_YEAR_ID, "name": "Cantine", "amount": 30})

    await payments.activate_service("1", CURRENT_YEAR_ID, "1", "10")
    await payments.activate_service("1", CURRENT_YEAR_ID, "1", "10")
    assert await payments.is_service_active("1", CURRENT_YEAR_ID, "1", "10") is True
    assert await payments.is_service_active("1", CURRENT_YEAR_ID, "1", "11") is False
    assert await payments.deactivate_service("1", CURRENT_YEAR_ID, "1", "10") == 1
    assert await payments.is_service_active("1", CURRENT_YEAR_ID, "1", "10") is False


@pytest.mark.asyncio
async def test_students_in_class(database) -> None:
    students = StudentsRepository(database)
    await make_class(database, CURRENT_YEAR_ID, "1")
    await make_student(database, "1", "Ada", "Lovelace")
    await make_student(database, "2", "Charles", "Babbage")
    for student_id in ("1", "2"):
        await students.enroll({"id": student_id, "student_id": student_id, "class_id": "1", "year_id": CURRENT_YEAR_ID})

    in_class = await students.list_students_in_class("1", CURRENT_YEAR_ID)
    assert [(s.last_name, s.status) for s in in_class] == [("Babbage", "active"), ("Lovelace", "active")]
    assert [e.year_id for e in await students.list_enrollments_by_student("1")] == [CURRENT_YEAR_ID]
    assert await students.next_enrollment_id(CURRENT_YEAR_ID) == "3"


@pytest.mark.asyncio
async def test_extra_fee_lifecycle(database) -> None:
    payments = PaymentsRepository(database)
    await make_student(database, "1")
    fee = await payments.create_extra_fee({"id": "1", "year_id": CURRENT_YEAR_ID, "name": "Tenue", "amount": 40})
    assert fee.amount == 40

    await payments.activate_extra_fee("1", CURRENT_YEAR_ID, "1")
    assert await payments.is_extra_fee_active("1", CURRENT_YEAR_ID, "1") is True
    assert await payments.update_extra_fee("1", CURRENT_YEAR_ID, {"amount": 45, "year_id": "other"}) is True
    assert (await payments.get_extra_fee("1", CURRENT_YEAR_ID)).amount == 45

    # Deleting the fee cascades to its activations.
    assert await payments.delete_extra_fee("1", CURRENT_YEAR_ID) == 1
    assert await payments.is_extra_fee_active("1", CURRENT_YEAR_ID, "1") is False
    with pytest.raises(ConstraintViolationError):
        await payments.create_extra_fee({"id": "2", "year_id": CURRENT_YEAR_ID, "name": "Livres", "amount": -1})
