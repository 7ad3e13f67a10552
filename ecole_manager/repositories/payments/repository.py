from typing import Any, List, Mapping, Optional, Union

from sqlalchemy import func, select, text

from ecole_manager.core.enums import PaymentType
from ecole_manager.core.models import (
    ExtraFee,
    FeesPerClass,
    Payment,
    Service,
    StudentFeeActivation,
    StudentServiceActivation,
)
from ecole_manager.repositories.base import Repository, validate_payload

from .schemas import (
    ExtraFeeCreate,
    ExtraFeeRead,
    ExtraFeeUpdate,
    FeesDue,
    FeesPerClassRead,
    FeesPerClassSave,
    PaymentCreate,
    PaymentRead,
    PaymentSummary,
    ServiceCreate,
    ServiceRead,
    ServiceUpdate,
)

EXTRA_FEE_MUTABLE_FIELDS = ("name", "amount")
SERVICE_MUTABLE_FIELDS = ("name", "amount", "periodicity")


class PaymentsRepository(Repository):
    # Fees per class

    async def set_fees_per_class(self, data: Union[FeesPerClassSave, Mapping[str, Any]]) -> FeesPerClassRead:
        payload = validate_payload(FeesPerClassSave, data, "fees per class")
        return await self._upsert(
            FeesPerClass, FeesPerClassRead, payload.model_dump(), ("year_id", "class_id"), "Fees per class"
        )

    async def get_fees_per_class(self, year_id: str, class_id: str) -> Optional[FeesPerClassRead]:
        return await self._get(FeesPerClass, FeesPerClassRead, year_id=year_id, class_id=class_id)

    async def list_fees_per_class(self, year_id: str) -> List[FeesPerClassRead]:
        stmt = select(FeesPerClass).where(FeesPerClass.year_id == year_id).order_by(FeesPerClass.class_id)
        return await self._list(stmt, FeesPerClassRead)

    # Extra fees

    async def create_extra_fee(self, data: Union[ExtraFeeCreate, Mapping[str, Any]]) -> ExtraFeeRead:
        payload = validate_payload(ExtraFeeCreate, data, "extra fee")
        return await self._insert(ExtraFee, ExtraFeeRead, payload.model_dump(), "Extra fee")

    async def get_extra_fee(self, fee_id: str, year_id: str) -> Optional[ExtraFeeRead]:
        return await self._get(ExtraFee, ExtraFeeRead, id=fee_id, year_id=year_id)

    async def list_extra_fees(self, year_id: str) -> List[ExtraFeeRead]:
        stmt = select(ExtraFee).where(ExtraFee.year_id == year_id).order_by(ExtraFee.name)
        return await self._list(stmt, ExtraFeeRead)

    async def update_extra_fee(self, fee_id: str, year_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(
            ExtraFee,
            ExtraFeeUpdate,
            {"id": fee_id, "year_id": year_id},
            fields,
            EXTRA_FEE_MUTABLE_FIELDS,
            "Extra fee",
        )

    async def delete_extra_fee(self, fee_id: str, year_id: str) -> int:
        return await self._delete(ExtraFee, "Extra fee", id=fee_id, year_id=year_id)

    async def next_extra_fee_id(self, year_id: str) -> str:
        return await self._next_id(ExtraFee, year_id)

    # Services

    async def create_service(self, data: Union[ServiceCreate, Mapping[str, Any]]) -> ServiceRead:
        payload = validate_payload(ServiceCreate, data, "service")
        return await self._insert(Service, ServiceRead, payload.model_dump(), "Service")

    async def get_service(self, service_id: str, year_id: str) -> Optional[ServiceRead]:
        return await self._get(Service, ServiceRead, id=service_id, year_id=year_id)

    async def list_services(self, year_id: str) -> List[ServiceRead]:
        stmt = select(Service).where(Service.year_id == year_id).order_by(Service.name)
        return await self._list(stmt, ServiceRead)

    async def update_service(self, service_id: str, year_id: str, fields: Mapping[str, Any]) -> bool:
        return await self._update(
            Service,
            ServiceUpdate,
            {"id": service_id, "year_id": year_id},
            fields,
            SERVICE_MUTABLE_FIELDS,
            "Service",
        )

    async def delete_service(self, service_id: str, year_id: str) -> int:
        return await self._delete(Service, "Service", id=service_id, year_id=year_id)

    async def next_service_id(self, year_id: str) -> str:
        return await self._next_id(Service, year_id)

    # Activations

    async def activate_extra_fee(self, student_id: str, year_id: str, extra_fee_id: str) -> None:
        await self._upsert_activation(
            StudentFeeActivation,
            {"student_id": student_id, "year_id": year_id, "extra_fee_id": extra_fee_id},
            "Extra fee activation",
        )

    async def deactivate_extra_fee(self, student_id: str, year_id: str, extra_fee_id: str) -> int:
        return await self._delete(
            StudentFeeActivation,
            "Extra fee activation",
            student_id=student_id,
            year_id=year_id,
            extra_fee_id=extra_fee_id,
        )

    async def is_extra_fee_active(self, student_id: str, year_id: str, extra_fee_id: str) -> bool:
        return await self._exists(
            StudentFeeActivation, student_id=student_id, year_id=year_id, extra_fee_id=extra_fee_id
        )

    async def activate_service(self, student_id: str, year_id: str, service_id: str, month: str) -> None:
        await self._upsert_activation(
            StudentServiceActivation,
            {"student_id": student_id, "year_id": year_id, "service_id": service_id, "month": month},
            "Service activation",
        )

    async def deactivate_service(self, student_id: str, year_id: str, service_id: str, month: str) -> int:
        return await self._delete(
            StudentServiceActivation,
            "Service activation",
            student_id=student_id,
            year_id=year_id,
            service_id=service_id,
            month=month,
        )

    async def is_service_active(self, student_id: str, year_id: str, service_id: str, month: str) -> bool:
        return await self._exists(
            StudentServiceActivation, student_id=student_id, year_id=year_id, service_id=service_id, month=month
        )

    # Payments

    async def create_payment(self, data: Union[PaymentCreate, Mapping[str, Any]]) -> PaymentRead:
        payload = validate_payload(PaymentCreate, data, "payment")
        return await self._insert(Payment, PaymentRead, payload.model_dump(), "Payment")

    async def get_payment(self, payment_id: str, year_id: str) -> Optional[PaymentRead]:
        return await self._get(Payment, PaymentRead, id=payment_id, year_id=year_id)

    async def list_student_payments(self, student_id: str, year_id: str) -> List[PaymentRead]:
        """Most recent payment first."""
        stmt = (
            select(Payment)
            .where(Payment.student_id == student_id, Payment.year_id == year_id)
            .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        )
        return await self._list(stmt, PaymentRead)

    async def delete_payment(self, payment_id: str, year_id: str) -> int:
        return await self._delete(Payment, "Payment", id=payment_id, year_id=year_id)

    async def payment_summary(
        self,
        student_id: str,
        year_id: str,
        payment_type: Union[PaymentType, str],
        class_id: Optional[str] = None,
        month: Optional[str] = None,
        item_id: Optional[str] = None,
    ) -> Optional[PaymentSummary]:
        query = (
            "SELECT * FROM payment_summary "
            "WHERE student_id = :student_id AND year_id = :year_id AND type = :type"
        )
        params = {"student_id": student_id, "year_id": year_id, "type": PaymentType(payment_type).value}
        if class_id:
            query += " AND class_id = :class_id"
            params["class_id"] = class_id
        if month:
            query += " AND month = :month"
            params["month"] = month
        if item_id:
            query += " AND item_id = :item_id"
            params["item_id"] = item_id
        rows = await self._rows(text(query).bindparams(**params))
        return PaymentSummary(**rows[0]) if rows else None

    async def fees_due(self, student_id: str, year_id: str) -> Optional[FeesDue]:
        stmt = text(
            "SELECT * FROM fees_due WHERE student_id = :student_id AND year_id = :year_id"
        ).bindparams(student_id=student_id, year_id=year_id)
        rows = await self._rows(stmt)
        return FeesDue(**rows[0]) if rows else None

    async def next_payment_id(self, year_id: str) -> str:
        return await self._next_id(Payment, year_id)

    async def _upsert_activation(self, model, values: Mapping[str, Any], what: str) -> None:
        async with self.database.session() as session:
            existing = await session.get(model, dict(values))
            if existing is None:
                session.add(model(**values))
                await self._commit(session, what)

    async def _exists(self, model, **key: Any) -> bool:
        stmt = select(func.count()).select_from(model).filter_by(**key)
        async with self.database.session() as session:
            return (await session.execute(stmt)).scalar_one() > 0
