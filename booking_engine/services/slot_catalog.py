from __future__ import annotations

from datetime import datetime, timezone

from loguru import logger
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from booking_engine.core.errors import BusinessRuleError, EngineError, ErrorCode, NotFoundError
from booking_engine.core.result import returns_result
from booking_engine.models import TimeSlotConfig
from booking_engine.schemas.slot import BulkSlotEntryError, BulkSlotReport, TimeSlotOut
from booking_engine.services.directory import DirectoryService
from booking_engine.utils.time import normalize_slot_time, parse_slot_time


class SlotCatalogService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.directory = DirectoryService(session=session)

    @returns_result
    def add_slot(self, *, branch_id: int, time: str, appointment_type_id: int | None = None) -> TimeSlotConfig:
        normalized = normalize_slot_time(time)
        self._require_references(branch_id, appointment_type_id)
        return self._insert(branch_id=branch_id, time=normalized, appointment_type_id=appointment_type_id)

    @returns_result
    def bulk_add_slots(
        self,
        *,
        branch_id: int,
        appointment_type_id: int | None,
        times: list[str],
    ) -> BulkSlotReport:
        created: list[TimeSlotConfig] = []
        errors: list[BulkSlotEntryError] = []
        pending = list(times)
        try:
            self._require_references(branch_id, appointment_type_id)
        except EngineError as exc:
            # An unknown branch or type skips every entry with the same reason
            errors = [_entry_error(raw_time, exc) for raw_time in pending]
            pending = []

        for raw_time in pending:
            try:
                normalized = normalize_slot_time(raw_time)
                created.append(
                    self._insert(branch_id=branch_id, time=normalized, appointment_type_id=appointment_type_id)
                )
            except EngineError as exc:
                errors.append(_entry_error(raw_time, exc))

        logger.info(
            "Bulk slot configuration for branch={branch_id}: created={created} skipped={skipped}",
            branch_id=branch_id,
            created=len(created),
            skipped=len(errors),
        )
        return BulkSlotReport(
            created_count=len(created),
            skipped_count=len(errors),
            total=len(times),
            created=[TimeSlotOut.model_validate(slot) for slot in created],
            errors=errors,
        )

    @returns_result
    def deactivate_slot(self, slot_id: int) -> TimeSlotConfig:
        slot = self._require_slot(slot_id)
        if not slot.is_active:
            raise BusinessRuleError("Time slot is already inactive", code=ErrorCode.ALREADY_INACTIVE)
        slot.is_active = False
        slot.updated_at = datetime.now(timezone.utc)
        self.session.flush()
        logger.info("Deactivated time slot id={slot_id}", slot_id=slot_id)
        return slot

    @returns_result
    def activate_slot(self, slot_id: int) -> TimeSlotConfig:
        slot = self._require_slot(slot_id)
        if slot.is_active:
            raise BusinessRuleError("Time slot is already active", code=ErrorCode.ALREADY_ACTIVE)
        if self._find_active(slot.branch_id, slot.time, slot.appointment_type_id):
            raise BusinessRuleError(
                f"An active slot already exists for {slot.time}", code=ErrorCode.DUPLICATE_SLOT
            )
        slot.is_active = True
        slot.updated_at = datetime.now(timezone.utc)
        self.session.flush()
        return slot

    def list_slots(self, branch_id: int, appointment_type_id: int | None = None) -> list[TimeSlotConfig]:
        """Active slots ordered by time of day.

        With an appointment type, branch-wide slots (no type) are included as well.
        """
        stmt = select(TimeSlotConfig).where(
            TimeSlotConfig.branch_id == branch_id,
            TimeSlotConfig.is_active.is_(True),
        )
        if appointment_type_id is not None:
            stmt = stmt.where(
                or_(
                    TimeSlotConfig.appointment_type_id == appointment_type_id,
                    TimeSlotConfig.appointment_type_id.is_(None),
                )
            )
        slots = list(self.session.scalars(stmt))
        slots.sort(key=lambda slot: (parse_slot_time(slot.time), slot.appointment_type_id or 0))
        return slots

    def _insert(self, *, branch_id: int, time: str, appointment_type_id: int | None) -> TimeSlotConfig:
        if self._find_active(branch_id, time, appointment_type_id):
            raise BusinessRuleError(f"Time slot {time} is already configured", code=ErrorCode.DUPLICATE_SLOT)
        slot = TimeSlotConfig(
            branch_id=branch_id,
            appointment_type_id=appointment_type_id,
            time=time,
            is_active=True,
        )
        self.session.add(slot)
        self.session.flush()
        logger.debug("Configured slot {time} for branch={branch_id}", time=time, branch_id=branch_id)
        return slot

    def _find_active(self, branch_id: int, time: str, appointment_type_id: int | None) -> TimeSlotConfig | None:
        stmt = select(TimeSlotConfig).where(
            TimeSlotConfig.branch_id == branch_id,
            TimeSlotConfig.time == time,
            TimeSlotConfig.is_active.is_(True),
        )
        if appointment_type_id is None:
            stmt = stmt.where(TimeSlotConfig.appointment_type_id.is_(None))
        else:
            stmt = stmt.where(TimeSlotConfig.appointment_type_id == appointment_type_id)
        return self.session.scalars(stmt).first()

    def _require_slot(self, slot_id: int) -> TimeSlotConfig:
        slot = self.session.get(TimeSlotConfig, slot_id)
        if not slot:
            raise NotFoundError(f"Time slot with ID {slot_id} not found")
        return slot

    def _require_references(self, branch_id: int, appointment_type_id: int | None) -> None:
        self.directory.require_branch(branch_id)
        if appointment_type_id is not None:
            self.directory.require_appointment_type(appointment_type_id)


def get_slot_catalog_service(session: Session) -> SlotCatalogService:
    return SlotCatalogService(session=session)


def _entry_error(raw_time: object, exc: EngineError) -> BulkSlotEntryError:
    return BulkSlotEntryError(time=str(raw_time), code=exc.code.value, message=exc.message)
