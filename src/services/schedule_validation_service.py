"""
Schedule validation service.

Audits proposed admin schedule edits against existing appointments before they
are applied: a new weekly schedule for one day of the week, a one-off schedule
exception for a single date, or a closure over a date range.

The audit is advisory. It reports which scheduled appointments would be left
outside the new hours or inside a new lunch break; the admin workflow decides
whether to proceed, notify the affected patients, or abort.
"""

import logging
from datetime import date as date_type
from typing import Iterable, List, Optional

from core.config import CLINIC_NAME
from core.constants import DAY_LABELS
from core.exceptions import InvalidFormatError, InvalidWindowError
from shared_types.availability import (
    AppointmentSnapshot, ClosureValidation, Conflict, ConflictType,
    ScheduleChangeValidation, WorkingWindow,
)
from utils.datetime_utils import clinic_today, day_of_week as get_day_of_week, format_date, minutes_to_time
from utils.interval_utils import overlaps

logger = logging.getLogger(__name__)


NO_APPOINTMENTS_FOR_DATE = "✅ No hay turnos existentes para esta fecha"
NO_APPOINTMENTS_FOR_WEEKDAY = "✅ No hay turnos futuros para este día de la semana"
NO_CONFLICTS_EXISTING = "✅ El cambio de horario no afecta ningún turno existente."
NO_CONFLICTS_FUTURE = "✅ El cambio de horario no afecta ningún turno futuro."

CONFLICT_DESCRIPTIONS = {
    ConflictType.OUTSIDE_HOURS: "fuera del nuevo horario de atención",
    ConflictType.LUNCH_CONFLICT: "en conflicto con el horario de almuerzo",
    ConflictType.SERVICE_NOT_ALLOWED: "con un servicio que ya no se ofrece en este día",
}


def _conflicts_recommendation(count: int, scope: str) -> str:
    return (
        f"⚠️ Este cambio afectará {count} turno(s) {scope}. "
        "Debe contactar a los pacientes afectados antes de aplicar el cambio."
    )


class ScheduleValidationService:
    """
    Service class for auditing schedule changes.

    Stateless: conflicts are derived fresh on each call from the snapshots
    passed in and are never persisted.
    """

    @staticmethod
    def _make_conflict(
        appointment: AppointmentSnapshot,
        conflict_type: ConflictType,
        reason: str
    ) -> Conflict:
        return Conflict(
            appointment_id=appointment.id,
            conflict_type=conflict_type,
            appointment_date=appointment.date,
            appointment_time=appointment.time,
            duration=appointment.duration,
            patient_name=appointment.patient_name,
            patient_email=appointment.patient_email,
            service_name=appointment.service_name,
            reason=reason,
        )

    @staticmethod
    def audit_window(
        new_window: WorkingWindow,
        appointments: Iterable[AppointmentSnapshot]
    ) -> List[Conflict]:
        """
        Find the appointments a proposed working window would invalidate.

        Each violated condition produces its own entry, so an appointment that
        is both outside the new hours and inside the new lunch break appears
        twice (once per conflict type).

        Args:
            new_window: Proposed working window
            appointments: Candidate appointments; only scheduled ones are checked

        Returns:
            Conflicts in appointment order
        """
        conflicts: List[Conflict] = []
        window_label = f"{minutes_to_time(new_window.start)} - {minutes_to_time(new_window.end)}"

        for appointment in appointments:
            if not appointment.is_scheduled:
                continue

            interval = appointment.interval
            logger.debug(
                f"Checking {format_date(appointment.date)} {appointment.time_str} "
                f"({interval.start}-{interval.end} min) against {window_label}"
            )

            starts_before = interval.start < new_window.start
            ends_after = interval.end > new_window.end
            if starts_before or ends_after:
                if starts_before:
                    reason = (
                        f"Inicia antes del nuevo horario "
                        f"({appointment.time_str} < {minutes_to_time(new_window.start)})"
                    )
                else:
                    reason = (
                        f"Termina después del nuevo horario "
                        f"({appointment.time_str} + {appointment.duration}min > {minutes_to_time(new_window.end)})"
                    )
                conflicts.append(ScheduleValidationService._make_conflict(
                    appointment, ConflictType.OUTSIDE_HOURS, reason
                ))

            lunch = new_window.lunch
            if lunch is not None and overlaps(interval, lunch):
                conflicts.append(ScheduleValidationService._make_conflict(
                    appointment,
                    ConflictType.LUNCH_CONFLICT,
                    f"Coincide con el almuerzo ({minutes_to_time(lunch.start)} - {minutes_to_time(lunch.end)})",
                ))

            # Appointments without a service also conflict with a restricted window
            if new_window.allowed_services and appointment.service_id not in new_window.allowed_services:
                conflicts.append(ScheduleValidationService._make_conflict(
                    appointment,
                    ConflictType.SERVICE_NOT_ALLOWED,
                    "El servicio ya no se ofrece en este horario",
                ))

        return conflicts

    @staticmethod
    def _build_validation(
        conflicts: List[Conflict],
        candidate_count: int,
        no_candidates_message: str,
        no_conflicts_message: str,
        scope: str
    ) -> ScheduleChangeValidation:
        has_conflicts = len(conflicts) > 0
        if candidate_count == 0:
            recommendation = no_candidates_message
        elif has_conflicts:
            recommendation = _conflicts_recommendation(len(conflicts), scope)
        else:
            recommendation = no_conflicts_message

        return ScheduleChangeValidation(
            has_conflicts=has_conflicts,
            conflicts=conflicts,
            affected_appointments_count=len(conflicts),
            can_proceed=not has_conflicts,
            recommendation=recommendation,
        )

    @staticmethod
    def validate_schedule_exception(
        exception_date: date_type,
        new_window: WorkingWindow,
        appointments: Iterable[AppointmentSnapshot]
    ) -> ScheduleChangeValidation:
        """
        Validate a proposed schedule exception for a single date.

        Args:
            exception_date: Date the exception applies to
            new_window: Proposed working window for that date
            appointments: Appointments of the specialist; filtered to the date and scheduled status

        Returns:
            ScheduleChangeValidation for the confirmation dialog
        """
        candidates = [
            a for a in appointments
            if a.is_scheduled and a.date == exception_date
        ]
        conflicts = ScheduleValidationService.audit_window(new_window, candidates)

        logger.info(
            f"Exception validation for {format_date(exception_date)}: "
            f"{len(candidates)} appointment(s), {len(conflicts)} conflict(s)"
        )
        return ScheduleValidationService._build_validation(
            conflicts,
            len(candidates),
            NO_APPOINTMENTS_FOR_DATE,
            NO_CONFLICTS_EXISTING,
            "existente(s)",
        )

    @staticmethod
    def validate_weekly_schedule_change(
        day_of_week: int,
        new_window: WorkingWindow,
        appointments: Iterable[AppointmentSnapshot],
        today: Optional[date_type] = None
    ) -> ScheduleChangeValidation:
        """
        Validate a proposed weekly schedule change for one day of the week.

        Applies to every future date falling on that weekday, from today forward.

        Args:
            day_of_week: Target day (0=Sunday ... 6=Saturday)
            new_window: Proposed working window for that weekday
            appointments: Appointments of the specialist; filtered to scheduled,
                date >= today and matching weekday
            today: Reference date (clinic today when omitted)

        Returns:
            ScheduleChangeValidation for the confirmation dialog

        Raises:
            InvalidFormatError: If day_of_week is not in 0..6
        """
        if day_of_week not in range(7):
            raise InvalidFormatError(f"day_of_week must be between 0 and 6, got {day_of_week}")

        reference_date = today or clinic_today()
        candidates = [
            a for a in appointments
            if a.is_scheduled
            and a.date >= reference_date
            and get_day_of_week(a.date) == day_of_week
        ]
        conflicts = ScheduleValidationService.audit_window(new_window, candidates)

        logger.info(
            f"Weekly schedule validation for {DAY_LABELS[day_of_week]} "
            f"({minutes_to_time(new_window.start)} - {minutes_to_time(new_window.end)}): "
            f"{len(candidates)} appointment(s), {len(conflicts)} conflict(s)"
        )
        return ScheduleValidationService._build_validation(
            conflicts,
            len(candidates),
            NO_APPOINTMENTS_FOR_WEEKDAY,
            NO_CONFLICTS_FUTURE,
            "futuro(s)",
        )

    @staticmethod
    def validate_closure(
        start_date: date_type,
        end_date: date_type,
        appointments: Iterable[AppointmentSnapshot]
    ) -> ClosureValidation:
        """
        Check whether a closure can be created over [start_date, end_date].

        A closure cannot be created while scheduled appointments remain inside
        the range; they must be rescheduled or cancelled first.

        Raises:
            InvalidWindowError: If end_date is before start_date
        """
        if end_date < start_date:
            raise InvalidWindowError("La fecha de fin debe ser posterior o igual a la de inicio")

        blocking = [
            a for a in appointments
            if a.is_scheduled and start_date <= a.date <= end_date
        ]
        if blocking:
            message = (
                f"Hay {len(blocking)} turno(s) programado(s) en este periodo. "
                "Por favor, reprograma o cancela los turnos antes de crear el cierre."
            )
        else:
            message = "✅ No hay turnos programados en este periodo."

        return ClosureValidation(
            can_create=not blocking,
            blocking_appointments=blocking,
            message=message,
        )

    @staticmethod
    def generate_notification_message(
        conflicts: List[Conflict],
        clinic_name: str = CLINIC_NAME
    ) -> str:
        """
        Build the patient-facing message for an affected appointment.

        Uses the first conflict; returns an empty string when there are none.
        """
        if not conflicts:
            return ""

        conflict = conflicts[0]
        service_name = conflict.service_name or "su tratamiento"
        return (
            "Estimado/a paciente,\n\n"
            f"Le informamos que su turno del {format_date(conflict.appointment_date)} a las "
            f"{minutes_to_time(conflict.appointment_time)} para {service_name} se encuentra "
            f"{CONFLICT_DESCRIPTIONS[conflict.conflict_type]}.\n\n"
            "Por favor, contáctenos para reprogramar su cita.\n\n"
            "Saludos cordiales,\n"
            f"{clinic_name}"
        )
