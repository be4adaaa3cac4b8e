"""
Appointment Service
Booking payloads, list date ranges and the appointments spreadsheet
"""

import calendar
import re
from datetime import date, datetime
from io import BytesIO
from typing import List, Optional, Sequence, Tuple

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from src.models.schemas import Appointment, AppointmentRequest, ReferenceSnapshot
from src.services.billing_export import BORDER, HEADER_FONT
from src.utils.errors import AppointmentConflictError

APPOINTMENT_SOURCE = "streamlit_form"
DEFAULT_CONFLICT_CODE = "SLOT_TAKEN"

SHEET_TITLE = "Turnos"
HEADERS = ["Fecha", "Hora", "Paciente", "Estudio", "Obra Social", "Teléfono", "Email", "Estado"]
COLUMN_WIDTHS = [14, 8, 28, 22, 16, 15, 28, 14]
STATUS_COLUMN = len(HEADERS)
HEADER_FILL = PatternFill(fill_type="solid", fgColor="4F46E5")

# status -> (fill, font color)
STATUS_COLORS = {
    "CONFIRMED": ("C6EFCE", "006100"),
    "TENTATIVE": ("FFEB9C", "9C5700"),
    "CANCELLED": ("FFC7CE", "9C0006"),
}


def build_appointment_payload(request: AppointmentRequest, snapshot: ReferenceSnapshot) -> dict:
    """Backend body for POST /appointments; names travel with the ids"""
    return {
        "patientName": request.patient_name,
        "doctorId": request.doctor_id,
        "doctorName": snapshot.doctor_name(request.doctor_id),
        "phone": request.phone,
        "email": request.email,
        "studyId": request.study_id,
        "study": snapshot.study_name(request.study_id),
        "insurance": request.insurance,
        "date": request.day.isoformat(),
        "time": request.time.strftime("%H:%M"),
        "source": APPOINTMENT_SOURCE,
    }


def conflict_message(error: AppointmentConflictError) -> str:
    code = error.code or error.reason or DEFAULT_CONFLICT_CODE
    return f"⚠️ Ese horario ya está ocupado ({code}). Probá otro."


def appointment_range(day: Optional[date] = None, today: Optional[date] = None) -> Tuple[str, str]:
    """
    Date range for listing appointments

    Args:
        day: A single day to list
        today: Reference date for the default range (defaults to date.today())

    Returns:
        (from, to) as ISO dates: the given day, or the whole current month
    """
    if day is not None:
        return day.isoformat(), day.isoformat()

    today = today or date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1).isoformat(), today.replace(day=last_day).isoformat()


def _start(appointment: Appointment) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(appointment.start_time)
    except ValueError:
        return None


def sort_appointments(appointments: Sequence[Appointment]) -> List[Appointment]:
    """Oldest first; appointments without a readable start time go last"""
    def key(appointment):
        start = _start(appointment)
        return (start is None, start.timestamp() if start else 0.0)

    return sorted(appointments, key=key)


def split_start_time(appointment: Appointment) -> Tuple[str, str]:
    """(dd/mm/yyyy, HH:MM) in the appointment's own offset"""
    start = _start(appointment)
    if start is None:
        return appointment.start_time, ""
    return start.strftime("%d/%m/%Y"), start.strftime("%H:%M")


def appointment_rows(appointments: Sequence[Appointment]) -> List[list]:
    rows = []
    for appointment in appointments:
        fecha, hora = split_start_time(appointment)
        rows.append([
            fecha, hora, appointment.patient_name, appointment.study,
            appointment.insurance, appointment.patient_phone,
            appointment.email, appointment.status,
        ])
    return rows


def export_appointments_to_excel_bytes(appointments: Sequence[Appointment]) -> bytes:
    """
    Build the appointments workbook

    The status cell is colored for CONFIRMED, TENTATIVE and CANCELLED.
    """
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    for col, header in enumerate(HEADERS, start=1):
        cell = sheet.cell(row=1, column=col, value=header)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = BORDER

    for row_index, row in enumerate(appointment_rows(appointments), start=2):
        for col, value in enumerate(row, start=1):
            cell = sheet.cell(row=row_index, column=col, value=value)
            cell.border = BORDER
            cell.alignment = Alignment(
                horizontal="center" if col in (1, 2) else None, vertical="center"
            )
            if col == STATUS_COLUMN and str(value).upper() in STATUS_COLORS:
                fill, color = STATUS_COLORS[str(value).upper()]
                cell.fill = PatternFill(fill_type="solid", fgColor=fill)
                cell.font = Font(bold=True, color=color)
                cell.alignment = Alignment(horizontal="center", vertical="center")

    for col, width in enumerate(COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(col)].width = width

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def appointments_file_name(day: Optional[date] = None, doctor_name: str = "") -> str:
    """turnos_<day>_<doctor>.xlsx; "todos" when no doctor filter is set"""
    day_part = (day or date.today()).isoformat()
    doctor_part = re.sub(r"[^a-zA-Z0-9]", "_", doctor_name) if doctor_name else "todos"
    return f"turnos_{day_part}_{doctor_part}.xlsx"
