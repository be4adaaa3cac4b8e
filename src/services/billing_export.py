"""
Billing Export
Builds the billing spreadsheet (one row per entry plus a TOTAL row)
"""

from datetime import date
from io import BytesIO
from typing import List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from pydantic import BaseModel

from src.models.schemas import DocumentEntry, ReferenceSnapshot
from src.services.price_resolver import total_amount

SHEET_TITLE = "Facturación"
UNASSIGNED_STUDY = "(sin asignar)"

HEADERS = ["FECHA", "MEDICO/A", "PACIENTE", "EDAD", "OBRA SOCIAL", "NRO AFILIADO", "ESTUDIO REALIZADO", "ARANCEL"]
COLUMN_WIDTHS = [14, 30, 30, 8, 22, 18, 28, 14]
PRICE_COLUMN = len(HEADERS)  # 1-based, ARANCEL
PRICE_FORMAT = "#,##0.00"

_thin = Side(style="thin", color="000000")
BORDER = Border(top=_thin, bottom=_thin, left=_thin, right=_thin)
HEADER_FONT = Font(bold=True, color="FFFFFF", size=10)
HEADER_FILL = PatternFill(fill_type="solid", fgColor="38761D")
UNPRICED_FONT = Font(color="999999")
TOTAL_LABEL_FONT = Font(bold=True)
TOTAL_VALUE_FONT = Font(bold=True, color="16A34A")


class ExportRow(BaseModel):
    fecha: str
    medico: str
    paciente: str
    edad: str
    obra_social: str
    nro_afiliado: str
    estudio: str
    arancel: Optional[float]

    def values(self) -> list:
        return [
            self.fecha, self.medico, self.paciente, self.edad,
            self.obra_social, self.nro_afiliado, self.estudio,
            self.arancel if self.arancel is not None else 0,
        ]


def build_export_rows(entries: Sequence[DocumentEntry], snapshot: ReferenceSnapshot) -> List[ExportRow]:
    """Resolve display names: canonical name first, then the extracted text"""
    return [
        ExportRow(
            fecha=entry.date,
            medico=snapshot.doctor_name(entry.doctor_id) or entry.surgeon,
            paciente=entry.patient_name,
            edad=entry.age,
            obra_social=snapshot.obra_social_name(entry.obra_social_id) or entry.insurance,
            nro_afiliado=entry.carnet,
            estudio=snapshot.study_name(entry.study_id) or entry.practice or UNASSIGNED_STUDY,
            arancel=entry.precio,
        )
        for entry in entries
    ]


def build_workbook(entries: Sequence[DocumentEntry], snapshot: ReferenceSnapshot) -> Workbook:
    """
    Build the billing workbook

    Unpriced entries are written as 0 in grey and add nothing to the total.
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

    rows = build_export_rows(entries, snapshot)
    for row_index, row in enumerate(rows, start=2):
        for col, value in enumerate(row.values(), start=1):
            cell = sheet.cell(row=row_index, column=col, value=value)
            cell.border = BORDER
            if col == PRICE_COLUMN:
                cell.number_format = PRICE_FORMAT
                cell.alignment = Alignment(horizontal="right", vertical="center")
                if row.arancel is None:
                    cell.font = UNPRICED_FONT
            else:
                cell.alignment = Alignment(horizontal="left", vertical="center")

    total_row = len(rows) + 2
    for col in range(1, len(HEADERS) + 1):
        sheet.cell(row=total_row, column=col).border = BORDER

    label = sheet.cell(row=total_row, column=PRICE_COLUMN - 1, value="TOTAL")
    label.font = TOTAL_LABEL_FONT
    label.alignment = Alignment(horizontal="right", vertical="center")

    total = sheet.cell(row=total_row, column=PRICE_COLUMN, value=total_amount(entries))
    total.font = TOTAL_VALUE_FONT
    total.number_format = PRICE_FORMAT
    total.alignment = Alignment(horizontal="right", vertical="center")

    for col, width in enumerate(COLUMN_WIDTHS, start=1):
        sheet.column_dimensions[get_column_letter(col)].width = width

    return workbook


def export_to_excel_bytes(entries: Sequence[DocumentEntry], snapshot: ReferenceSnapshot) -> bytes:
    buffer = BytesIO()
    build_workbook(entries, snapshot).save(buffer)
    return buffer.getvalue()


def export_file_name(day: Optional[date] = None) -> str:
    day = day or date.today()
    return f"facturacion_{day.isoformat()}.xlsx"
