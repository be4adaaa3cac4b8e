"""
Default field patterns for surgical reports
Patterns are tried in order for each field; the first one with a non-empty
group 1 wins. OCR often reads the letter O as the digit 0 and drops accents,
so later entries accept those variants.
"""

from typing import List

from pydantic import BaseModel, Field

# Letters accepted in names (with and without accents)
NAME_CHARS = r"A-ZÁÉÍÓÚÑa-záéíóúñ"

# Where the insurer value ends: next label, a long membership number or the line
INSURANCE_END = r"(?:\n|Edad|C[ao]r?[nm]et|Fecha|\d{5,}|$)"


class FieldPatternTable(BaseModel):
    """Ordered regular expressions for each extracted field"""
    patient_name: List[str] = Field(default_factory=list)
    insurance: List[str] = Field(default_factory=list)
    age: List[str] = Field(default_factory=list)
    surgeon: List[str] = Field(default_factory=list)
    practice: List[str] = Field(default_factory=list)
    date: List[str] = Field(default_factory=list)
    operation_description: List[str] = Field(default_factory=list)


DEFAULT_FIELD_PATTERNS = FieldPatternTable(
    patient_name=[
        rf"Apellido\s*y\s*Nombre/?s?\s*[:\s]+([{NAME_CHARS}\s,.]+?)(?:\n|[O0]\s*\.?\s*[Ss]ocial|Edad|$)",
        rf"Nombre/?s?\s*[:\s]+([{NAME_CHARS}\s,.]+?)(?:\n|[O0]\s*\.?\s*[Ss]ocial|$)",
    ],
    insurance=[
        # "O. Social", "O Social", "0. Social", "0 Social", "O.Social"
        rf"[O0]\s*\.?\s*[Ss]ocial\s*[:\s]+([{NAME_CHARS}\s,.\-/]+?){INSURANCE_END}",
        rf"[Oo]bra\s*[Ss]ocial\s*[:\s]+([{NAME_CHARS}\s,.\-/]+?){INSURANCE_END}",
        rf"[O0]\s*\.?\s*[Ss]oc\w*\s*[:\s]+(.+?){INSURANCE_END}",
    ],
    age=[
        r"Edad\s*[:\s]+(\d{1,3})",
        r"Edad\s+(\d{1,3})",
    ],
    surgeon=[
        rf"[Cc]irujano\s*[:\s]+([{NAME_CHARS}\s,.]+?)(?:\n|1\s*[°º]|Anestes|Ayudante|$)",
        rf"[Cc]irujano\s+([{NAME_CHARS}\s,.]+?)(?:\n|1|Anestes|$)",
    ],
    practice=[
        r"PRACTICA\s*[:\s]+(.+?)(?:\n\n|\n(?=[A-Z]{3,})|$)",
        r"Pr[aá]ctica\s*[:\s]+(.+?)(?:\n\n|\n(?=[A-Z]{3,})|$)",
    ],
    date=[
        r"Fecha\s*[:\s]*(\d{1,2}\s*/\s*\d{1,2}\s*/\s*\d{2,4})",
        r"Fecha\s*[:\s]*(\d{4}-\d{2}-\d{2})",
        r"(\d{1,2}/\d{1,2}/\d{4})",
    ],
    operation_description=[
        # Narrative runs until the license number (M.N.), the signer or the end
        r"DESCRIPCI[OÓ]N\s+DE\s+LA\s+OPERACI[OÓ]N\s*\n([\s\S]+?)(?:M\.?\s*N\.?\s*[:\s]*\d|ALVARRACIN|firma|$)",
    ],
)
