"""
Pydantic models for the billing front office
Defines the extracted document, the editable billing entry and the
reference data snapshot fetched from the backend
"""

from datetime import date, datetime
from datetime import time as dt_time
from enum import Enum
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.utils.errors import ErrorKind


# ============================================================================
# DOCUMENT EXTRACTION
# ============================================================================

class ParsedDocument(BaseModel):
    """Fields recovered from a surgical report ("parte quirúrgico")

    An empty string means the field was not found in the text.
    """
    model_config = ConfigDict(frozen=True)

    patient_name: str = ""
    insurance: str = ""
    age: str = ""
    surgeon: str = ""
    practice: str = ""
    date: str = ""
    operation_description: str = ""
    raw_text: str = ""


class DocumentEntry(ParsedDocument):
    """Editable billing row built from one uploaded file or a manual entry"""
    model_config = ConfigDict(frozen=False, validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    file_name: str = ""
    carnet: str = ""
    doctor_id: str = ""
    study_id: str = ""
    obra_social_id: str = ""
    precio: Optional[float] = Field(None, ge=0, description="None when no tariff applies")


class UploadedDocument(BaseModel):
    """File handed to the ingestion pipeline"""
    name: str
    content_type: str = ""
    data: bytes

    @classmethod
    def from_path(cls, path: str, content_type: str = "") -> "UploadedDocument":
        file_path = Path(path)
        with open(file_path, "rb") as f:
            data = f.read()
        return cls(name=file_path.name, content_type=content_type, data=data)


class ManualEntryForm(BaseModel):
    """Manual billing entry (no document uploaded)"""
    patient_name: str
    obra_social_id: str = ""
    carnet: str = ""
    age: str = ""
    doctor_id: str = ""
    study_id: str = ""
    date: str = ""

    @field_validator("patient_name")
    @classmethod
    def patient_name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("El nombre del paciente es obligatorio")
        return value.strip()


# ============================================================================
# REFERENCE DATA (owned by the backend)
# ============================================================================

class Doctor(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    doctor_id: str = Field(..., alias="doctorId")
    name: str
    specialty: str = ""
    active: bool = True


class Study(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    study_id: str = Field(..., alias="studyId")
    name: str
    duration_minutes: int = Field(0, alias="durationMinutes")
    active: bool = True


class ObraSocial(BaseModel):
    """Health-insurance payer"""
    model_config = ConfigDict(populate_by_name=True)

    obra_social_id: str = Field(..., alias="obraSocialId")
    nombre: str
    activa: bool = True


class Tarifa(BaseModel):
    """Price configured for one (study, insurer) pair"""
    model_config = ConfigDict(populate_by_name=True)

    tarifa_id: str = Field("", alias="tarifaId")
    estudio_id: str = Field(..., alias="estudioId")
    obra_social_id: str = Field(..., alias="obraSocialId")
    precio: float = Field(..., ge=0)
    nombre_estudio: Optional[str] = Field(None, alias="nombreEstudio")
    nombre_obra_social: Optional[str] = Field(None, alias="nombreObraSocial")


class Appointment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    appointment_id: str = Field(..., alias="appointmentId")
    patient_name: str = Field("", alias="patientName")
    patient_phone: str = Field("", alias="patientPhone")
    email: str = ""
    study: str = ""
    insurance: str = ""
    start_time: str = Field("", alias="startTime")
    end_time: str = Field("", alias="endTime")
    status: str = ""
    description: Optional[str] = None
    created_at: str = Field("", alias="createdAt")
    source: Optional[str] = None
    calendar_event_id: Optional[str] = Field(None, alias="calendarEventId")


class AppointmentRequest(BaseModel):
    """New appointment as typed in the booking form; every field is required"""
    patient_name: str
    doctor_id: str
    phone: str
    email: str
    study_id: str
    insurance: str
    day: date
    time: dt_time

    @field_validator("patient_name", "doctor_id", "phone", "email", "study_id", "insurance")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Completá todos los campos.")
        return value.strip()


class ReferenceSnapshot(BaseModel):
    """Reference data read once before a batch starts"""
    model_config = ConfigDict(frozen=True)

    doctors: List[Doctor] = Field(default_factory=list)
    studies: List[Study] = Field(default_factory=list)
    obras_sociales: List[ObraSocial] = Field(default_factory=list)
    tarifas: List[Tarifa] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=datetime.now)

    def doctor_name(self, doctor_id: str) -> str:
        for doctor in self.doctors:
            if doctor.doctor_id == doctor_id:
                return doctor.name
        return ""

    def study_name(self, study_id: str) -> str:
        for study in self.studies:
            if study.study_id == study_id:
                return study.name
        return ""

    def obra_social_name(self, obra_social_id: str) -> str:
        for obra_social in self.obras_sociales:
            if obra_social.obra_social_id == obra_social_id:
                return obra_social.nombre
        return ""


# ============================================================================
# BATCH INGESTION
# ============================================================================

class BatchState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class IngestionProgress(BaseModel):
    """Snapshot of the batch state machine, sent to the progress callback"""
    state: BatchState = BatchState.IDLE
    file_index: int = 0  # 1-based, 0 when idle
    total_files: int = 0
    file_name: str = ""
    percent: int = Field(0, ge=0, le=100)


class FileError(BaseModel):
    """Failure recorded for one file of a batch"""
    file_name: str
    kind: ErrorKind
    message: str


class BatchResult(BaseModel):
    entries: List[DocumentEntry] = Field(default_factory=list)
    errors: List[FileError] = Field(default_factory=list)
