"""
Integration tests for the Ingestion Service
End-to-end batch processing: extraction, parsing, matching and pricing
"""

import sys
from io import BytesIO
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from unittest.mock import patch
from PIL import Image
from src.models.schemas import (
    BatchState,
    Doctor,
    ManualEntryForm,
    ObraSocial,
    ReferenceSnapshot,
    Study,
    Tarifa,
    UploadedDocument
)
from src.services.ingestion_service import MANUAL_FILE_NAME, IngestionService
from src.utils.errors import ErrorKind


REPORT_TEXT = (
    "Apellido y Nombre: GOMEZ MARIA LAURA\n"
    "O. Social: OSDE BINARIO Carnet 61234567\n"
    "Edad: 54\n"
    "Fecha: 12/03/2025\n"
    "Cirujano: ALVAREZ JUAN\n"
    "PRACTICA: FACOEMULSIFICACION CON LIO\n"
)


def pdf_document(name):
    return UploadedDocument(name=name, content_type="application/pdf", data=b"%PDF-1.4 fake")


class TestIngestionService:
    """Test suite for IngestionService"""

    def setup_method(self):
        self.snapshot = ReferenceSnapshot(
            doctors=[Doctor(doctorId="d1", name="ALVAREZ JUAN")],
            studies=[Study(studyId="s1", name="FACOEMULSIFICACION")],
            obras_sociales=[
                ObraSocial(obraSocialId="os1", nombre="OSDE"),
                ObraSocial(obraSocialId="os2", nombre="IOMA"),
            ],
            tarifas=[Tarifa(tarifaId="t1", estudioId="s1", obraSocialId="os1", precio=150000)],
        )
        self.service = IngestionService(self.snapshot)

    @patch("src.utils.text_extractor.extract_text_from_pdf", return_value=REPORT_TEXT)
    def test_single_document_pipeline(self, pdf_mock):
        entry = self.service.process_document(pdf_document("parte1.pdf"))

        assert entry.file_name == "parte1.pdf"
        assert entry.patient_name == "GOMEZ MARIA LAURA"
        assert entry.doctor_id == "d1"
        assert entry.study_id == "s1"
        assert entry.obra_social_id == "os1"
        assert entry.precio == 150000
        assert entry.raw_text == REPORT_TEXT
        assert entry.id

    @patch("src.utils.text_extractor.extract_text_from_pdf", return_value="texto ilegible")
    def test_unresolved_references(self, pdf_mock):
        entry = self.service.process_document(pdf_document("borroso.pdf"))

        assert entry.doctor_id == ""
        assert entry.study_id == ""
        assert entry.obra_social_id == ""
        assert entry.precio is None

    @patch("src.utils.text_extractor.extract_text_from_pdf", return_value=REPORT_TEXT)
    def test_batch_continues_after_unsupported_file(self, pdf_mock):
        documents = [
            pdf_document("a.pdf"),
            pdf_document("b.pdf"),
            UploadedDocument(name="planilla.docx", content_type="application/msword", data=b"x"),
            pdf_document("c.pdf"),
            pdf_document("d.pdf"),
        ]

        result = self.service.process_batch(documents)

        assert [e.file_name for e in result.entries] == ["a.pdf", "b.pdf", "c.pdf", "d.pdf"]
        assert len(result.errors) == 1
        assert result.errors[0].file_name == "planilla.docx"
        assert result.errors[0].kind == ErrorKind.UNSUPPORTED_FILE_TYPE
        assert "planilla.docx" in result.errors[0].message

    @patch.object(Image, "MAX_IMAGE_PIXELS", 500)
    @patch("src.utils.text_extractor.extract_text_from_pdf", return_value=REPORT_TEXT)
    def test_batch_continues_after_oversized_image(self, pdf_mock):
        buffer = BytesIO()
        Image.new("RGB", (64, 32), "white").save(buffer, format="PNG")
        documents = [
            pdf_document("a.pdf"),
            UploadedDocument(name="enorme.png", content_type="image/png", data=buffer.getvalue()),
            pdf_document("c.pdf"),
        ]

        result = self.service.process_batch(documents)

        assert [e.file_name for e in result.entries] == ["a.pdf", "c.pdf"]
        assert [(e.file_name, e.kind) for e in result.errors] == [
            ("enorme.png", ErrorKind.EXTRACTION_FAILURE)
        ]
        assert self.service.state == BatchState.IDLE

    def test_batch_continues_after_corrupt_pdf(self):
        documents = [pdf_document("roto.pdf")]

        result = self.service.process_batch(documents)

        assert result.entries == []
        assert result.errors[0].kind == ErrorKind.EXTRACTION_FAILURE
        assert self.service.state == BatchState.IDLE

    @patch("src.utils.text_extractor.extract_text_from_pdf", return_value=REPORT_TEXT)
    def test_progress_events(self, pdf_mock):
        events = []

        self.service.process_batch([pdf_document("a.pdf"), pdf_document("b.pdf")], on_progress=events.append)

        processing = [e for e in events if e.state == BatchState.PROCESSING]
        assert [(e.file_index, e.file_name, e.percent) for e in processing] == [
            (1, "a.pdf", 0), (1, "a.pdf", 10), (1, "a.pdf", 100),
            (2, "b.pdf", 0), (2, "b.pdf", 10), (2, "b.pdf", 100),
        ]
        assert all(e.total_files == 2 for e in processing)
        assert events[-1].state == BatchState.IDLE
        assert self.service.state == BatchState.IDLE

    def test_empty_batch(self):
        result = self.service.process_batch([])

        assert result.entries == []
        assert result.errors == []

    def test_manual_entry_without_study_or_insurer(self):
        form = ManualEntryForm(patient_name="  RUIZ PEDRO ", doctor_id="d1")

        entry = self.service.build_manual_entry(form)

        assert entry.file_name == MANUAL_FILE_NAME
        assert entry.patient_name == "RUIZ PEDRO"
        assert entry.surgeon == "ALVAREZ JUAN"
        assert entry.precio is None
        assert entry.raw_text == ""
        assert entry.practice == ""

    def test_manual_entry_priced(self):
        form = ManualEntryForm(
            patient_name="RUIZ PEDRO",
            study_id="s1",
            obra_social_id="os1",
            carnet=" 123/45 ",
            date="2025-03-12"
        )

        entry = self.service.build_manual_entry(form)

        assert entry.precio == 150000
        assert entry.carnet == "123/45"
        assert entry.date == "2025-03-12"

    def test_manual_entry_requires_patient_name(self):
        with pytest.raises(ValueError):
            ManualEntryForm(patient_name="   ")
