"""
Ingestion Service (Orchestrator)
Runs each uploaded surgical report through the extraction pipeline

For every file, in upload order:
1. Text extraction (PDF text layer or OCR)
2. Field parsing
3. Reference matching (surgeon, practice, insurer)
4. Price lookup
"""

import logging
from typing import Callable, Iterable, Optional

from src.models.schemas import (
    BatchResult,
    BatchState,
    DocumentEntry,
    FileError,
    IngestionProgress,
    ManualEntryForm,
    ReferenceSnapshot,
    UploadedDocument
)
from src.services.field_parser import parse_document
from src.services.price_resolver import resolve_price
from src.services.reference_matcher import match_doctor, match_obra_social, match_study
from src.utils.errors import DocumentProcessingError
from src.utils.field_patterns import FieldPatternTable
from src.utils.text_extractor import ProgressCallback, extract_text

logger = logging.getLogger(__name__)

BatchProgressCallback = Callable[[IngestionProgress], None]

MANUAL_FILE_NAME = "(manual)"


class IngestionService:
    """
    Main orchestration service for billing document ingestion

    The reference snapshot is fixed for the lifetime of the service: build a
    new service (with a fresh snapshot) for each batch.
    """

    def __init__(
        self,
        snapshot: ReferenceSnapshot,
        pattern_table: Optional[FieldPatternTable] = None,
        ocr_language: str = "spa"
    ):
        """
        Args:
            snapshot: Doctors, studies, insurers and tarifas read before the batch
            pattern_table: Field patterns (defaults to the built-in table)
            ocr_language: Tesseract language for image uploads
        """
        self.snapshot = snapshot
        self.pattern_table = pattern_table
        self.ocr_language = ocr_language
        self.progress = IngestionProgress()

    @property
    def state(self) -> BatchState:
        return self.progress.state

    def process_document(
        self,
        document: UploadedDocument,
        on_progress: Optional[ProgressCallback] = None
    ) -> DocumentEntry:
        """
        Run the full pipeline on one file

        Raises:
            UnsupportedFileType: If the file is neither PDF nor image
            ExtractionFailure: If text extraction fails
        """
        text = extract_text(document, on_progress=on_progress, language=self.ocr_language)
        parsed = parse_document(text, self.pattern_table)

        doctor_id = match_doctor(parsed.surgeon, self.snapshot.doctors)
        study_id = match_study(parsed.practice, self.snapshot.studies)
        obra_social_id = match_obra_social(parsed.insurance, self.snapshot.obras_sociales)

        return DocumentEntry(
            **parsed.model_dump(),
            file_name=document.name,
            doctor_id=doctor_id,
            study_id=study_id,
            obra_social_id=obra_social_id,
            precio=resolve_price(study_id, obra_social_id, self.snapshot.tarifas),
        )

    def process_batch(
        self,
        documents: Iterable[UploadedDocument],
        on_progress: Optional[BatchProgressCallback] = None
    ) -> BatchResult:
        """
        Process files one at a time, in order

        A file that fails is recorded in BatchResult.errors and the batch
        continues with the next one.

        Args:
            documents: Uploaded files
            on_progress: Receives an IngestionProgress on every state change

        Returns:
            BatchResult with one entry per successful file
        """
        documents = list(documents)
        total = len(documents)
        result = BatchResult()

        for index, document in enumerate(documents, start=1):
            self._set_progress(
                on_progress,
                state=BatchState.PROCESSING,
                file_index=index,
                total_files=total,
                file_name=document.name,
                percent=0
            )

            def report(percent: int) -> None:
                self._set_progress(on_progress, percent=percent)

            try:
                entry = self.process_document(document, on_progress=report)
            except DocumentProcessingError as e:
                logger.warning(
                    "Document processing failed",
                    extra={"file_name": document.name, "kind": e.kind.value, "detail": e.detail}
                )
                result.errors.append(FileError(
                    file_name=document.name,
                    kind=e.kind,
                    message=f'Error al procesar "{document.name}": {e.message}'
                ))
                continue

            result.entries.append(entry)

        self._set_progress(on_progress, state=BatchState.IDLE, file_index=0,
                           total_files=0, file_name="", percent=0)

        logger.info(
            "Batch finished",
            extra={"files": total, "entries": len(result.entries), "errors": len(result.errors)}
        )
        return result

    def build_manual_entry(self, form: ManualEntryForm) -> DocumentEntry:
        """
        Create an entry without a document

        Only the values typed by the user are filled; the chosen doctor's name
        stands in for the surgeon.
        """
        return DocumentEntry(
            file_name=MANUAL_FILE_NAME,
            patient_name=form.patient_name,
            carnet=form.carnet.strip(),
            age=form.age.strip(),
            surgeon=self.snapshot.doctor_name(form.doctor_id),
            date=form.date,
            doctor_id=form.doctor_id,
            study_id=form.study_id,
            obra_social_id=form.obra_social_id,
            precio=resolve_price(form.study_id, form.obra_social_id, self.snapshot.tarifas),
        )

    def _set_progress(self, on_progress: Optional[BatchProgressCallback], **changes) -> None:
        self.progress = self.progress.model_copy(update=changes)
        if on_progress is not None:
            on_progress(self.progress)
