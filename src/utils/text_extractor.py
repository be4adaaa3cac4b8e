"""
Text extraction utilities for uploaded surgical reports
Uses pdfplumber for the embedded text layer of PDFs and Tesseract OCR for images
"""

import io
import logging
from typing import Callable, List, Optional

import pdfplumber
import pytesseract
from PIL import Image, ImageSequence, UnidentifiedImageError

from src.models.schemas import UploadedDocument
from src.utils.errors import ExtractionFailure, UnsupportedFileType

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

PDF_CONTENT_TYPE = "application/pdf"
IMAGE_CONTENT_PREFIX = "image/"


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at a Tesseract binary outside PATH"""
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


def _report(on_progress: Optional[ProgressCallback], percent: int) -> None:
    if on_progress is not None:
        on_progress(max(0, min(100, int(percent))))


def is_pdf(document: UploadedDocument) -> bool:
    return (
        document.content_type == PDF_CONTENT_TYPE
        or document.name.lower().endswith(".pdf")
    )


def is_image(document: UploadedDocument) -> bool:
    return document.content_type.startswith(IMAGE_CONTENT_PREFIX)


def extract_text_from_pdf(pdf_bytes: bytes) -> str:
    """
    Extract the embedded text layer from a PDF using pdfplumber

    Words on a page are joined with single spaces, pages with newlines.
    Scanned PDFs without a text layer give an empty string.

    Args:
        pdf_bytes: PDF file as bytes

    Returns:
        Extracted text as string

    Raises:
        ExtractionFailure: If the bytes are not a readable PDF
    """
    page_texts: List[str] = []

    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            for page in pdf.pages:
                words = page.extract_words()
                page_texts.append(" ".join(word["text"] for word in words))
    except Exception as e:
        raise ExtractionFailure(
            "No se pudo leer el PDF (archivo dañado o protegido)",
            detail=str(e)
        ) from e

    text = "\n".join(page_texts)
    if not text.strip():
        return ""
    return text


def extract_text_from_image(
    image_bytes: bytes,
    on_progress: Optional[ProgressCallback] = None,
    language: str = "spa"
) -> str:
    """
    Run Tesseract OCR over every frame of an image

    Progress is reported per frame, not within a frame: a single-page
    image reports 0 and then 100; a 4-page TIFF reports 0, 25, 50, 75, 100.

    Args:
        image_bytes: Image file as bytes (JPG, PNG, multi-page TIFF...)
        on_progress: Called with 0 first, then with the share of frames
            recognised so far (ends at 100)
        language: Tesseract language code

    Returns:
        Recognised text, frames joined with newlines

    Raises:
        ExtractionFailure: If the image cannot be decoded, exceeds Pillow's
            pixel limit, or OCR fails
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))
        frames = [frame.convert("RGB") for frame in ImageSequence.Iterator(image)]
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ExtractionFailure("No se pudo abrir la imagen", detail=str(e)) from e

    _report(on_progress, 0)

    texts = []
    for index, frame in enumerate(frames, start=1):
        try:
            texts.append(pytesseract.image_to_string(frame, lang=language))
        except (pytesseract.TesseractError, OSError, RuntimeError) as e:
            raise ExtractionFailure(
                "Falló el reconocimiento de texto (OCR)",
                detail=str(e)
            ) from e
        _report(on_progress, round(index * 100 / len(frames)))

    return "\n".join(texts)


def extract_text(
    document: UploadedDocument,
    on_progress: Optional[ProgressCallback] = None,
    language: str = "spa"
) -> str:
    """
    Route an uploaded file to PDF or image extraction

    PDF extraction is reported as two snapshots (10 then 100); OCR reports
    as recognition advances.

    Raises:
        UnsupportedFileType: If the file is neither a PDF nor an image
        ExtractionFailure: If the extractor cannot process the file
    """
    if is_pdf(document):
        _report(on_progress, 10)
        text = extract_text_from_pdf(document.data)
        _report(on_progress, 100)
    elif is_image(document):
        text = extract_text_from_image(document.data, on_progress, language=language)
    else:
        raise UnsupportedFileType(
            f'Tipo de archivo no soportado en "{document.name}": '
            f'{document.content_type or "desconocido"}. Usá PDF o imagen (JPG, PNG).'
        )

    logger.info(
        "Extracted text from document",
        extra={"file_name": document.name, "chars": len(text)}
    )
    return text
