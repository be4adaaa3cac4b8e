"""
Unit tests for the Text Extractor
PDFs are generated with reportlab; Tesseract calls are mocked
"""

import sys
from io import BytesIO
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
import pytesseract
from unittest.mock import patch
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from src.models.schemas import UploadedDocument
from src.utils.errors import ErrorKind, ExtractionFailure, UnsupportedFileType
from src.utils.text_extractor import (
    extract_text,
    extract_text_from_image,
    extract_text_from_pdf
)


def make_pdf(pages):
    """Build a PDF with one list of lines per page"""
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    for lines in pages:
        y = 780
        for line in lines:
            pdf.drawString(72, y, line)
            y -= 20
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def make_image(fmt="PNG", frames=1):
    buffer = BytesIO()
    images = [Image.new("RGB", (64, 32), "white") for _ in range(frames)]
    if frames > 1:
        images[0].save(buffer, format=fmt, save_all=True, append_images=images[1:])
    else:
        images[0].save(buffer, format=fmt)
    return buffer.getvalue()


class TestPdfExtraction:
    """Test suite for extract_text_from_pdf"""

    def test_pages_joined_by_newline(self):
        pdf_bytes = make_pdf([["Apellido y Nombre: GOMEZ MARIA"], ["Edad: 54"]])

        text = extract_text_from_pdf(pdf_bytes)

        assert text == "Apellido y Nombre: GOMEZ MARIA\nEdad: 54"

    def test_words_joined_by_single_space(self):
        pdf_bytes = make_pdf([["Cirujano: ALVAREZ", "JUAN"]])

        assert extract_text_from_pdf(pdf_bytes) == "Cirujano: ALVAREZ JUAN"

    def test_pdf_without_text_layer(self):
        """Scanned PDFs give empty text, not an error"""
        assert extract_text_from_pdf(make_pdf([[], []])) == ""

    def test_corrupt_pdf(self):
        with pytest.raises(ExtractionFailure) as exc_info:
            extract_text_from_pdf(b"this is not a pdf")

        assert exc_info.value.kind == ErrorKind.EXTRACTION_FAILURE
        assert exc_info.value.detail


class TestImageExtraction:
    """Test suite for extract_text_from_image"""

    @patch("src.utils.text_extractor.pytesseract.image_to_string")
    def test_single_frame(self, ocr_mock):
        ocr_mock.return_value = "Edad: 54"
        progress = []

        text = extract_text_from_image(make_image(), on_progress=progress.append)

        assert text == "Edad: 54"
        assert progress == [0, 100]
        assert ocr_mock.call_args.kwargs["lang"] == "spa"

    @patch("src.utils.text_extractor.pytesseract.image_to_string")
    def test_multi_frame_progress(self, ocr_mock):
        ocr_mock.side_effect = ["pagina 1", "pagina 2"]
        progress = []

        text = extract_text_from_image(make_image("TIFF", frames=2), on_progress=progress.append)

        assert text == "pagina 1\npagina 2"
        assert progress == [0, 50, 100]

    def test_unreadable_image(self):
        with pytest.raises(ExtractionFailure):
            extract_text_from_image(b"not an image")

    @patch.object(Image, "MAX_IMAGE_PIXELS", 500)
    def test_image_over_pixel_limit(self):
        # 64x32 is more than twice the limit, so Pillow refuses to open it
        with pytest.raises(ExtractionFailure) as exc_info:
            extract_text_from_image(make_image())

        assert exc_info.value.kind == ErrorKind.EXTRACTION_FAILURE

    @patch("src.utils.text_extractor.pytesseract.image_to_string")
    def test_ocr_engine_failure(self, ocr_mock):
        ocr_mock.side_effect = pytesseract.TesseractError(1, "failed loading language 'spa'")

        with pytest.raises(ExtractionFailure) as exc_info:
            extract_text_from_image(make_image())

        assert "spa" in exc_info.value.detail


class TestDispatch:
    """Test suite for extract_text routing"""

    def test_pdf_by_content_type(self):
        document = UploadedDocument(name="parte", content_type="application/pdf", data=make_pdf([["Edad: 54"]]))
        progress = []

        assert extract_text(document, on_progress=progress.append) == "Edad: 54"
        assert progress == [10, 100]

    def test_pdf_by_extension(self):
        document = UploadedDocument(name="PARTE.PDF", content_type="", data=make_pdf([["Edad: 54"]]))
        assert extract_text(document) == "Edad: 54"

    @patch("src.utils.text_extractor.pytesseract.image_to_string", return_value="O Social: IOMA")
    def test_image_by_content_type(self, ocr_mock):
        document = UploadedDocument(name="scan.jpg", content_type="image/jpeg", data=make_image("JPEG"))

        assert extract_text(document, language="eng") == "O Social: IOMA"
        assert ocr_mock.call_args.kwargs["lang"] == "eng"

    def test_unsupported_type_names_file_and_type(self):
        document = UploadedDocument(name="notas.txt", content_type="text/plain", data=b"hola")

        with pytest.raises(UnsupportedFileType) as exc_info:
            extract_text(document)

        assert "notas.txt" in str(exc_info.value)
        assert "text/plain" in str(exc_info.value)
        assert exc_info.value.kind == ErrorKind.UNSUPPORTED_FILE_TYPE
