"""
Unit tests for startup configuration
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from src.utils.config import load_settings
from src.utils.errors import ConfigurationError


class TestLoadSettings:
    """Test suite for load_settings"""

    def test_missing_base_url(self):
        with pytest.raises(ConfigurationError):
            load_settings({})

    def test_invalid_base_url(self):
        with pytest.raises(ConfigurationError):
            load_settings({"URL_BASE_BACKEND": "api.clinica.local"})

    def test_defaults(self):
        settings = load_settings({"URL_BASE_BACKEND": "https://api.clinica.test/prod/"})

        assert settings.api_base_url == "https://api.clinica.test/prod"
        assert settings.request_timeout == 15.0
        assert settings.ocr_language == "spa"
        assert settings.tesseract_cmd is None
        assert settings.field_patterns_file is None
        assert settings.log_level == "INFO"

    def test_optional_values(self):
        settings = load_settings({
            "URL_BASE_BACKEND": "http://localhost:3000",
            "REQUEST_TIMEOUT": "30",
            "OCR_LANGUAGE": "spa+eng",
            "TESSERACT_CMD": "/opt/tesseract/bin/tesseract",
            "LOG_LEVEL": "debug",
        })

        assert settings.request_timeout == 30.0
        assert settings.ocr_language == "spa+eng"
        assert settings.tesseract_cmd == "/opt/tesseract/bin/tesseract"
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("key,value", [("REQUEST_TIMEOUT", "-1"), ("LOG_LEVEL", "LOUD")])
    def test_invalid_optional_values(self, key, value):
        with pytest.raises(ConfigurationError):
            load_settings({"URL_BASE_BACKEND": "http://localhost:3000", key: value})
