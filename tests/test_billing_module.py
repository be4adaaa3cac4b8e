"""
Unit tests for the billing screen's reference data loading
Streamlit is replaced by a mock; session state is a plain attribute dict
"""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from unittest.mock import MagicMock, patch
from src.models.schemas import Doctor, DocumentEntry, ReferenceSnapshot, Tarifa
from src.modules import billing_module
from src.services.entry_list import EntryList
from src.utils.errors import BackendError


class SessionState(dict):
    """Mimics st.session_state: item and attribute access"""

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __setattr__(self, name, value):
        self[name] = value


class TestLoadReferenceData:
    """Test suite for load_reference_data"""

    def setup_method(self):
        self.st = MagicMock()
        self.st.session_state = SessionState()
        self.client = MagicMock()
        self.snapshot = ReferenceSnapshot(
            doctors=[Doctor(doctorId="d1", name="ALVAREZ JUAN")],
            tarifas=[Tarifa(tarifaId="t1", estudioId="s1", obraSocialId="os1", precio=900)],
        )
        self.client.fetch_reference_snapshot.return_value = self.snapshot

    def test_first_render_fetches_catalogs(self):
        with patch.object(billing_module, "st", self.st):
            billing_module._init_state()
            assert billing_module.load_reference_data(self.client) is True

        assert self.st.session_state.billing_snapshot is self.snapshot
        assert self.st.session_state.billing_snapshot_loaded is True
        self.client.fetch_reference_snapshot.assert_called_once()

    def test_later_renders_reuse_snapshot(self):
        with patch.object(billing_module, "st", self.st):
            billing_module._init_state()
            billing_module.load_reference_data(self.client)
            billing_module.load_reference_data(self.client)

        self.client.fetch_reference_snapshot.assert_called_once()

    def test_backend_down_shows_error_and_retries(self):
        self.client.fetch_reference_snapshot.side_effect = [BackendError("sin conexión"), self.snapshot]

        with patch.object(billing_module, "st", self.st):
            billing_module._init_state()
            assert billing_module.load_reference_data(self.client) is False
            assert self.st.session_state.billing_snapshot_loaded is False
            assert billing_module.load_reference_data(self.client) is True

        self.st.error.assert_called_once()
        assert self.st.session_state.billing_snapshot is self.snapshot

    def test_refresh_reprices_existing_entries(self):
        entries = EntryList()
        entries.add(DocumentEntry(patient_name="GOMEZ", study_id="s1", obra_social_id="os1"))
        self.st.session_state.billing_entries = entries

        with patch.object(billing_module, "st", self.st):
            billing_module._init_state()
            billing_module.load_reference_data(self.client)

        assert entries.total() == 900


class TestFormatPrice:

    def test_unpriced(self):
        assert "sin tarifa" in billing_module.format_price(None)

    def test_zero_is_a_price(self):
        assert billing_module.format_price(0) == "$ 0.00"
