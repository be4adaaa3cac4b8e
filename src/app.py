"""
Clinic front office - Billing from surgical reports
Main Streamlit Application with Sidebar Navigation

Modules:
1. Facturación (surgical report ingestion and billing export)
2. Turnos (booking and appointment list)
3. Catálogos y tarifas
"""

import sys
from pathlib import Path

import streamlit as st

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.utils.config import get_settings
from src.utils.errors import ConfigurationError
from src.utils.logging_config import configure_logging
from src.utils.text_extractor import configure_tesseract

# Page configuration
st.set_page_config(
    page_title="Consultorio - Facturación",
    page_icon="🏥",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Configuration is validated once; without it nothing can reach the backend
try:
    settings = get_settings()
except ConfigurationError as e:
    st.error(f"Configuración inválida: {e}")
    st.stop()

configure_logging(settings.log_level)
configure_tesseract(settings.tesseract_cmd)

with st.sidebar:
    st.header("🔄 Secciones")

    module_choice = st.radio(
        "Ir a:",
        ["📄 Facturación", "🗓️ Turnos", "🗂️ Catálogos y tarifas"],
        index=0
    )

    st.markdown("---")
    st.caption(f"Servidor: {settings.api_base_url}")

if module_choice == "📄 Facturación":
    from src.modules import billing_module
    billing_module.render(settings)
elif module_choice == "🗓️ Turnos":
    from src.modules import appointments_module
    appointments_module.render(settings)
else:
    from src.modules import catalog_module
    catalog_module.render(settings)
