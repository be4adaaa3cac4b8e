"""
Billing Module
Upload surgical reports, review the extracted fields and export the billing sheet
"""

import streamlit as st
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from pydantic import ValidationError

from src.models.schemas import IngestionProgress, ManualEntryForm, ReferenceSnapshot, UploadedDocument
from src.services.backend_client import BackendClient
from src.services.billing_export import export_file_name, export_to_excel_bytes
from src.services.entry_list import EntryList
from src.services.ingestion_service import IngestionService
from src.utils.config import Settings
from src.utils.data_loader import load_field_patterns
from src.utils.errors import BackendError

UPLOAD_TYPES = ["pdf", "png", "jpg", "jpeg", "tif", "tiff", "bmp", "webp"]


def format_price(precio):
    """Unpriced entries read "sin tarifa", never $0"""
    if precio is None:
        return "⚠️ sin tarifa"
    return f"$ {precio:,.2f}"


def _init_state():
    if 'billing_entries' not in st.session_state:
        st.session_state.billing_entries = EntryList()
    if 'billing_snapshot' not in st.session_state:
        st.session_state.billing_snapshot = ReferenceSnapshot()
    if 'billing_snapshot_loaded' not in st.session_state:
        st.session_state.billing_snapshot_loaded = False
    if 'billing_errors' not in st.session_state:
        st.session_state.billing_errors = []


def refresh_snapshot(client: BackendClient) -> ReferenceSnapshot:
    """Fetch reference data and reprice the current entries"""
    snapshot = client.fetch_reference_snapshot()
    st.session_state.billing_snapshot = snapshot
    st.session_state.billing_snapshot_loaded = True
    st.session_state.billing_entries.replace_tarifas(snapshot.tarifas)
    return snapshot


def load_reference_data(client: BackendClient) -> bool:
    """
    Fetch the catalogs on the first render of the session

    A failed fetch is retried on the next rerun.
    """
    if st.session_state.billing_snapshot_loaded:
        return True
    try:
        refresh_snapshot(client)
    except BackendError as e:
        st.error(f"No se pudieron cargar los catálogos: {e}")
        return False
    return True


def _on_entry_edit(entry_id, field):
    value = st.session_state[f"{entry_id}_{field}"]
    st.session_state.billing_entries.update_entry(entry_id, field, value)


def _id_selectbox(label, options, entry, field):
    """Selector over {id: name}; "" means unresolved"""
    ids = [""] + list(options.keys())
    current = getattr(entry, field)
    if current not in ids:
        ids.append(current)
    st.selectbox(
        label,
        options=ids,
        index=ids.index(current),
        format_func=lambda i: options.get(i, "— Seleccionar —") if i else "— Seleccionar —",
        key=f"{entry.id}_{field}",
        on_change=_on_entry_edit,
        args=(entry.id, field)
    )


def _text_input(label, entry, field):
    st.text_input(
        label,
        value=getattr(entry, field),
        key=f"{entry.id}_{field}",
        on_change=_on_entry_edit,
        args=(entry.id, field)
    )


def process_uploads(settings: Settings, client: BackendClient, uploaded_files):
    """Run the batch with a snapshot taken right before it starts"""
    try:
        snapshot = refresh_snapshot(client)
    except BackendError as e:
        st.error(f"No se pudieron cargar los catálogos: {e}")
        return

    service = IngestionService(
        snapshot,
        pattern_table=load_field_patterns(settings.field_patterns_file),
        ocr_language=settings.ocr_language
    )

    status = st.empty()
    bar = st.progress(0)

    def on_progress(progress: IngestionProgress):
        if progress.file_name:
            status.markdown(
                f"Procesando ({progress.file_index}/{progress.total_files}): **{progress.file_name}**"
            )
        bar.progress(progress.percent)

    documents = [
        UploadedDocument(name=f.name, content_type=f.type or "", data=f.getvalue())
        for f in uploaded_files
    ]
    result = service.process_batch(documents, on_progress=on_progress)

    status.empty()
    bar.empty()

    st.session_state.billing_entries.extend(result.entries)
    st.session_state.billing_errors = [error.message for error in result.errors]

    if result.entries:
        st.success(f"✓ {len(result.entries)} documento(s) procesado(s)")


def render_manual_entry(snapshot: ReferenceSnapshot):
    with st.expander("✍️ Ingreso manual"):
        with st.form("manual_entry_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            doctors = {d.doctor_id: d.name for d in snapshot.doctors}
            studies = {s.study_id: s.name for s in snapshot.studies}
            obras_sociales = {o.obra_social_id: o.nombre for o in snapshot.obras_sociales}

            with col1:
                patient_name = st.text_input("Paciente *", placeholder="Nombre del paciente")
                obra_social_id = st.selectbox(
                    "Obra Social", [""] + list(obras_sociales),
                    format_func=lambda i: obras_sociales.get(i, "Seleccionar O.S.")
                )
                carnet = st.text_input("Nro. afiliado")
                age = st.text_input("Edad")

            with col2:
                doctor_id = st.selectbox(
                    "Médico/a", [""] + list(doctors),
                    format_func=lambda i: doctors.get(i, "Seleccionar médico")
                )
                study_id = st.selectbox(
                    "Estudio", [""] + list(studies),
                    format_func=lambda i: studies.get(i, "Seleccionar estudio")
                )
                entry_date = st.text_input("Fecha", placeholder="dd/mm/aaaa")

            submitted = st.form_submit_button("Agregar")

        if submitted:
            try:
                form = ManualEntryForm(
                    patient_name=patient_name,
                    obra_social_id=obra_social_id,
                    carnet=carnet,
                    age=age,
                    doctor_id=doctor_id,
                    study_id=study_id,
                    date=entry_date
                )
            except ValidationError:
                st.error("Ingresá el nombre del paciente.")
                return
            entry = IngestionService(snapshot).build_manual_entry(form)
            st.session_state.billing_entries.add(entry)
            st.rerun()


def render_entries(snapshot: ReferenceSnapshot):
    entries: EntryList = st.session_state.billing_entries

    st.markdown(f"### 📋 Entradas ({len(entries)})")
    if not len(entries):
        st.info("Todavía no hay entradas. Subí partes quirúrgicos o cargá una entrada manual.")
        return

    doctors = {d.doctor_id: d.name for d in snapshot.doctors}
    studies = {s.study_id: s.name for s in snapshot.studies}
    obras_sociales = {o.obra_social_id: o.nombre for o in snapshot.obras_sociales}

    for entry in list(entries):
        title = f"{entry.patient_name or '(sin nombre)'} · {entry.file_name} · {format_price(entry.precio)}"
        with st.expander(title, expanded=False):
            col1, col2, col3 = st.columns(3)
            with col1:
                _text_input("Paciente", entry, "patient_name")
                _text_input("Edad", entry, "age")
                _text_input("Fecha", entry, "date")
            with col2:
                _id_selectbox("Médico/a", doctors, entry, "doctor_id")
                st.caption(f"Extraído: {entry.surgeon or '—'}")
                _id_selectbox("Estudio", studies, entry, "study_id")
                st.caption(f"Extraído: {entry.practice or '—'}")
            with col3:
                _id_selectbox("Obra Social", obras_sociales, entry, "obra_social_id")
                st.caption(f"Extraído: {entry.insurance or '—'}")
                _text_input("Nro. afiliado", entry, "carnet")
                st.metric("Arancel", format_price(entry.precio))

            if entry.operation_description:
                st.markdown("**Descripción de la operación**")
                st.text(entry.operation_description)

            if entry.raw_text and st.checkbox("Ver texto extraído", key=f"{entry.id}_raw"):
                st.text_area("Texto", entry.raw_text, height=250, disabled=True, key=f"{entry.id}_raw_text")

            if st.button("🗑️ Quitar", key=f"{entry.id}_remove"):
                entries.remove(entry.id)
                st.rerun()

    st.metric("Total", f"$ {entries.total():,.2f}")

    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            label="📥 Exportar a Excel",
            data=export_to_excel_bytes(entries.entries, snapshot),
            file_name=export_file_name(),
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            type="primary",
            use_container_width=True
        )
    with col2:
        if st.button("Limpiar todo", use_container_width=True):
            entries.clear()
            st.session_state.billing_errors = []
            st.rerun()


def render(settings: Settings):
    """Main render function for billing module"""

    st.markdown("## 📄 Facturación - Partes Quirúrgicos")
    st.markdown("Subí PDFs o imágenes de partes quirúrgicos y se extraen los datos automáticamente.")

    _init_state()
    client = BackendClient(settings)
    load_reference_data(client)

    if st.button("🔄 Actualizar catálogos"):
        try:
            refresh_snapshot(client)
        except BackendError as e:
            st.error(f"No se pudieron cargar los catálogos: {e}")

    with st.form("upload_form", clear_on_submit=True):
        uploaded_files = st.file_uploader(
            "PDF o imágenes (JPG, PNG). Podés subir varios a la vez.",
            type=UPLOAD_TYPES,
            accept_multiple_files=True
        )
        submitted = st.form_submit_button("Procesar", type="primary")

    if submitted and uploaded_files:
        process_uploads(settings, client, uploaded_files)

    for message in st.session_state.billing_errors:
        st.error(message)

    snapshot = st.session_state.billing_snapshot
    render_manual_entry(snapshot)
    render_entries(snapshot)
