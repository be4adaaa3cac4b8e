"""
Catalog Module
Doctors, studies, insurers and tarifas as stored in the backend
"""

import streamlit as st
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from src.services.backend_client import BackendClient
from src.utils.config import Settings
from src.utils.errors import BackendError


# ============================================================================
# PAYLOADS
# ============================================================================

def doctor_payload(name: str, specialty: str, active: bool = True) -> dict:
    """
    Raises:
        ValueError: If name or specialty is blank
    """
    if not name.strip() or not specialty.strip():
        raise ValueError("Completá nombre y especialidad.")
    return {"name": name.strip(), "specialty": specialty.strip(), "active": active}


def study_payload(name: str, duration_minutes: int, active: bool = True) -> dict:
    if not name.strip():
        raise ValueError("Completá el nombre del estudio.")
    if duration_minutes <= 0:
        raise ValueError("La duración debe ser mayor a cero.")
    return {"name": name.strip(), "durationMinutes": int(duration_minutes), "active": active}


def obra_social_payload(nombre: str, activa: bool = True) -> dict:
    if not nombre.strip():
        raise ValueError("Completá el nombre de la obra social.")
    return {"nombre": nombre.strip(), "activa": activa}


def _run(action, success_message):
    """Call the backend and report the outcome"""
    try:
        action()
    except BackendError as e:
        st.error(f"❌ Error: {e}")
        return
    st.success(success_message)
    st.rerun()


def _submit(build_payload, send, success_message):
    """Validate form values, then send them"""
    try:
        payload = build_payload()
    except ValueError as e:
        st.error(str(e))
        return
    _run(lambda: send(payload), success_message)


def _status(active: bool) -> str:
    return "Activo" if active else "Inactivo"


# ============================================================================
# TABS
# ============================================================================

def render_doctors(client: BackendClient):
    doctors = client.list_doctors(only_active=False)
    st.dataframe(
        [{"Nombre": d.name, "Especialidad": d.specialty, "Estado": _status(d.active)} for d in doctors],
        use_container_width=True
    )

    with st.form("doctor_form", clear_on_submit=True):
        st.markdown("**Nuevo médico**")
        name = st.text_input("Nombre", placeholder="Dra. García", key="new_doctor_name")
        specialty = st.text_input("Especialidad", placeholder="Oftalmología", key="new_doctor_specialty")
        active = st.checkbox("Activo", value=True, key="new_doctor_active")
        if st.form_submit_button("Crear médico"):
            _submit(lambda: doctor_payload(name, specialty, active), client.create_doctor, "✅ Médico creado.")

    if not doctors:
        return

    options = {d.doctor_id: d for d in doctors}
    selected = st.selectbox(
        "Editar o eliminar", list(options),
        format_func=lambda i: f"{options[i].name} ({_status(options[i].active)})",
        key="edit_doctor"
    )
    doctor = options[selected]

    with st.form(f"doctor_edit_{selected}"):
        name = st.text_input("Nombre", value=doctor.name, key=f"doctor_name_{selected}")
        specialty = st.text_input("Especialidad", value=doctor.specialty, key=f"doctor_specialty_{selected}")
        active = st.checkbox("Activo", value=doctor.active, key=f"doctor_active_{selected}")
        if st.form_submit_button("Actualizar"):
            _submit(
                lambda: doctor_payload(name, specialty, active),
                lambda payload: client.update_doctor(selected, payload),
                "✅ Médico actualizado."
            )

    if st.button("🗑️ Eliminar", key="delete_doctor_btn"):
        _run(lambda: client.delete_doctor(selected), "✅ Médico eliminado.")


def render_studies(client: BackendClient):
    studies = client.list_studies(only_active=False)
    st.dataframe(
        [{"Nombre": s.name, "Duración (min)": s.duration_minutes, "Estado": _status(s.active)} for s in studies],
        use_container_width=True
    )

    with st.form("study_form", clear_on_submit=True):
        st.markdown("**Nuevo estudio**")
        name = st.text_input("Nombre", key="new_study_name")
        duration = st.number_input("Duración (minutos)", min_value=5, value=30, step=5, key="new_study_duration")
        active = st.checkbox("Activo", value=True, key="new_study_active")
        if st.form_submit_button("Crear estudio"):
            _submit(lambda: study_payload(name, int(duration), active), client.create_study, "✅ Estudio creado.")

    if not studies:
        return

    options = {s.study_id: s for s in studies}
    selected = st.selectbox(
        "Editar o eliminar", list(options),
        format_func=lambda i: f"{options[i].name} ({_status(options[i].active)})",
        key="edit_study"
    )
    study = options[selected]

    with st.form(f"study_edit_{selected}"):
        name = st.text_input("Nombre", value=study.name, key=f"study_name_{selected}")
        duration = st.number_input("Duración (minutos)", min_value=5, value=max(study.duration_minutes, 5), step=5,
                                   key=f"study_duration_{selected}")
        active = st.checkbox("Activo", value=study.active, key=f"study_active_{selected}")
        if st.form_submit_button("Actualizar"):
            _submit(
                lambda: study_payload(name, int(duration), active),
                lambda payload: client.update_study(selected, payload),
                "✅ Estudio actualizado."
            )

    if st.button("🗑️ Eliminar", key="delete_study_btn"):
        _run(lambda: client.delete_study(selected), "✅ Estudio eliminado.")


def render_obras_sociales(client: BackendClient):
    obras_sociales = client.list_obras_sociales(only_active=False)
    st.dataframe(
        [{"Nombre": o.nombre, "Estado": "Activa" if o.activa else "Inactiva"} for o in obras_sociales],
        use_container_width=True
    )

    with st.form("obra_social_form", clear_on_submit=True):
        st.markdown("**Nueva obra social**")
        nombre = st.text_input("Nombre", key="new_obra_social_name")
        activa = st.checkbox("Activa", value=True, key="new_obra_social_active")
        if st.form_submit_button("Crear obra social"):
            _submit(lambda: obra_social_payload(nombre, activa), client.create_obra_social, "✅ Obra social creada.")

    if not obras_sociales:
        return

    options = {o.obra_social_id: o for o in obras_sociales}
    selected = st.selectbox(
        "Editar o eliminar", list(options),
        format_func=lambda i: f"{options[i].nombre} ({'Activa' if options[i].activa else 'Inactiva'})",
        key="edit_obra_social"
    )
    obra_social = options[selected]

    with st.form(f"obra_social_edit_{selected}"):
        nombre = st.text_input("Nombre", value=obra_social.nombre, key=f"obra_social_name_{selected}")
        activa = st.checkbox("Activa", value=obra_social.activa, key=f"obra_social_active_{selected}")
        if st.form_submit_button("Actualizar"):
            _submit(
                lambda: obra_social_payload(nombre, activa),
                lambda payload: client.update_obra_social(selected, payload),
                "✅ Obra social actualizada."
            )

    if st.button("🗑️ Eliminar", key="delete_obra_social_btn"):
        _run(lambda: client.delete_obra_social(selected), "✅ Obra social eliminada.")


def render_tarifas(client: BackendClient):
    snapshot = client.fetch_reference_snapshot()
    studies = {s.study_id: s.name for s in snapshot.studies}
    obras_sociales = {o.obra_social_id: o.nombre for o in snapshot.obras_sociales}

    st.dataframe(
        [
            {
                "Estudio": t.nombre_estudio or studies.get(t.estudio_id, t.estudio_id),
                "Obra social": t.nombre_obra_social or obras_sociales.get(t.obra_social_id, t.obra_social_id),
                "Precio": t.precio,
            }
            for t in snapshot.tarifas
        ],
        use_container_width=True
    )

    if not studies or not obras_sociales:
        st.info("Cargá estudios y obras sociales antes de configurar tarifas.")
        return

    with st.form("tarifa_form", clear_on_submit=True):
        estudio_id = st.selectbox("Estudio", list(studies), format_func=studies.get)
        obra_social_id = st.selectbox("Obra social", list(obras_sociales), format_func=obras_sociales.get)
        precio = st.number_input("Precio", min_value=0.0, step=100.0)
        submitted = st.form_submit_button("Guardar tarifa")

    if submitted:
        payload = {"estudioId": estudio_id, "obraSocialId": obra_social_id, "precio": float(precio)}
        existing = next(
            (t for t in snapshot.tarifas if t.estudio_id == estudio_id and t.obra_social_id == obra_social_id),
            None
        )
        # One tarifa per (study, insurer) pair
        if existing:
            _run(lambda: client.update_tarifa(existing.tarifa_id, payload), "Tarifa actualizada")
        else:
            _run(lambda: client.create_tarifa(payload), "Tarifa creada")

    if snapshot.tarifas:
        options = {
            t.tarifa_id: f"{studies.get(t.estudio_id, t.estudio_id)} / {obras_sociales.get(t.obra_social_id, t.obra_social_id)}"
            for t in snapshot.tarifas
        }
        selected = st.selectbox("Eliminar tarifa", list(options), format_func=options.get, key="delete_tarifa")
        if st.button("Eliminar", key="delete_tarifa_btn"):
            _run(lambda: client.delete_tarifa(selected), "Tarifa eliminada")


def render(settings: Settings):
    """Main render function for catalog module"""

    st.markdown("## 🗂️ Catálogos y tarifas")

    client = BackendClient(settings)
    tab_doctors, tab_studies, tab_os, tab_tarifas = st.tabs(
        ["Médicos", "Estudios", "Obras sociales", "Tarifas"]
    )

    try:
        with tab_doctors:
            render_doctors(client)
        with tab_studies:
            render_studies(client)
        with tab_os:
            render_obras_sociales(client)
        with tab_tarifas:
            render_tarifas(client)
    except BackendError as e:
        st.error(f"No se pudo conectar con el servidor: {e}")
