"""
Appointments Module
Book appointments and list them by doctor and day
"""

import streamlit as st
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from pydantic import ValidationError

from src.models.schemas import AppointmentRequest, ReferenceSnapshot
from src.services.appointment_service import (
    appointment_range,
    appointments_file_name,
    build_appointment_payload,
    conflict_message,
    export_appointments_to_excel_bytes,
    split_start_time,
    sort_appointments
)
from src.services.backend_client import BackendClient
from src.utils.config import Settings
from src.utils.errors import AppointmentConflictError, BackendError


def render_booking_form(client: BackendClient, snapshot: ReferenceSnapshot):
    st.markdown("### ➕ Nuevo turno")
    st.caption("Cargá un turno. Si el horario está ocupado, te avisa.")

    doctors = {d.doctor_id: f"{d.name} - {d.specialty}" for d in snapshot.doctors}
    studies = {s.study_id: f"{s.name} ({s.duration_minutes} min)" for s in snapshot.studies}

    with st.form("appointment_form"):
        col1, col2 = st.columns(2)
        with col1:
            patient_name = st.text_input("Nombre completo del paciente", placeholder="Juan Pérez")
            phone = st.text_input("Celular", placeholder="341 555-5555")
            email = st.text_input("Email", placeholder="paciente@mail.com")
            insurance = st.text_input("Obra social", placeholder="OSDE / Swiss / Particular")
        with col2:
            doctor_id = st.selectbox(
                "Médico", [""] + list(doctors),
                format_func=lambda i: doctors.get(i, "Seleccionar médico")
            )
            study_id = st.selectbox(
                "Estudio", [""] + list(studies),
                format_func=lambda i: studies.get(i, "Seleccionar estudio")
            )
            day = st.date_input("Fecha", value=None, format="DD/MM/YYYY")
            hour = st.time_input("Hora", value=None, step=1800)

        submitted = st.form_submit_button("Crear turno", type="primary")

    if not submitted:
        return

    try:
        request = AppointmentRequest(
            patient_name=patient_name,
            doctor_id=doctor_id,
            phone=phone,
            email=email,
            study_id=study_id,
            insurance=insurance,
            day=day,
            time=hour
        )
    except ValidationError:
        st.error("Completá todos los campos.")
        return

    try:
        client.create_appointment(build_appointment_payload(request, snapshot))
    except AppointmentConflictError as e:
        st.warning(conflict_message(e))
        return
    except BackendError as e:
        st.error(f"❌ {e}")
        return

    st.success("✅ Turno creado correctamente.")


def render_appointment_list(client: BackendClient, snapshot: ReferenceSnapshot):
    st.markdown("### 📅 Lista de turnos")

    doctors = {d.doctor_id: d.name for d in snapshot.doctors}
    col1, col2 = st.columns(2)
    with col1:
        doctor_id = st.selectbox(
            "Médico", [""] + list(doctors),
            format_func=lambda i: doctors.get(i, "Todos"),
            key="appointments_doctor_filter"
        )
    with col2:
        day = st.date_input("Fecha", value=None, format="DD/MM/YYYY", key="appointments_day_filter")

    date_from, date_to = appointment_range(day)
    appointments = sort_appointments(
        client.list_appointments(date_from, date_to, doctor_id=doctor_id or None)
    )

    if not appointments:
        if doctor_id or day:
            st.info("No hay turnos con los filtros seleccionados.")
        else:
            st.info("No hay turnos registrados en este mes.")
        return

    st.caption(f"{len(appointments)} turno(s) encontrado(s)")
    table = []
    for appointment in appointments:
        fecha, hora = split_start_time(appointment)
        table.append({
            "Fecha": fecha,
            "Hora": hora,
            "Paciente": appointment.patient_name,
            "Estudio": appointment.study,
            "Obra Social": appointment.insurance,
            "Teléfono": appointment.patient_phone,
            "Email": appointment.email,
            "Estado": appointment.status,
        })
    st.dataframe(table, use_container_width=True, hide_index=True)

    st.download_button(
        label="📥 Exportar Excel",
        data=export_appointments_to_excel_bytes(appointments),
        file_name=appointments_file_name(day, doctors.get(doctor_id, "")),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )


def render(settings: Settings):
    """Main render function for appointments module"""

    st.markdown("## 🗓️ Turnos")

    client = BackendClient(settings)
    try:
        snapshot = ReferenceSnapshot(doctors=client.list_doctors(), studies=client.list_studies())
        render_booking_form(client, snapshot)
        st.markdown("---")
        render_appointment_list(client, snapshot)
    except BackendError as e:
        st.error(f"No se pudo conectar con el servidor: {e}")
