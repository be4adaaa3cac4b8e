"""
Backend Client
JSON-over-HTTP access to the clinic backend (appointments, doctors, studies,
insurers and tarifas). Storage and slot-conflict rules live on the server.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from src.models.schemas import (
    Appointment,
    Doctor,
    ObraSocial,
    ReferenceSnapshot,
    Study,
    Tarifa
)
from src.utils.config import Settings
from src.utils.errors import AppointmentConflictError, BackendError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class BackendClient:
    """
    Thin client over the backend REST API

    Each collection supports list/create/update/delete; appointments
    support list and create.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        """
        Args:
            settings: Validated settings (base URL and timeout)
            session: Optional requests session (a new one by default)
        """
        self.base_url = settings.api_base_url
        self.timeout = settings.request_timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    # ------------------------------------------------------------------
    # Low level
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        payload: Optional[Dict] = None
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.info("API request", extra={"method": method, "url": url})

        try:
            response = self.session.request(
                method, url, params=params, json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise BackendError(f"No se pudo conectar con el servidor: {e}") from e

        if not response.ok:
            raise self._error_from_response(response)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(
                f"Respuesta inválida del servidor en {path}",
                status_code=response.status_code
            ) from e

    @staticmethod
    def _error_from_response(response: requests.Response) -> BackendError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        message = body.get("message") or f"Error {response.status_code}: {response.reason}"
        return BackendError(
            message,
            status_code=response.status_code,
            code=body.get("code"),
            reason=body.get("reason")
        )

    def _list(self, path: str, key: str, model: Type[M], params: Optional[Dict] = None) -> List[M]:
        data = self._request("GET", path, params=params) or {}
        if not isinstance(data, dict) or not isinstance(data.get(key, []), list):
            raise BackendError(f"Respuesta inesperada del servidor en {path}: falta la lista '{key}'")

        try:
            return [model.model_validate(item) for item in data.get(key, [])]
        except ValidationError as e:
            logger.warning("Invalid rows from backend", extra={"path": path, "errors": e.error_count()})
            raise BackendError(f"Datos inválidos recibidos de {path}") from e

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def list_appointments(self, date_from: str, date_to: str, doctor_id: Optional[str] = None) -> List[Appointment]:
        params = {"from": date_from, "to": date_to}
        if doctor_id:
            params["doctorId"] = doctor_id
        return self._list("/appointments", "appointments", Appointment, params=params)

    def create_appointment(self, payload: Dict) -> Any:
        """
        Book an appointment

        Raises:
            AppointmentConflictError: If the slot is already taken (HTTP 409)
            BackendError: For any other failure
        """
        try:
            return self._request("POST", "/appointments", payload=payload)
        except BackendError as e:
            if e.status_code == 409:
                raise AppointmentConflictError(
                    str(e), status_code=409, code=e.code, reason=e.reason
                ) from e
            raise

    # ------------------------------------------------------------------
    # Doctors
    # ------------------------------------------------------------------

    def list_doctors(self, only_active: bool = True) -> List[Doctor]:
        doctors = self._list("/doctors", "doctors", Doctor)
        return [d for d in doctors if d.active] if only_active else doctors

    def create_doctor(self, data: Dict) -> Any:
        return self._request("POST", "/doctors", payload=data)

    def update_doctor(self, doctor_id: str, data: Dict) -> Any:
        return self._request("PUT", f"/doctors/{doctor_id}", payload=data)

    def delete_doctor(self, doctor_id: str) -> Any:
        return self._request("DELETE", f"/doctors/{doctor_id}")

    # ------------------------------------------------------------------
    # Studies
    # ------------------------------------------------------------------

    def list_studies(self, only_active: bool = True) -> List[Study]:
        studies = self._list("/studies", "studies", Study)
        return [s for s in studies if s.active] if only_active else studies

    def create_study(self, data: Dict) -> Any:
        return self._request("POST", "/studies", payload=data)

    def update_study(self, study_id: str, data: Dict) -> Any:
        return self._request("PUT", f"/studies/{study_id}", payload=data)

    def delete_study(self, study_id: str) -> Any:
        return self._request("DELETE", f"/studies/{study_id}")

    # ------------------------------------------------------------------
    # Obras sociales
    # ------------------------------------------------------------------

    def list_obras_sociales(self, only_active: bool = True) -> List[ObraSocial]:
        obras_sociales = self._list("/obras-sociales", "obrasSociales", ObraSocial)
        return [os for os in obras_sociales if os.activa] if only_active else obras_sociales

    def create_obra_social(self, data: Dict) -> Any:
        return self._request("POST", "/obras-sociales", payload=data)

    def update_obra_social(self, obra_social_id: str, data: Dict) -> Any:
        return self._request("PUT", f"/obras-sociales/{obra_social_id}", payload=data)

    def delete_obra_social(self, obra_social_id: str) -> Any:
        return self._request("DELETE", f"/obras-sociales/{obra_social_id}")

    # ------------------------------------------------------------------
    # Tarifas
    # ------------------------------------------------------------------

    def list_tarifas(self) -> List[Tarifa]:
        return self._list("/tarifas", "tarifas", Tarifa)

    def create_tarifa(self, data: Dict) -> Any:
        return self._request("POST", "/tarifas", payload=data)

    def update_tarifa(self, tarifa_id: str, data: Dict) -> Any:
        return self._request("PUT", f"/tarifas/{tarifa_id}", payload=data)

    def delete_tarifa(self, tarifa_id: str) -> Any:
        return self._request("DELETE", f"/tarifas/{tarifa_id}")

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def fetch_reference_snapshot(self) -> ReferenceSnapshot:
        """Read active doctors, studies, insurers and every tarifa"""
        return ReferenceSnapshot(
            doctors=self.list_doctors(),
            studies=self.list_studies(),
            obras_sociales=self.list_obras_sociales(),
            tarifas=self.list_tarifas(),
        )
