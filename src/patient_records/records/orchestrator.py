"""Record editor: load, validate and save one patient record.

The editor owns a RecordForm and moves through these states:

    IDLE -> LOADING (edit only) -> EDITING -> VALIDATING -> SAVING -> DONE | FAILED

Saving issues three requests in a fixed order, each finishing before the
next starts: patient, then current address, then the active health detail.
Nothing is rolled back when a later step fails. Identities returned by
create calls are kept on the form, so retrying after a partial failure
updates the records that were already created instead of duplicating them.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional

from patient_records.logging_audit import log_audit_event
from patient_records.models.patient import (
    HealthType,
    Patient,
    PersonalInfo,
    detect_health_type,
)
from patient_records.models.record import RecordForm
from patient_records.records.address_reconciler import reconcile_address
from patient_records.records.detail_mapper import (
    detail_from_api,
    detail_to_api,
    format_date_for_input,
    select_detail_payload,
    to_iso_datetime,
)
from patient_records.records.validators import validate_record
from patient_records.transport.api_client import PatientRecordsClient
from patient_records.utils.exceptions import ApiError, PatientRecordsError

logger = logging.getLogger(__name__)


class EditorState(Enum):
    """Lifecycle state of a RecordEditor."""

    IDLE = "idle"
    LOADING = "loading"
    EDITING = "editing"
    VALIDATING = "validating"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"


class SaveStep(str, Enum):
    """Persistence steps of a save, in execution order."""

    PATIENT = "patient"
    ADDRESS = "address"
    HEALTH_DETAIL = "health_detail"


def _created_identity(result: Any, key: str) -> Optional[int]:
    if isinstance(result, dict):
        return result.get(key) or result.get("id") or None
    return None


class RecordEditor:
    """Create or edit one patient record against the REST API.

    Attributes:
        client: API client used for every request
        on_saved: Called with no arguments after a successful save
        state: Current EditorState
        form: Record form being edited
        errors: Field name -> message from the last validation
        load_warnings: Non-fatal problems met while loading
        last_error: Exception that moved the editor to FAILED
        failed_step: Save step that raised, if the failure happened while saving
        completed_steps: Save steps that succeeded during the last save attempt
        load_failed: The patient lookup in ``load`` failed; the form is not
            editable and a new editor must be opened

    Example:
        >>> editor = RecordEditor(client, on_saved=roster.refresh)
        >>> editor.load(42)
        >>> editor.form.address.town = "Leeds"
        >>> if not editor.save():
        ...     print(editor.errors or editor.last_error)
    """

    def __init__(
        self,
        client: PatientRecordsClient,
        on_saved: Optional[Callable[[], None]] = None,
    ) -> None:
        self.client = client
        self.on_saved = on_saved
        self.state = EditorState.IDLE
        self.form = RecordForm()
        self.errors: dict[str, str] = {}
        self.load_warnings: list[str] = []
        self.last_error: Optional[Exception] = None
        self.failed_step: Optional[SaveStep] = None
        self.completed_steps: list[SaveStep] = []
        self.load_failed = False

    def _require_state(self, *allowed: EditorState) -> None:
        if self.state not in allowed:
            raise RuntimeError(
                f"Operation not allowed while editor is {self.state.value}; "
                f"expected one of: {', '.join(s.value for s in allowed)}"
            )

    def _require_editable(self) -> None:
        # A blank form left by a failed load would be saved as a new patient
        if self.load_failed:
            raise RuntimeError(
                f"Patient {self.form.patient_id} could not be loaded; "
                f"open it again in a new editor"
            )
        self._require_state(EditorState.EDITING, EditorState.FAILED)

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def start_new(self, health_type: HealthType = HealthType.MATERNITY) -> RecordForm:
        """Open the editor on a blank record.

        Args:
            health_type: Initially selected health detail form

        Returns:
            The fresh RecordForm
        """
        self._require_state(EditorState.IDLE)
        self.form = RecordForm(health_type=health_type)
        self.state = EditorState.EDITING
        logger.debug(f"Editor opened for a new {health_type.value} patient")
        return self.form

    def load(self, patient_id: int, health_type_hint: Optional[HealthType] = None) -> bool:
        """Open the editor on an existing patient.

        Loads the patient, reconciles its current address, resolves the health
        type and loads the matching health detail. Address and detail lookup
        failures are recorded in ``load_warnings`` and leave those sections
        empty; a patient lookup failure moves the editor to FAILED.

        Args:
            patient_id: Patient to edit
            health_type_hint: Health type to use when the patient record has none

        Returns:
            True when the editor reached EDITING, False when it FAILED
        """
        self._require_state(EditorState.IDLE)
        self.state = EditorState.LOADING
        self.load_warnings = []
        logger.info(f"Loading patient {patient_id}")

        try:
            patient = Patient.from_api(self.client.patients.get(patient_id))
        except PatientRecordsError as e:
            logger.error(f"Failed to load patient {patient_id}: {e}")
            self.last_error = e
            self.form = RecordForm(patient_id=patient_id)
            self.load_failed = True
            self.state = EditorState.FAILED
            return False

        form = RecordForm(
            patient_id=patient.patient_id or patient_id,
            personal=PersonalInfo(
                first_name=patient.first_name,
                last_name=patient.last_name,
                father_name=patient.father_name,
                age=patient.age,
                gender=patient.gender or PersonalInfo().gender,
                dob=format_date_for_input(patient.dob),
            ),
        )

        try:
            reconciled = reconcile_address(
                self.client.addresses.list_for_patient(patient_id), patient_id
            )
            form.address = reconciled.address
            form.address_id = reconciled.address_id
        except PatientRecordsError as e:
            self._warn(f"Could not load address for patient {patient_id}: {e}")

        if patient.health_type:
            form.health_type = detect_health_type(patient.health_type)
        elif health_type_hint is not None:
            form.health_type = health_type_hint
        else:
            form.health_type = HealthType.MATERNITY

        try:
            payload = select_detail_payload(
                self.client.details.get_for_patient(patient_id), patient_id
            )
            form.details[form.health_type] = detail_from_api(payload, form.health_type)
        except PatientRecordsError as e:
            self._warn(
                f"Could not load {form.health_type.value} details for patient {patient_id}: {e}"
            )

        self.form = form
        self.state = EditorState.EDITING
        logger.info(
            f"Patient {patient_id} loaded ({form.health_type.value}, "
            f"address {'found' if form.address_id else 'not found'})"
        )
        return True

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.load_warnings.append(message)

    def switch_health_type(self, health_type: HealthType) -> None:
        """Select another health detail form.

        The other variants keep their in-memory values; only the selected one
        is validated and submitted. Pending field errors are cleared.
        """
        self._require_editable()
        self.form.health_type = health_type
        self.errors = {}

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def save(self) -> bool:
        """Validate the form and persist patient, address and health detail.

        Returns:
            True when all three steps succeeded (state DONE). False when
            validation failed (state EDITING, see ``errors``) or a request
            failed (state FAILED, see ``last_error`` and ``failed_step``).
        """
        self._require_editable()

        self.state = EditorState.VALIDATING
        self.errors = validate_record(self.form)
        if self.errors:
            logger.info(
                f"Validation failed for {len(self.errors)} field(s): "
                f"{', '.join(sorted(self.errors))}"
            )
            self.state = EditorState.EDITING
            return False

        self.last_error = None
        self.failed_step = None
        self.completed_steps = []
        mode = "create" if self.form.is_new else "update"

        try:
            self.client.session.require_token()
        except PatientRecordsError as e:
            return self._fail(e, mode, step=None)

        self.state = EditorState.SAVING
        start_time = time.time()

        steps = [
            (SaveStep.PATIENT, self._persist_patient),
            (SaveStep.ADDRESS, self._persist_address),
            (SaveStep.HEALTH_DETAIL, self._persist_health_detail),
        ]
        for step, persist in steps:
            try:
                persist()
            except PatientRecordsError as e:
                return self._fail(e, mode, step=step)
            self.completed_steps.append(step)

        self.state = EditorState.DONE
        log_audit_event("PATIENT_SAVED", {
            "status": "success",
            "patient_id": self.form.patient_id,
            "mode": mode,
            "health_type": self.form.health_type.value,
            "duration": time.time() - start_time,
        })

        if self.on_saved is not None:
            self.on_saved()
        return True

    def _fail(self, error: Exception, mode: str, step: Optional[SaveStep]) -> bool:
        self.last_error = error
        self.failed_step = step
        self.state = EditorState.FAILED
        log_audit_event("PATIENT_SAVE_FAILED", {
            "status": "failure",
            "patient_id": self.form.patient_id,
            "mode": mode,
            "step": step.value if step else "session",
            "error_message": str(error),
            "completed_steps": ",".join(s.value for s in self.completed_steps) or "none",
        })
        return False

    def _persist_patient(self) -> None:
        personal = self.form.personal
        data: dict[str, Any] = {
            "firstName": personal.first_name.strip(),
            "lastName": personal.last_name.strip(),
            "fatherName": personal.father_name.strip() or None,
            "age": personal.age,
            "gender": personal.gender,
            "dob": to_iso_datetime(personal.dob),
            "healthType": self.form.health_type.value,
        }

        if self.form.patient_id is not None:
            data["patientId"] = self.form.patient_id
            self.client.patients.update(self.form.patient_id, data)
            logger.info(f"Updated patient {self.form.patient_id}")
            return

        created = self.client.patients.create(data)
        patient_id = _created_identity(created, "patientId")
        if not patient_id:
            raise ApiError("Patient creation returned no patientId")
        self.form.patient_id = patient_id
        logger.info(f"Created patient {patient_id}")

    def _persist_address(self) -> None:
        patient_id = self.form.patient_id
        payload = self.form.address.to_api(patient_id, self.form.address_id)

        if self.form.address_id is not None:
            self.client.addresses.update(self.form.address_id, payload)
            logger.info(f"Updated address {self.form.address_id} for patient {patient_id}")
            return

        created = self.client.addresses.create(payload)
        self.form.address_id = _created_identity(created, "addressId")
        logger.info(f"Created address {self.form.address_id} for patient {patient_id}")

    def _persist_health_detail(self) -> None:
        patient_id = self.form.patient_id
        detail = self.form.active_detail
        payload = detail_to_api(detail, self.form.health_type, patient_id)
        detail_id = payload.get("detailId")

        if detail_id:
            self.client.details.update(detail_id, payload)
            logger.info(f"Updated {self.form.health_type.value} detail {detail_id}")
            return

        created = self.client.details.create(payload)
        detail.detail_id = _created_identity(created, "detailId")
        logger.info(
            f"Created {self.form.health_type.value} detail {detail.detail_id} "
            f"for patient {patient_id}"
        )
