import datetime
import logging
from flask import request
from flask_restx import Namespace, fields, Resource, abort
from sqlalchemy.exc import SQLAlchemyError
from .models import Patient, Appointment, MedicalRecord
from . import db
from .auth import token_required
from .search import filter_patients
from .serializers import serialize_patient, serialize_appointment, serialize_record
from .utils import (
    require_text, optional_text, blank_to_none, json_payload, parse_date,
    require_delete_confirmation, write_failed, read_failed, page_args, paginate,
)

logger = logging.getLogger(__name__)

patients_ns = Namespace("patients", description="Patient management")

patient_model = patients_ns.model("Patient", {
    "first_name": fields.String(required=True, description="First name"),
    "last_name": fields.String(required=True, description="Last name"),
    "email": fields.String(description="E-mail"),
    "phone": fields.String(description="Phone"),
    "date_of_birth": fields.String(description="Date of birth (YYYY-MM-DD)"),
    "address": fields.String(description="Address"),
    "emergency_contact": fields.String(description="Emergency contact"),
    "insurance_info": fields.String(description="Insurance information"),
    "medical_history": fields.String(description="Medical history"),
})

OPTIONAL_TEXT_FIELDS = ("email", "phone", "address", "emergency_contact", "insurance_info")

ORDERINGS = {
    "created_at": (Patient.created_at.desc(),),
    "last_name": (Patient.last_name.asc(), Patient.first_name.asc()),
}


def calculate_age(date_of_birth, today=None):
    """Whole years since ``date_of_birth``; the birthday itself counts."""
    if date_of_birth is None:
        return None
    today = today or datetime.date.today()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def clean_patient(data):
    """Validated column values for the submitted form fields.

    The id is never taken from the payload.
    """
    values = {}
    for name in ("first_name", "last_name"):
        if name in data:
            require_text(data, name)
            values[name] = data[name].strip()
    for name in OPTIONAL_TEXT_FIELDS:
        if name in data:
            values[name] = blank_to_none(optional_text(data, name))
    if "date_of_birth" in data:
        values["date_of_birth"] = parse_date(data["date_of_birth"], "date_of_birth")
    if "medical_history" in data:
        values["medical_history"] = optional_text(data, "medical_history") or ""
    return values


@patients_ns.route("/")
class PatientList(Resource):
    @token_required
    def get(self, current_user):
        """
        Lists patients, newest first, filtered by name, e-mail or phone:
        /api/patients/?search=smith&order=last_name&page=1&per_page=10
        """
        search = request.args.get("search", "", type=str)
        order = request.args.get("order", "created_at", type=str)
        if order not in ORDERINGS:
            abort(400, f"Unknown order '{order}'.")
        page, per_page = page_args()

        try:
            patients = Patient.query.order_by(*ORDERINGS[order]).all()
        except SQLAlchemyError as e:
            return read_failed("Error fetching patients.", e)

        matches = filter_patients(patients, search)
        return {
            "status": "success",
            "page": page,
            "per_page": per_page,
            "total": len(matches),
            "patients": [serialize_patient(p) for p in paginate(matches, page, per_page)],
        }, 200

    @token_required
    @patients_ns.expect(patient_model, validate=False)
    def post(self, current_user):
        """
        Creates a patient. First and last name are required.
        """
        data = json_payload()
        require_text(data, "first_name", "last_name")
        values = {"medical_history": ""}
        values.update(clean_patient(data))
        new_patient = Patient(**values)
        try:
            db.session.add(new_patient)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error saving patient.", e)
        logger.info("Created patient %s", new_patient.id)
        return {"message": "Patient created successfully!", "id": new_patient.id}, 201


@patients_ns.route("/<string:id>")
class PatientDetail(Resource):
    @token_required
    def get(self, current_user, id):
        try:
            patient = Patient.query.filter_by(id=id).first_or_404()
        except SQLAlchemyError as e:
            return read_failed("Error fetching patient.", e)
        output = serialize_patient(patient)
        output["age"] = calculate_age(patient.date_of_birth)
        return output, 200

    @token_required
    @patients_ns.expect(patient_model, validate=False)
    def put(self, current_user, id):
        """
        Updates a patient (partial JSON allowed).
        """
        patient = Patient.query.filter_by(id=id).first_or_404()
        values = clean_patient(json_payload())
        for name, value in values.items():
            setattr(patient, name, value)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error saving patient.", e)
        logger.info("Updated patient %s", patient.id)
        return {"message": "Patient updated successfully!"}, 200

    @token_required
    def delete(self, current_user, id):
        """
        Deletes a patient together with their appointments and medical records.
        Requires ?confirm=true.
        """
        patient = Patient.query.filter_by(id=id).first_or_404()
        require_delete_confirmation("patient")
        try:
            db.session.delete(patient)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error deleting patient.", e)
        logger.info("Deleted patient %s", id)
        return {"message": "Patient deleted successfully!"}, 200


@patients_ns.route("/<string:id>/summary")
class PatientSummary(Resource):
    @token_required
    def get(self, current_user, id):
        """
        Patient details with their latest appointments and medical records.
        """
        limit = request.args.get("limit", 5, type=int)
        if limit < 0:
            abort(400, "limit must not be negative.")
        try:
            patient = Patient.query.filter_by(id=id).first_or_404()
            appointments = (
                Appointment.query.filter_by(patient_id=patient.id)
                .order_by(Appointment.appointment_date.desc())
                .limit(limit)
                .all()
            )
            records = (
                MedicalRecord.query.filter_by(patient_id=patient.id)
                .order_by(MedicalRecord.visit_date.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            return read_failed("Error fetching patient data.", e)

        output = serialize_patient(patient)
        output["age"] = calculate_age(patient.date_of_birth)
        return {
            "patient": output,
            "appointments": [serialize_appointment(a) for a in appointments],
            "records": [serialize_record(r) for r in records],
        }, 200
