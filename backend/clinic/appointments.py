import logging
from flask import request
from flask_restx import Namespace, fields, Resource, abort
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from .models import (
    Appointment, utcnow,
    APPOINTMENT_STATUSES, APPOINTMENT_TYPES,
    DEFAULT_APPOINTMENT_STATUS, DEFAULT_APPOINTMENT_TYPE,
)
from . import db
from .auth import token_required
from .serializers import serialize_appointment
from .utils import (
    existing_patient_id, json_payload, optional_text, parse_datetime,
    require_delete_confirmation, write_failed, read_failed,
)

logger = logging.getLogger(__name__)

appointments_ns = Namespace("appointments", description="Appointment scheduling")

appointment_model = appointments_ns.model("Appointment", {
    "patient_id": fields.String(required=True, description="Patient id"),
    "appointment_date": fields.String(required=True, description="Date and time (ISO-8601)"),
    "appointment_type": fields.String(description="Appointment type"),
    "status": fields.String(description="Status", enum=list(APPOINTMENT_STATUSES)),
    "notes": fields.String(description="Notes"),
})


def checked_status(status):
    if status not in APPOINTMENT_STATUSES:
        abort(400, f"Status must be one of: {', '.join(APPOINTMENT_STATUSES)}.")
    return status


def clean_appointment(data):
    """Validated column values for the fields present in ``data``."""
    values = {}
    if "patient_id" in data:
        values["patient_id"] = existing_patient_id(data["patient_id"])
    if "appointment_date" in data:
        values["appointment_date"] = parse_datetime(data["appointment_date"], "appointment_date")
    if "appointment_type" in data:
        values["appointment_type"] = (
            (optional_text(data, "appointment_type") or "").strip() or DEFAULT_APPOINTMENT_TYPE
        )
    if "status" in data:
        values["status"] = checked_status(data["status"])
    if "notes" in data:
        values["notes"] = optional_text(data, "notes") or ""
    return values


def with_upcoming(appointment, now):
    output = serialize_appointment(appointment, with_patient=True)
    output["is_upcoming"] = appointment.appointment_date > now
    return output


@appointments_ns.route("/")
class AppointmentList(Resource):
    @token_required
    def get(self, current_user):
        """
        Lists appointments in chronological order, each with its patient's name.
        Optional filters: ?status=Scheduled&patient_id=<id>
        """
        query = Appointment.query.options(joinedload(Appointment.patient))
        status = request.args.get("status")
        if status:
            query = query.filter(Appointment.status == checked_status(status))
        patient_id = request.args.get("patient_id")
        if patient_id:
            query = query.filter(Appointment.patient_id == patient_id)

        try:
            appointments = query.order_by(Appointment.appointment_date.asc()).all()
        except SQLAlchemyError as e:
            return read_failed("Error fetching appointments.", e)

        now = utcnow()
        return {
            "status": "success",
            "total": len(appointments),
            "appointments": [with_upcoming(a, now) for a in appointments],
        }, 200

    @token_required
    @appointments_ns.expect(appointment_model, validate=False)
    def post(self, current_user):
        """
        Schedules an appointment for an existing patient.
        """
        data = json_payload()
        # Required on create; clean_appointment only checks what is present.
        existing_patient_id(data.get("patient_id"))
        parse_datetime(data.get("appointment_date"), "appointment_date")
        values = {
            "appointment_type": DEFAULT_APPOINTMENT_TYPE,
            "status": DEFAULT_APPOINTMENT_STATUS,
            "notes": "",
        }
        values.update(clean_appointment(data))
        new_appointment = Appointment(created_by=current_user.id, **values)
        try:
            db.session.add(new_appointment)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error saving appointment.", e)
        logger.info("Created appointment %s for patient %s", new_appointment.id, new_appointment.patient_id)
        return {"message": "Appointment created successfully!", "id": new_appointment.id}, 201


@appointments_ns.route("/options")
class AppointmentOptions(Resource):
    @token_required
    def get(self, current_user):
        """Choices offered by the appointment form."""
        return {
            "appointment_types": list(APPOINTMENT_TYPES),
            "statuses": list(APPOINTMENT_STATUSES),
            "default_type": DEFAULT_APPOINTMENT_TYPE,
            "default_status": DEFAULT_APPOINTMENT_STATUS,
        }, 200


@appointments_ns.route("/<string:id>")
class AppointmentDetail(Resource):
    @token_required
    def get(self, current_user, id):
        try:
            appointment = Appointment.query.filter_by(id=id).first_or_404()
        except SQLAlchemyError as e:
            return read_failed("Error fetching appointment.", e)
        return with_upcoming(appointment, utcnow()), 200

    @token_required
    @appointments_ns.expect(appointment_model, validate=False)
    def put(self, current_user, id):
        """
        Updates an appointment (partial JSON allowed).
        """
        appointment = Appointment.query.filter_by(id=id).first_or_404()
        values = clean_appointment(json_payload())
        for name, value in values.items():
            setattr(appointment, name, value)
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error saving appointment.", e)
        logger.info("Updated appointment %s", appointment.id)
        return {"message": "Appointment updated successfully!"}, 200

    @token_required
    def delete(self, current_user, id):
        """
        Deletes an appointment. Requires ?confirm=true.
        """
        appointment = Appointment.query.filter_by(id=id).first_or_404()
        require_delete_confirmation("appointment")
        try:
            db.session.delete(appointment)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error deleting appointment.", e)
        logger.info("Deleted appointment %s", id)
        return {"message": "Appointment deleted successfully!"}, 200
