import logging
from flask import request
from flask_restx import Namespace, fields, Resource
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from .models import MedicalRecord, Patient
from . import db
from .auth import token_required
from .search import filter_records
from .serializers import serialize_record
from .utils import (
    existing_patient_id, json_payload, optional_text, parse_datetime,
    require_delete_confirmation, write_failed, read_failed,
)

logger = logging.getLogger(__name__)

records_ns = Namespace("records", description="Medical records")

TEXT_FIELDS = ("diagnosis", "treatment", "prescription", "notes", "doctor_name")

record_model = records_ns.model("MedicalRecord", {
    "patient_id": fields.String(required=True, description="Patient id"),
    "visit_date": fields.String(required=True, description="Visit date and time (ISO-8601)"),
    "diagnosis": fields.String(description="Diagnosis or condition"),
    "treatment": fields.String(description="Treatment provided or recommended"),
    "prescription": fields.String(description="Medications prescribed"),
    "notes": fields.String(description="Additional observations"),
    "doctor_name": fields.String(description="Attending physician"),
})


@records_ns.route("/")
class RecordList(Resource):
    @token_required
    def get(self, current_user):
        """
        Lists medical records, latest visit first. ?search= matches the
        patient's name, the diagnosis or the doctor.
        """
        search = request.args.get("search", "", type=str)
        try:
            records = (
                MedicalRecord.query.options(joinedload(MedicalRecord.patient))
                .order_by(MedicalRecord.visit_date.desc())
                .all()
            )
        except SQLAlchemyError as e:
            return read_failed("Error fetching medical records.", e)

        matches = filter_records(records, search)
        return {
            "status": "success",
            "total": len(matches),
            "records": [serialize_record(r, with_patient=True) for r in matches],
        }, 200

    @token_required
    @records_ns.expect(record_model, validate=False)
    def post(self, current_user):
        """
        Adds a medical record for an existing patient.
        """
        data = json_payload()
        patient_id = existing_patient_id(data.get("patient_id"))
        visit_date = parse_datetime(data.get("visit_date"), "visit_date")
        text = {name: optional_text(data, name) or "" for name in TEXT_FIELDS}
        new_record = MedicalRecord(
            patient_id=patient_id,
            visit_date=visit_date,
            created_by=current_user.id,
            **text
        )
        try:
            db.session.add(new_record)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error saving medical record.", e)
        logger.info("Created medical record %s for patient %s", new_record.id, patient_id)
        return {"message": "Medical record created successfully!", "id": new_record.id}, 201


@records_ns.route("/<string:id>")
class RecordDetail(Resource):
    @token_required
    def get(self, current_user, id):
        try:
            record = MedicalRecord.query.filter_by(id=id).first_or_404()
        except SQLAlchemyError as e:
            return read_failed("Error fetching medical record.", e)
        return serialize_record(record, with_patient=True), 200

    @token_required
    def delete(self, current_user, id):
        """
        Deletes a medical record. Requires ?confirm=true.
        """
        record = MedicalRecord.query.filter_by(id=id).first_or_404()
        require_delete_confirmation("medical record")
        try:
            db.session.delete(record)
            db.session.commit()
        except SQLAlchemyError as e:
            return write_failed("Error deleting medical record.", e)
        logger.info("Deleted medical record %s", id)
        return {"message": "Medical record deleted successfully!"}, 200


@records_ns.route("/patient/<string:patient_id>")
class PatientRecords(Resource):
    @token_required
    def get(self, current_user, patient_id):
        """
        Lists the medical records of one patient, latest visit first.
        """
        try:
            patient = Patient.query.filter_by(id=patient_id).first_or_404()
            records = (
                MedicalRecord.query.filter_by(patient_id=patient.id)
                .order_by(MedicalRecord.visit_date.desc())
                .all()
            )
        except SQLAlchemyError as e:
            return read_failed("Error fetching medical records.", e)
        return {
            "patient_id": patient.id,
            "records": [serialize_record(r) for r in records],
        }, 200
