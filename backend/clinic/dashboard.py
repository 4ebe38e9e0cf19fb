import datetime
import logging
from flask import current_app
from flask_restx import Namespace, Resource
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload
from .models import Patient, Appointment, MedicalRecord, utcnow
from .auth import token_required
from .serializers import patient_ref
from .utils import isoformat, read_failed

logger = logging.getLogger(__name__)

dashboard_ns = Namespace("dashboard", description="Clinic overview")


def day_bounds(day):
    start = datetime.datetime.combine(day, datetime.time.min)
    return start, start + datetime.timedelta(days=1)


def count_patients():
    return Patient.query.count()


def count_appointments_on(day):
    start, end = day_bounds(day)
    return Appointment.query.filter(
        Appointment.appointment_date >= start,
        Appointment.appointment_date < end,
    ).count()


def count_records():
    return MedicalRecord.query.count()


def count_pending_appointments():
    return Appointment.query.filter_by(status="Scheduled").count()


def recent_activity(limit):
    """The most recently created appointments, newest first."""
    appointments = (
        Appointment.query.options(joinedload(Appointment.patient))
        .order_by(Appointment.created_at.desc())
        .limit(limit)
        .all()
    )
    return [{
        "id": a.id,
        "appointment_date": isoformat(a.appointment_date),
        "appointment_type": a.appointment_type,
        "status": a.status,
        "patient": patient_ref(a.patient),
    } for a in appointments]


@dashboard_ns.route("/")
class Dashboard(Resource):
    @token_required
    def get(self, current_user):
        """
        Totals for patients, today's appointments (UTC day), medical records and
        appointments still in "Scheduled", plus the latest appointments.
        """
        try:
            stats = {
                "total_patients": count_patients(),
                "today_appointments": count_appointments_on(utcnow().date()),
                "total_records": count_records(),
                "pending_appointments": count_pending_appointments(),
            }
            activity = recent_activity(current_app.config["RECENT_ACTIVITY_LIMIT"])
        except SQLAlchemyError as e:
            return read_failed("Error fetching dashboard data.", e)
        return {"stats": stats, "recent_activity": activity}, 200
