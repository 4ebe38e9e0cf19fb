import uuid
import datetime
from . import db

APPOINTMENT_STATUSES = (
    "Scheduled",
    "Confirmed",
    "In Progress",
    "Completed",
    "Cancelled",
    "No Show",
)

APPOINTMENT_TYPES = (
    "General Consultation",
    "Eye Examination",
    "Follow-up",
    "Contact Lens Fitting",
    "Glaucoma Check",
    "Diabetic Eye Screening",
    "Cataract Consultation",
    "Emergency Visit",
)

DEFAULT_APPOINTMENT_STATUS = "Scheduled"
DEFAULT_APPOINTMENT_TYPE = "General Consultation"
DEFAULT_STAFF_ROLE = "staff"


def utcnow():
    """Naive UTC timestamp, the form every datetime column is stored in."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


class User(db.Model):
    """Auth identity; the profile data lives in StaffProfile."""
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    profile = db.relationship(
        "StaffProfile", backref="user", uselist=False, cascade="all, delete-orphan"
    )


class StaffProfile(db.Model):
    __tablename__ = "staff_profiles"

    id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    full_name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(50), nullable=False, default=DEFAULT_STAFF_ROLE)
    phone = db.Column(db.String(50))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)


class Patient(db.Model):
    __tablename__ = "patients"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255))
    phone = db.Column(db.String(50))
    date_of_birth = db.Column(db.Date)
    address = db.Column(db.Text)
    emergency_contact = db.Column(db.Text)
    insurance_info = db.Column(db.Text)
    medical_history = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # ORM cascade mirrors the ON DELETE CASCADE on the child tables.
    appointments = db.relationship(
        "Appointment", backref="patient", lazy=True, cascade="all, delete-orphan"
    )
    records = db.relationship(
        "MedicalRecord", backref="patient", lazy=True, cascade="all, delete-orphan"
    )


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    patient_id = db.Column(
        db.String(36), db.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    appointment_date = db.Column(db.DateTime, nullable=False, index=True)
    appointment_type = db.Column(db.String(100), nullable=False, default=DEFAULT_APPOINTMENT_TYPE)
    status = db.Column(db.String(20), nullable=False, default=DEFAULT_APPOINTMENT_STATUS)
    notes = db.Column(db.Text, nullable=False, default="")
    created_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class MedicalRecord(db.Model):
    __tablename__ = "medical_records"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    patient_id = db.Column(
        db.String(36), db.ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    visit_date = db.Column(db.DateTime, nullable=False)
    diagnosis = db.Column(db.Text, nullable=False, default="")
    treatment = db.Column(db.Text, nullable=False, default="")
    prescription = db.Column(db.Text, nullable=False, default="")
    notes = db.Column(db.Text, nullable=False, default="")
    doctor_name = db.Column(db.String(200), nullable=False, default="")
    created_by = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
