from .utils import isoformat


def patient_ref(patient):
    """The embedded ``patients (first_name, last_name)`` relation."""
    if patient is None:
        return None
    return {"first_name": patient.first_name, "last_name": patient.last_name}


def serialize_patient(p):
    return {
        "id": p.id,
        "first_name": p.first_name,
        "last_name": p.last_name,
        "email": p.email,
        "phone": p.phone,
        "date_of_birth": isoformat(p.date_of_birth),
        "address": p.address,
        "emergency_contact": p.emergency_contact,
        "insurance_info": p.insurance_info,
        "medical_history": p.medical_history,
        "created_at": isoformat(p.created_at),
        "updated_at": isoformat(p.updated_at),
    }


def serialize_appointment(a, with_patient=False):
    output = {
        "id": a.id,
        "patient_id": a.patient_id,
        "appointment_date": isoformat(a.appointment_date),
        "appointment_type": a.appointment_type,
        "status": a.status,
        "notes": a.notes,
        "created_by": a.created_by,
        "created_at": isoformat(a.created_at),
        "updated_at": isoformat(a.updated_at),
    }
    if with_patient:
        output["patient"] = patient_ref(a.patient)
    return output


def serialize_record(r, with_patient=False):
    output = {
        "id": r.id,
        "patient_id": r.patient_id,
        "visit_date": isoformat(r.visit_date),
        "diagnosis": r.diagnosis,
        "treatment": r.treatment,
        "prescription": r.prescription,
        "notes": r.notes,
        "doctor_name": r.doctor_name,
        "created_by": r.created_by,
        "created_at": isoformat(r.created_at),
    }
    if with_patient:
        output["patient"] = patient_ref(r.patient)
    return output
