"""In-memory search over fetched rows.

Both filters are pure: they never touch the database and can be re-run on
every keystroke against the same list.
"""


def _contains(value, needle):
    return value is not None and needle in str(value).lower()


def _needle(term):
    # Surrounding whitespace in the term is ignored, so "smith " finds "Smith".
    return (term or "").strip().lower()


def patient_matches(patient, term):
    needle = _needle(term)
    if not needle:
        return True
    return (
        _contains(f"{patient.first_name} {patient.last_name}", needle)
        or _contains(patient.email, needle)
        or _contains(patient.phone, needle)
    )


def filter_patients(patients, term):
    """Patients whose full name, email or phone contains ``term``, ignoring case."""
    return [p for p in patients if patient_matches(p, term)]


def record_matches(record, term):
    needle = _needle(term)
    if not needle:
        return True
    patient = record.patient
    name = f"{patient.first_name} {patient.last_name}" if patient is not None else None
    return (
        _contains(name, needle)
        or _contains(record.diagnosis, needle)
        or _contains(record.doctor_name, needle)
    )


def filter_records(records, term):
    """Medical records whose patient name, diagnosis or doctor contains ``term``."""
    return [r for r in records if record_matches(r, term)]
