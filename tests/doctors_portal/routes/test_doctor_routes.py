import pytest
from fastapi import HTTPException

from doctors_portal.models.doctor import Doctor
from doctors_portal.routes.doctor_routes import CreateDoctorRequest, add_doctor, list_doctors, remove_doctor


def _doctor(**overrides) -> CreateDoctorRequest:
    fields = {'name': 'Dr. Who', 'email': ' WHO@clinic.com ', 'specialty': 'Braces'}
    fields.update(overrides)
    return CreateDoctorRequest(**fields)


def test_add_doctor_stores_normalized_email(db, braces) -> None:
    doctor = add_doctor(_doctor(), caller_email='admin@x.com', db=db)

    assert doctor.email == 'who@clinic.com'
    assert [item.email for item in list_doctors(caller_email='admin@x.com', db=db)] == ['who@clinic.com']


def test_add_doctor_rejects_duplicate_email(db, braces) -> None:
    add_doctor(_doctor(), caller_email='admin@x.com', db=db)

    with pytest.raises(HTTPException) as exception_info:
        add_doctor(_doctor(name='Dr. Other'), caller_email='admin@x.com', db=db)

    assert exception_info.value.status_code == 409


def test_add_doctor_rejects_unknown_specialty(db, braces) -> None:
    with pytest.raises(HTTPException) as exception_info:
        add_doctor(_doctor(specialty='Astrology'), caller_email='admin@x.com', db=db)

    assert exception_info.value.status_code == 400


def test_remove_doctor_deletes_and_reports_missing(db, braces) -> None:
    add_doctor(_doctor(), caller_email='admin@x.com', db=db)

    remove_doctor('who@clinic.com', caller_email='admin@x.com', db=db)

    assert db.query(Doctor).count() == 0
    with pytest.raises(HTTPException) as exception_info:
        remove_doctor('who@clinic.com', caller_email='admin@x.com', db=db)
    assert exception_info.value.status_code == 404
