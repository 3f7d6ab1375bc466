from decimal import Decimal

import pytest

from doctors_portal.models.option import AppointmentOption
from doctors_portal.seed_options import seed_options


def test_seed_options_inserts_and_updates_by_name(db) -> None:
    seed_options(db, [{'name': 'Braces', 'price': 100, 'slots': ['9am', '10am']}])
    seed_options(db, [
        {'name': 'Braces', 'price': '120.50', 'slots': ['9am', '10am', '11am']},
        {'name': 'Cavity Protection', 'price': 80, 'slots': ['8am']},
    ])

    options = {option.name: option for option in db.query(AppointmentOption).all()}

    assert set(options) == {'Braces', 'Cavity Protection'}
    assert options['Braces'].price == Decimal('120.50')
    assert options['Braces'].slots == ['9am', '10am', '11am']


def test_seed_options_rejects_duplicate_slot_labels(db) -> None:
    with pytest.raises(ValueError):
        seed_options(db, [{'name': 'Braces', 'price': 100, 'slots': ['9am', '9am']}])
