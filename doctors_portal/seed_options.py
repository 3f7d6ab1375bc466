"""Load appointment options from a JSON file into the database.

Usage:
    python -m doctors_portal.seed_options options.json

The file holds a list of ``{"name": ..., "price": ..., "slots": [...]}``
objects. Existing options are matched by name and updated in place.
"""
import json
import sys
from decimal import Decimal

from sqlalchemy.orm import Session

from doctors_portal.core import config
from doctors_portal.database import build_engine, build_session_factory, create_schema
from doctors_portal.models.option import AppointmentOption


def seed_options(db: Session, entries: list[dict]) -> list[AppointmentOption]:
    seeded: list[AppointmentOption] = []
    for entry in entries:
        name = str(entry["name"]).strip()
        slots = [str(slot).strip() for slot in entry.get("slots", [])]
        if len(set(slots)) != len(slots):
            raise ValueError(f"Duplicate slot labels for {name}.")

        option = db.query(AppointmentOption).filter(AppointmentOption.name == name).first()
        if option is None:
            option = AppointmentOption(name=name)
            db.add(option)
        option.price = Decimal(str(entry.get("price", 0)))
        option.slots = slots
        seeded.append(option)

    db.commit()
    return seeded


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python -m doctors_portal.seed_options <options.json>", file=sys.stderr)
        sys.exit(2)

    with open(args[0], encoding="utf-8") as handle:
        entries = json.load(handle)

    engine = build_engine(config.DATABASE_URL)
    create_schema(engine)
    db = build_session_factory(engine)()
    try:
        seeded = seed_options(db, entries)
    finally:
        db.close()
        engine.dispose()
    print(f"Seeded {len(seeded)} appointment options.")


if __name__ == "__main__":
    main()
