import logging

from dotenv import load_dotenv

from digital_house.config import settings
from digital_house.database import SessionLocal
from digital_house.models.options import Kulam, Location

logger = logging.getLogger(__name__)

DEFAULT_LOCATIONS = [
    "Chennai",
    "Coimbatore",
    "Madurai",
    "Trichy",
    "Salem",
    "Tirunelveli",
    "Erode",
    "Other",
]

DEFAULT_KULAMS = [
    "Semba Vattuar",
    "Karaiya Vettuvar",
    "Paandi Vettuvar",
    "Other",
]

load_dotenv()


def _seed_if_empty(db, model, names: list[str]) -> int:
    if db.query(model).count():
        return 0
    for position, name in enumerate(names, start=1):
        db.add(model(name=name, sort_order=position))
    return len(names)


def seed_options(db):
    locations = _seed_if_empty(db, Location, DEFAULT_LOCATIONS)
    if locations:
        logger.info("Seeded %s locations.", locations)
    kulams = _seed_if_empty(db, Kulam, DEFAULT_KULAMS)
    if kulams:
        logger.info("Seeded %s kulams.", kulams)


def run_seed():
    if not settings.SEED_OPTIONS:
        logger.info("SEED_OPTIONS disabled, skipping seeding.")
        return
    db = SessionLocal()
    try:
        seed_options(db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    run_seed()
