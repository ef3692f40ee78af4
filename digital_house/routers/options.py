from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from digital_house.database import get_db
from digital_house.models.options import Kulam, Location
from digital_house.utils.response import create_response, handle_exception

router = APIRouter(prefix="/options", tags=["Options"])


def _options(db: Session, model) -> list[dict]:
    rows = db.query(model).order_by(model.sort_order.asc(), model.name.asc()).all()
    return [{"id": row.id, "name": row.name} for row in rows]


@router.get("/locations")
def get_locations(db: Session = Depends(get_db)):
    try:
        return create_response(data={"locations": _options(db, Location)})
    except Exception as exc:
        return handle_exception(exc)


@router.get("/kulams")
def get_kulams(db: Session = Depends(get_db)):
    try:
        return create_response(data={"kulams": _options(db, Kulam)})
    except Exception as exc:
        return handle_exception(exc)
