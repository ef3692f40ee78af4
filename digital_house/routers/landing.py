from fastapi import APIRouter

from digital_house.utils.response import create_response

router = APIRouter(prefix="/landing", tags=["Landing"])

HEADLINE = "Connecting Our Community"


@router.get("")
def get_landing():
    return create_response(data={"headline": HEADLINE})
