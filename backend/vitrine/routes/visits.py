"""
Vitrine Backend — Visit Counter Routes
=======================================

    GET /visit    record a visit, return the new count
    GET /visits   return the current count
"""

from fastapi import APIRouter, Depends

from vitrine.schemas.item import ErrorResponse, VisitCountResponse
from vitrine.services.visit_service import VisitCounter
from vitrine.state import get_visit_counter

router = APIRouter(tags=["Visits"])


@router.get(
    "/visit",
    response_model=VisitCountResponse,
    responses={500: {"description": "Record store failure", "model": ErrorResponse}},
    summary="Record a visit",
)
async def record_visit(
    visit_counter: VisitCounter = Depends(get_visit_counter),
) -> VisitCountResponse:
    return VisitCountResponse(visits=await visit_counter.increment())


@router.get(
    "/visits",
    response_model=VisitCountResponse,
    responses={500: {"description": "Record store failure", "model": ErrorResponse}},
    summary="Read the visit count",
)
async def read_visits(
    visit_counter: VisitCounter = Depends(get_visit_counter),
) -> VisitCountResponse:
    return VisitCountResponse(visits=await visit_counter.get())
