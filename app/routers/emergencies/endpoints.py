import logging
from typing import List
from fastapi import APIRouter, Depends, Query, Response
from app.common import display_name_of, get_current_user, to_http_exception
from app.core.errors import SOSError
from app.core.record_store import RecordStore
from app.init_db import get_store
from app.schemas.emergency import (
    EmergencyReportCreate,
    EmergencyReportCreated,
    EmergencyReportResponse,
    EmergencyStatusUpdate,
    NearbyEmergencyResponse,
    Prediction,
    SOSAlertRequest,
    SOSAlertResponse,
)
from app.services.emergency_service import (
    generate_risk_predictions,
    get_emergencies_by_area,
    get_nearby_emergencies,
    get_recent_emergencies,
    send_sos_alert_to_friends,
    submit_emergency_report,
    update_emergency_status,
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/emergencies", tags=["emergencies"])

@router.post("/report", response_model=EmergencyReportCreated, status_code=201)
async def submit_emergency_report_api(
    request: EmergencyReportCreate,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Submit an incident report and alert every user.

    The reporter defaults to the signed-in user when the body leaves it out.

    Raises:
        HTTPException: 400 naming the first missing field
    """
    report = request.model_dump()
    report["user_id"] = report.get("user_id") or current_user["uid"]
    report["user_name"] = report.get("user_name") or display_name_of(current_user)
    try:
        return EmergencyReportCreated(id=await submit_emergency_report(store, report))
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/recent", response_model=List[EmergencyReportResponse])
async def get_recent_emergencies_api(
    limit: int = Query(10, ge=1, le=100),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await get_recent_emergencies(store, limit)
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/area", response_model=List[EmergencyReportResponse])
async def get_emergencies_by_area_api(
    q: str = Query(..., min_length=1, description="Location fragment"),
    limit: int = Query(10, ge=1, le=100),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await get_emergencies_by_area(store, q, limit)
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/nearby", response_model=List[NearbyEmergencyResponse])
async def get_nearby_emergencies_api(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(5.0, gt=0, le=100),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        return await get_nearby_emergencies(store, lat, lng, radius_km)
    except SOSError as e:
        raise to_http_exception(e)

@router.get("/predictions", response_model=List[Prediction])
async def get_risk_predictions_api(
    limit: int = Query(50, ge=1, le=500, description="How many recent reports to analyse"),
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """Frequency-based risk predictions over the most recent reports."""
    try:
        return generate_risk_predictions(await get_recent_emergencies(store, limit))
    except SOSError as e:
        raise to_http_exception(e)

@router.patch("/{emergency_id}/status", status_code=204)
async def update_emergency_status_api(
    emergency_id: str,
    request: EmergencyStatusUpdate,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    try:
        await update_emergency_status(store, emergency_id, request.status.value)
    except SOSError as e:
        raise to_http_exception(e)
    return Response(status_code=204)

@router.post("/sos", response_model=SOSAlertResponse)
async def send_sos_alert_api(
    request: SOSAlertRequest,
    store: RecordStore = Depends(get_store),
    current_user: dict = Depends(get_current_user)
):
    """
    Alert all of the current user's friends. A user without friends receives
    a self-test alert instead.

    Raises:
        HTTPException: 502 if no alert could be written
    """
    try:
        notified = await send_sos_alert_to_friends(
            store,
            current_user["uid"],
            display_name_of(current_user),
            request.location,
            phone=request.phone,
            coords=request.coordinates.model_dump() if request.coordinates else None,
            address=request.address,
        )
    except SOSError as e:
        raise to_http_exception(e)
    return SOSAlertResponse(notified=notified)
