import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional

from app.core.errors import NotFoundError, ValidationError, WriteError
from app.core.record_store import Record, RecordStore
from app.schemas.emergency import EmergencyStatus, Prediction, RiskLevel
from app.schemas.notifications import NotificationActionType, NotificationPriority, NotificationType
from app.services.friends_service import list_friends
from app.services.notification_service import fan_out
from app.services.user_service import canonical_user_id
from app.utils.geo_utils import bearing_degrees, compass_direction, haversine_km

logger = logging.getLogger(__name__)

TABLE = "emergencies"

REQUIRED_REPORT_FIELDS = ("user_id", "user_name", "emergency_type", "specific_type", "location", "description")

MAX_PREDICTIONS = 5


def _missing_field(report: Mapping[str, Any]) -> Optional[str]:
    for field in REQUIRED_REPORT_FIELDS:
        value = report.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            return field
    return None


async def submit_emergency_report(store: RecordStore, report: Mapping[str, Any]) -> str:
    """
    Store an incident report and alert every user about it.

    Any caller-supplied status is ignored; new reports are always active.
    The alert fan-out is best-effort and never fails the submission.

    Args:
        store: Record store
        report: Report fields; coordinates may be given as
            {"latitude": .., "longitude": ..}

    Returns:
        str: The new report id

    Raises:
        ValidationError: Naming the first required field that is blank
    """
    missing = _missing_field(report)
    if missing:
        raise ValidationError(f"{missing} is required")

    coordinates = report.get("coordinates") or {}
    emergency = await store.create(TABLE, {
        "user_id": report["user_id"],
        "user_name": report["user_name"],
        "emergency_type": report["emergency_type"],
        "specific_type": report["specific_type"],
        "location": report["location"],
        "description": report["description"],
        "priority": report.get("priority"),
        "latitude": coordinates.get("latitude"),
        "longitude": coordinates.get("longitude"),
        "status": EmergencyStatus.ACTIVE.value,
    })
    logger.info(f"Emergency report {emergency['id']} submitted by {emergency['user_id']}")

    try:
        profiles = await store.find("profiles")
        recipients = list(dict.fromkeys(canonical_user_id(profile) for profile in profiles))
        await fan_out(
            store, recipients,
            type=NotificationType.EMERGENCY.value,
            title="Emergency Alert",
            message=f"{emergency['specific_type']} reported in {emergency['location']}. "
                    f"Emergency services have been notified.",
            priority=NotificationPriority.HIGH.value,
            action_type=NotificationActionType.EMERGENCY_ALERT.value,
            action_data={"emergencyId": emergency["id"]},
            location=emergency["location"],
            emergency_type=emergency["specific_type"],
        )
    except Exception:
        logger.exception(f"Emergency broadcast for report {emergency['id']} failed")

    return emergency["id"]


async def get_recent_emergencies(store: RecordStore, limit: int = 10) -> List[Record]:
    return await store.find(TABLE, order_by="created_at", descending=True, limit=limit)


async def get_emergencies_by_area(store: RecordStore, area: str, limit: int = 10) -> List[Record]:
    """
    Reports whose free-text location contains `area` (case-insensitive),
    newest first. There is no geospatial index behind this.
    """
    area = (area or "").strip()
    if not area:
        return []
    matches = await store.search(TABLE, area, ["location"])
    matches.sort(key=lambda e: e["created_at"], reverse=True)
    return matches[:limit]


async def get_nearby_emergencies(
    store: RecordStore, lat: float, lng: float, radius_km: float = 5.0, limit: int = 20
) -> List[Dict[str, Any]]:
    """
    Reports with coordinates within `radius_km` of the given point, nearest
    first, each annotated with distance_km, bearing and compass direction
    for map markers.
    """
    nearby = []
    for emergency in await store.find(TABLE):
        if emergency.get("latitude") is None or emergency.get("longitude") is None:
            continue
        distance = haversine_km(lat, lng, emergency["latitude"], emergency["longitude"])
        if distance > radius_km:
            continue
        bearing = bearing_degrees(lat, lng, emergency["latitude"], emergency["longitude"])
        nearby.append({
            **emergency,
            "distance_km": round(distance, 3),
            "bearing": round(bearing, 1),
            "direction": compass_direction(bearing),
        })
    nearby.sort(key=lambda e: e["distance_km"])
    return nearby[:limit]


def generate_risk_predictions(emergencies: Iterable[Mapping[str, Any]]) -> List[Prediction]:
    """
    Frequency heuristic over a set of reports.

    A specific type seen at least twice yields a prediction (Low from 2,
    Medium from 3, High from 5; confidence min(count * 20, 95)). A location
    seen at least twice yields a "General Emergency" prediction (Medium,
    High from 3; confidence min(count * 25, 90)). Type predictions come
    first, each group in first-seen order, and at most five are returned.
    """
    emergencies = list(emergencies)
    type_counts = Counter(e.get("specific_type") for e in emergencies)
    location_counts = Counter(e.get("location") for e in emergencies)

    predictions: List[Prediction] = []

    for emergency_type, count in type_counts.items():
        if count < 2:
            continue
        if count >= 5:
            risk = RiskLevel.HIGH
        elif count >= 3:
            risk = RiskLevel.MEDIUM
        else:
            risk = RiskLevel.LOW
        factors = []
        if count >= 5:
            factors.append("High Frequency")
        if count >= 3:
            factors.append("Recent Incidents")
        factors.append("Pattern Detected")
        predictions.append(Prediction(
            type=emergency_type,
            risk=risk,
            location="Multiple Locations",
            time="Next 24 hours",
            factors=factors,
            confidence=min(count * 20, 95),
        ))

    for location, count in location_counts.items():
        if count < 2:
            continue
        predictions.append(Prediction(
            type="General Emergency",
            risk=RiskLevel.HIGH if count >= 3 else RiskLevel.MEDIUM,
            location=location,
            time="Next 12 hours",
            factors=["High Activity Area", "Recent Incidents"],
            confidence=min(count * 25, 90),
        ))

    return predictions[:MAX_PREDICTIONS]


async def update_emergency_status(store: RecordStore, emergency_id: str, status: str) -> None:
    """
    Overwrite a report's status. Any status may move to any other.

    Raises:
        ValidationError: If status is not active, pending or resolved
        NotFoundError: If the report does not exist
    """
    try:
        status = EmergencyStatus(status).value
    except ValueError:
        raise ValidationError(f"Invalid status: {status}")
    try:
        await store.update(TABLE, {"id": emergency_id}, {"status": status})
    except NotFoundError:
        raise NotFoundError("Emergency report not found")
    logger.info(f"Emergency {emergency_id} marked {status}")


def _sos_message(from_name: str, location: str, coords: Optional[Mapping[str, float]], address: Optional[str]) -> str:
    message = f"{from_name} needs help! Location: {address or location}"
    if coords and coords.get("latitude") is not None and coords.get("longitude") is not None:
        message += f" (https://maps.google.com/?q={coords['latitude']},{coords['longitude']})"
    return message


async def send_sos_alert_to_friends(
    store: RecordStore,
    from_user_id: str,
    from_name: str,
    location: str,
    phone: Optional[str] = None,
    coords: Optional[Mapping[str, float]] = None,
    address: Optional[str] = None,
) -> int:
    """
    Alert every active friend of the caller.

    A caller without friends gets a single self-test alert so they can see
    what their friends would receive.

    Returns:
        int: Number of notifications written

    Raises:
        WriteError: If every notification write was rejected
    """
    friends = await list_friends(store, from_user_id)
    targets = list(dict.fromkeys(friend["friend_id"] for friend in friends))
    message = _sos_message(from_name, location, coords, address)

    action_data: Dict[str, Any] = {"fromUserId": from_user_id, "fromUserName": from_name}
    if coords:
        action_data["coordinates"] = dict(coords)

    if not targets:
        logger.info(f"User {from_user_id} has no active friends, sending SOS self-test")
        targets = [from_user_id]
        title = "SOS Alert (Self-Test)"
        message = f"No friends to alert yet. Your friends would receive: {message}"
        action_data["selfTest"] = True
    else:
        title = "SOS Alert"

    succeeded, failed = await fan_out(
        store, targets,
        type=NotificationType.EMERGENCY.value,
        title=title,
        message=message,
        priority=NotificationPriority.HIGH.value,
        action_type=NotificationActionType.EMERGENCY_ALERT.value,
        action_data=action_data,
        location=address or location,
        phone=phone,
        emergency_type="SOS",
    )
    if succeeded == 0:
        raise WriteError("Could not send SOS alert. Notifications are being rejected.")
    return succeeded
