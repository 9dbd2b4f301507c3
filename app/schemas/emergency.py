from typing import List, Optional
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from enum import Enum as PyEnum

class EmergencyStatus(str, PyEnum):
    ACTIVE = "active"
    PENDING = "pending"
    RESOLVED = "resolved"

class RiskLevel(str, PyEnum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

class Coordinates(BaseModel):
    latitude: float
    longitude: float

class EmergencyReportCreate(BaseModel):
    # Presence is checked by the service so the error can name the missing field
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    emergency_type: Optional[str] = None
    specific_type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None  # ignored, reports always start active
    coordinates: Optional[Coordinates] = None

class EmergencyReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user_name: str
    emergency_type: str
    specific_type: str
    location: str
    description: str
    status: EmergencyStatus
    priority: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: Optional[datetime] = None

class NearbyEmergencyResponse(EmergencyReportResponse):
    distance_km: float
    bearing: float
    direction: str

class EmergencyReportCreated(BaseModel):
    id: str

class EmergencyStatusUpdate(BaseModel):
    status: EmergencyStatus

class Prediction(BaseModel):
    type: str
    risk: RiskLevel
    location: str
    time: str
    factors: List[str]
    confidence: int

class SOSAlertRequest(BaseModel):
    location: str
    phone: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    address: Optional[str] = None

class SOSAlertResponse(BaseModel):
    notified: int
