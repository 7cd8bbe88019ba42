from pydantic import BaseModel
from typing import Optional, Any, Dict


class EventDetails(BaseModel):
    category: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    type: Optional[str] = None  # free | paid
    price: Optional[float] = None


class DescribeRequest(BaseModel):
    eventName: Optional[str] = None
    currentDescription: Optional[str] = None
    eventDetails: Optional[EventDetails] = None
    action: str = "generate"  # improve | generate


class DescribeResponse(BaseModel):
    success: bool
    description: str


class ReportRequest(BaseModel):
    # event, attendees, engagement, surveys, revenue as sent by the analytics page
    reportData: Optional[Dict[str, Any]] = None


class ReportResponse(BaseModel):
    success: bool
    report: str
