"""Request bodies for the email and event-notification endpoints (dashboard camelCase)."""
from pydantic import BaseModel
from typing import Optional, List


class InviteEmailRequest(BaseModel):
    email: Optional[str] = None
    orgName: Optional[str] = None
    inviterName: Optional[str] = None
    role: Optional[str] = None
    inviteToken: Optional[str] = None
    inviteeName: Optional[str] = None


class WelcomeEmailRequest(BaseModel):
    email: Optional[str] = None
    name: Optional[str] = None
    orgName: Optional[str] = None


class SpeakerInviteEmailRequest(BaseModel):
    email: Optional[str] = None
    speakerName: Optional[str] = None
    eventName: Optional[str] = None
    sessionTitle: Optional[str] = None
    organizationName: Optional[str] = None
    inviterName: Optional[str] = None
    role: Optional[str] = "speaker"
    inviteToken: Optional[str] = None
    personalMessage: Optional[str] = None


class BulkRecipient(BaseModel):
    email: str
    name: Optional[str] = ""


class BulkEmailRequest(BaseModel):
    recipients: List[BulkRecipient] = []
    subject: Optional[str] = None
    message: Optional[str] = None
    eventName: Optional[str] = ""
    orgId: Optional[str] = None


class BulkEmailResponse(BaseModel):
    success: bool
    emailsSent: int
    emailsFailed: int
    totalRecipients: int


class TestEmailRequest(BaseModel):
    email: Optional[str] = None
    type: str = "welcome"  # welcome | invite


class EventChange(BaseModel):
    field: str
    oldValue: Optional[str] = ""
    newValue: Optional[str] = ""


class EventUpdateNotificationRequest(BaseModel):
    eventId: Optional[str] = None
    eventName: Optional[str] = None
    changes: List[EventChange] = []
    customTitle: Optional[str] = None
    customMessage: Optional[str] = None
    sendEmail: bool = True
    sendSMS: bool = False


class EventCancellationNotificationRequest(BaseModel):
    eventId: Optional[str] = None
    eventName: Optional[str] = None
    organizationName: Optional[str] = None
    eventDate: Optional[str] = None
    eventLocation: Optional[str] = None
    refundInfo: Optional[str] = None
    contactEmail: Optional[str] = None


class NotificationResult(BaseModel):
    success: bool
    message: str
    emailsSent: int = 0
    emailsFailed: int = 0
    smsSent: int = 0
    smsFailed: int = 0
    totalAttendees: int = 0
