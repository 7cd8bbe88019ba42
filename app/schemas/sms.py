from pydantic import BaseModel
from typing import Optional, List


class SmsRecipient(BaseModel):
    phone: Optional[str] = None
    name: Optional[str] = None


class BulkSmsRequest(BaseModel):
    recipients: List[SmsRecipient] = []
    message: Optional[str] = None
    eventName: Optional[str] = None


class SmsMessageId(BaseModel):
    phone: str
    messageId: str


class BulkSmsResponse(BaseModel):
    success: bool
    message: str
    sent: int
    failed: int
    errors: Optional[List[str]] = None
    messageIds: Optional[List[SmsMessageId]] = None
