from fastapi import APIRouter, Depends
import logging
from app.api.deps import get_current_user, get_ai_writer
from app.core.rate_limit import ai_limiter
from app.models.user import User
from app.schemas.ai import DescribeRequest, DescribeResponse, ReportRequest, ReportResponse
from app.services.ai_writer import AIWriter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/describe", response_model=DescribeResponse, dependencies=[Depends(ai_limiter)])
def describe_event(
    body: DescribeRequest,
    current_user: User = Depends(get_current_user),
    writer: AIWriter = Depends(get_ai_writer),
):
    """Write or polish an event description for the create-event form."""
    description = writer.generate_description(
        event_name=body.eventName,
        current_description=body.currentDescription,
        event_details=body.eventDetails.model_dump(exclude_none=True) if body.eventDetails else None,
        action=body.action,
    )
    logger.info(f"[AI] Description {body.action} for {current_user.id}")
    return DescribeResponse(success=True, description=description)


@router.post("/report", response_model=ReportResponse, dependencies=[Depends(ai_limiter)])
def event_report(
    body: ReportRequest,
    current_user: User = Depends(get_current_user),
    writer: AIWriter = Depends(get_ai_writer),
):
    report = writer.generate_report(body.reportData)
    return ReportResponse(success=True, report=report)
