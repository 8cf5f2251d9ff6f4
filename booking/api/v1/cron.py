"""
Cron endpoints
Called by an external scheduler when the Celery beat is not running
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from booking.api.dependencies import verify_cron_secret
from booking.config.database import get_db
from booking.services.twilio.sms_service import MessagingService, get_messaging_service
from booking.tasks.reminder_tasks import run_reminder_dispatch

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/process-reminders", dependencies=[Depends(verify_cron_secret)])
async def process_reminders(
        db: Session = Depends(get_db),
        messaging: MessagingService = Depends(get_messaging_service)
):
    """Process pending reminders in the queue"""
    stats = run_reminder_dispatch(db, messaging=messaging)
    logger.info(f"[Cron] Reminder queue processed: {stats}")
    return {
        "success": True,
        "message": "Reminder queue processed successfully",
        "stats": stats,
    }
