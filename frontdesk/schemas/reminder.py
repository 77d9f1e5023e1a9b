from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ReminderItem(BaseModel):
    id: int
    booking_id: int
    reminder_type: str
    reminder_time: datetime


class ScheduledJobItem(BaseModel):
    id: int
    job_type: str
    booking_id: Optional[int] = None
    phone: str
    run_at: datetime


class RemindersResponse(BaseModel):
    reminders: List[ReminderItem]
    jobs: List[ScheduledJobItem]


class SchedulerTickResponse(BaseModel):
    jobs_run: int
    reminders_sent: int
    service_reminders_sent: int
    tokens_swept: int = 0
