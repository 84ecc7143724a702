from .payload import build_reminder_payload, build_simple_payload, reminder_text
from .service import DeliveryOutcome, DeliveryReport, PushNotificationService, SweepReport
from .sweeper import run_sweep_once, start_sweeper, stop_sweeper
from .vapid import ensure_vapid_keys, get_vapid_public_key, send_push

__all__ = [
    "DeliveryOutcome",
    "DeliveryReport",
    "PushNotificationService",
    "SweepReport",
    "build_reminder_payload",
    "build_simple_payload",
    "ensure_vapid_keys",
    "get_vapid_public_key",
    "reminder_text",
    "run_sweep_once",
    "send_push",
    "start_sweeper",
    "stop_sweeper",
]
