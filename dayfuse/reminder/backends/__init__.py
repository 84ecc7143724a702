from .base import DeliveryBackend, FireListener
from .calendar_fallback import CalendarFallbackBackend
from .local_timer import CountdownBackend, LocalTimerBackend
from .native_os import NativeOSBackend
from .server_durable import ServerDurableBackend
from .service_worker import ServiceWorkerBackend

__all__ = [
    "CalendarFallbackBackend",
    "CountdownBackend",
    "DeliveryBackend",
    "FireListener",
    "LocalTimerBackend",
    "NativeOSBackend",
    "ServerDurableBackend",
    "ServiceWorkerBackend",
]
