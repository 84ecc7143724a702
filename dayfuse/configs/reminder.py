from pydantic import BaseModel, Field


class ReminderConfig(BaseModel):
    """Client-side reminder engine defaults."""

    FollowupEnabled: bool = Field(default=True, description="Arm a follow-up reminder after the primary one")
    FollowupDelaySecs: int = Field(default=60, description="Delay between primary and follow-up reminder")
    SnoozeMinutes: int = Field(default=10, description="Default snooze length")
    CalendarEventMinutes: int = Field(default=30, description="Duration of fallback calendar events")
    MinIOSPushVersion: tuple[int, int] = Field(
        default=(16, 4),
        description="First iOS version with Web Push for home-screen web apps",
    )
    ApiBaseUrl: str = Field(default="http://localhost:5000", description="Relay server base URL used by clients")
    Timezone: str | None = Field(
        default=None,
        description="IANA zone used to resolve due dates; None uses the host's local zone",
    )
    StorePath: str | None = Field(
        default=None,
        description="JSON file pending reminders are persisted to; None keeps them in memory only",
    )
