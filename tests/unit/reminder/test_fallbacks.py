"""Unit tests for degradation notices and the calendar fallback bundle."""

from datetime import datetime, timezone

from dayfuse.reminder.channels import DeviceCapability
from dayfuse.reminder.fallbacks import NoticeKind, NoticeLevel, build_calendar_fallback, fallback_notices
from dayfuse.reminder.models import Channel, PermissionState, ReminderPayload
from tests.fixtures.reminder import browser_capability


def _kinds(capability: DeviceCapability, channel: Channel | None = None) -> list[NoticeKind]:
    return [n.kind for n in fallback_notices(capability, channel)]


class TestFallbackNotices:
    def test_capable_browser_gets_no_notices(self) -> None:
        assert fallback_notices(browser_capability(push_subscribed=True)) == []

    def test_ios_not_installed_gets_install_instructions(self) -> None:
        cap = DeviceCapability(is_ios=True, ios_version=(17, 2), is_pwa_installed=False)
        assert _kinds(cap) == [NoticeKind.ios_install, NoticeKind.calendar_fallback]

    def test_installed_old_ios_gets_version_warning(self) -> None:
        cap = DeviceCapability(is_ios=True, ios_version=(16, 1), is_pwa_installed=True)
        notices = fallback_notices(cap)
        assert [n.kind for n in notices] == [NoticeKind.ios_version, NoticeKind.calendar_fallback]
        assert notices[0].level is NoticeLevel.warning
        assert "16.4" in notices[0].message

    def test_limited_desktop_browser(self) -> None:
        cap = DeviceCapability(browser_name="Unknown")
        assert _kinds(cap) == [NoticeKind.limited_browser, NoticeKind.calendar_fallback]

    def test_explicit_channel_overrides_selection(self) -> None:
        cap = browser_capability(permission=PermissionState.granted)
        assert _kinds(cap, Channel.calendar_fallback) == [NoticeKind.calendar_fallback]


class TestBuildCalendarFallback:
    def test_bundle_contents(self) -> None:
        payload = ReminderPayload(
            title="DayFuse Task Reminder",
            body="Time to work on: Plan trip",
            task_id="t-9",
            task_title="Plan trip",
            description="Book flights",
        )
        trigger = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)
        fallback = build_calendar_fallback(payload, trigger, DeviceCapability(), now=trigger)

        assert fallback.task_id == "t-9"
        assert "UID:t-9@dayfuse.app" in fallback.ics
        assert "SUMMARY:Plan trip" in fallback.ics
        assert fallback.filename == "plan_trip_reminder.ics"
        assert fallback.google_url.startswith("https://calendar.google.com/")
        assert fallback.outlook_url.startswith("https://outlook.live.com/")
        assert NoticeKind.calendar_fallback in [n.kind for n in fallback.notices]
