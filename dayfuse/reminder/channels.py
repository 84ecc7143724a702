"""
Device capability detection and delivery channel selection.

The selector is a pure function of :class:`DeviceCapability`.  Callers
re-derive the capability (``with_permission`` / ``with_push_subscription``)
whenever permission or push state changes, and the scheduler queries the
selector again on every ``schedule_reminder`` call.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

from dayfuse.configs import configs
from dayfuse.reminder.models import Channel, PermissionState

logger = logging.getLogger(__name__)

_IOS_DEVICE_RE = re.compile(r"iPad|iPhone|iPod")
_IOS_VERSION_RE = re.compile(r"OS (\d+)_(\d+)(?:_(\d+))?")

# Order matters: Edge and Chrome on iOS also carry "Safari", Edge carries "Chrome"
_BROWSER_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("Edge", ("Edg/", "EdgA/", "EdgiOS/", "Edge/")),
    ("Firefox", ("Firefox/", "FxiOS/")),
    ("Chrome", ("Chrome/", "CriOS/")),
    ("Safari", ("Safari/",)),
)


@dataclass(frozen=True)
class DeviceCapability:
    supports_push: bool = False
    is_ios: bool = False
    ios_version: tuple[int, int] | None = None
    is_pwa_installed: bool = False
    is_native: bool = False
    has_notification_api: bool = False
    has_service_worker: bool = False
    has_push_manager: bool = False
    permission: PermissionState = PermissionState.default
    push_subscribed: bool = False
    browser_name: str = "Unknown"

    @property
    def permission_granted(self) -> bool:
        return self.permission is PermissionState.granted

    def with_permission(self, permission: PermissionState) -> DeviceCapability:
        return replace(self, permission=permission)

    def with_push_subscription(self, subscribed: bool) -> DeviceCapability:
        return replace(self, push_subscribed=subscribed)


def is_ios_user_agent(user_agent: str) -> bool:
    return bool(_IOS_DEVICE_RE.search(user_agent))


def parse_ios_version(user_agent: str) -> tuple[int, int] | None:
    """``(major, minor)`` of an iOS user agent, ``None`` elsewhere."""
    if not is_ios_user_agent(user_agent):
        return None
    match = _IOS_VERSION_RE.search(user_agent)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def detect_browser(user_agent: str) -> str:
    for name, markers in _BROWSER_MARKERS:
        if any(marker in user_agent for marker in markers):
            return name
    return "Unknown"


def detect_capabilities(
    user_agent: str,
    *,
    has_notification_api: bool = False,
    has_service_worker: bool = False,
    has_push_manager: bool = False,
    is_standalone: bool = False,
    is_native: bool = False,
    permission: PermissionState = PermissionState.default,
    push_subscribed: bool = False,
    min_ios_push_version: tuple[int, int] | None = None,
) -> DeviceCapability:
    """Derive a :class:`DeviceCapability` from what the runtime reports.

    iOS only exposes Web Push to home-screen web apps from 16.4 on, so an
    iOS browser tab never counts as push capable.
    """
    min_ios = min_ios_push_version or configs.Reminder.MinIOSPushVersion
    is_ios = is_ios_user_agent(user_agent)
    ios_version = parse_ios_version(user_agent)

    web_push = has_notification_api and has_service_worker and has_push_manager
    if is_ios:
        web_push = web_push and is_standalone and ios_version is not None and ios_version >= tuple(min_ios)

    capability = DeviceCapability(
        supports_push=web_push and not is_native,
        is_ios=is_ios,
        ios_version=ios_version,
        is_pwa_installed=is_standalone,
        is_native=is_native,
        has_notification_api=has_notification_api,
        has_service_worker=has_service_worker,
        has_push_manager=has_push_manager,
        permission=permission,
        push_subscribed=push_subscribed,
        browser_name=detect_browser(user_agent),
    )
    logger.debug(f"Detected device capability: {capability}")
    return capability


def select_channel(capability: DeviceCapability) -> Channel:
    """Pick the strongest delivery channel the device can honour."""
    granted = capability.permission_granted

    if capability.supports_push and granted and capability.push_subscribed:
        return Channel.server_durable
    if capability.is_native and granted:
        return Channel.native_os
    if capability.has_notification_api and capability.has_service_worker and granted:
        return Channel.service_worker
    if capability.has_notification_api and granted:
        return Channel.local_timer
    return Channel.calendar_fallback
