from pydantic import BaseModel, Field


class PushConfig(BaseModel):
    """Web Push delivery and durable sweep configuration.

    - ``SweepMode``: ``inprocess`` runs the sweep as an asyncio task inside the
      API process; ``celery`` leaves it to the Celery beat schedule.
    - ``MaxDeliveryAttempts``: ``None`` retries a due notification on every
      sweep until it is sent or cancelled.  Set an integer to mark rows as
      abandoned after that many failed sweeps.
    """

    Enable: bool = Field(default=True, description="Enable Web Push delivery")

    # VAPID (Web Push): dev defaults are a pre-generated key pair.
    # Production MUST override via DAYFUSE_Push_VapidPrivateKey / VapidPublicKey.
    VapidPrivateKey: str = Field(
        default="2-L4pDcO9Ue2TdQ5qxN4ItcV6srey4B686z58pZs_Og",
        description="VAPID private key (URL-safe base64, 32-byte raw scalar)",
    )
    VapidPublicKey: str = Field(
        default="BJ7KlXK_eB1HOCpxMk3sDTyhVY8G-Kc0nyK51UtFLgRprfNOcVa-0IBzW29WRY9MOHKMwyhli3WKAHoIh6ncpts",
        description="VAPID public key (URL-safe base64, 65-byte uncompressed EC point)",
    )
    VapidContactEmail: str = Field(default="contact@dayfuse.app", description="VAPID contact email (mailto:...)")

    Icon: str = Field(default="/dayfuse-logo-192.png", description="Notification icon URL")
    Badge: str = Field(default="/dayfuse-logo-192.png", description="Notification badge URL")
    ClickUrl: str = Field(default="/dashboard", description="URL opened when the notification is clicked")
    Ttl: int = Field(default=3600, description="Push service TTL in seconds")

    SweepIntervalSecs: float = Field(default=30.0, description="Seconds between durable notification sweeps")
    SweepMode: str = Field(default="inprocess", description="inprocess | celery")
    SweepBatchSize: int = Field(default=200, description="Max due notifications handled per sweep")
    MaxDeliveryAttempts: int | None = Field(
        default=None,
        description="Failed sweeps before a notification is abandoned (None = retry forever)",
    )
