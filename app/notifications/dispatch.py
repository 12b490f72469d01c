"""
Notification dispatcher.

Fans one catalog event out to recipients over every channel that has a
registered renderer, writing one NotificationLog row per channel attempt.

Flow for notify_batch():
    1. Validate the event code, that at least one channel has a renderer,
       the recipients and the metadata (failure here returns
       ServiceResult.failure with no log rows)
    2. Resolve email preferences for all recipients in one query
    3. Submit one job per recipient to a bounded ThreadPoolExecutor;
       the job derives the payload, renders content and sends the email
    4. As jobs complete, write log rows and inbox entries on the calling
       thread and accumulate a DispatchSummary

Design Decisions:
    - Worker threads never touch the database
    - A disabled email preference counts as skipped, with no log row
    - In-app delivery is not preference gated
    - metadata["test"] suppresses email in the production environment
    - No ordering across recipients and no deduplication
    - Never raises: every failure is logged and counted

Usage:
    from notifications.dispatch import Recipient, get_dispatcher

    result = get_dispatcher().notify_batch(
        "MODULE_PUBLISHED",
        [Recipient.from_user(s) for s in students],
        lambda r: {"student_name": r.name, **module_data},
        metadata={"module_id": module.id},
    )
    result.data.sent
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder

from core.services import BaseService, ServiceResult

from notifications.catalog import EventCatalog
from notifications.channels import EmailChannel, InAppChannel, record_attempt
from notifications.exceptions import ChannelError, ValidationError
from notifications.models import Channel, DeliveryStatus
from notifications.preferences import EffectivePreference, PreferenceResolver
from notifications.registry import EmailContent, InAppContent, default_registry

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from authentication.models import User
    from toolkit.protocols import EmailSender

    from notifications.registry import TemplateRegistry

    DataFn = Callable[["Recipient"], dict[str, Any]]

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 5
PRODUCTION = "production"


@dataclass(frozen=True)
class Recipient:
    """
    Addressable notification recipient.

    Attributes:
        id: User id (scopes inbox and log rows)
        type: student, teacher or admin
        email: Address for the email channel
        name: Display name used by payload builders
        reg_no: Student registration number, if any
        section: Student section, if any
    """

    id: int
    type: str
    email: str = ""
    name: str = ""
    reg_no: str = ""
    section: str = ""

    @classmethod
    def from_user(cls, user: User) -> Recipient:
        return cls(
            id=user.id,
            type=user.role,
            email=user.email,
            name=user.get_full_name(),
            reg_no=user.reg_no or "",
            section=user.section or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Recipient:
        return cls(**{key: data[key] for key in cls.__dataclass_fields__ if key in data})


@dataclass
class DispatchSummary:
    """
    Outcome of one dispatch call.

    Counts are per (recipient, channel) attempt:
    attempted == sent + failed + skipped.

    Attributes:
        errors: One entry per failed attempt:
            {"recipient_id", "channel", "error"}
    """

    attempted: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def record_sent(self) -> None:
        self.attempted += 1
        self.sent += 1

    def record_skipped(self) -> None:
        self.attempted += 1
        self.skipped += 1

    def record_failed(self, recipient: Recipient, channel: str, error: str) -> None:
        self.attempted += 1
        self.failed += 1
        self.errors.append(
            {"recipient_id": recipient.id, "channel": str(channel), "error": error}
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ChannelOutcome:
    """Worker result for one channel of one recipient."""

    channel: str
    content: EmailContent | InAppContent | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.content is not None and not self.error


@dataclass
class RecipientOutcome:
    """Worker result for one recipient."""

    recipient: Recipient
    channels: list[ChannelOutcome] = field(default_factory=list)


class NotificationDispatcher(BaseService):
    """
    Fan-out engine over the email and in-app channels.

    One instance is built at startup by NotificationsConfig.ready() and
    shared; it holds no per-dispatch state.
    """

    def __init__(
        self,
        transport: EmailSender,
        registry: TemplateRegistry | None = None,
        max_workers: int | None = None,
        environment: str | None = None,
    ):
        self.email_channel = EmailChannel(transport)
        self.registry = registry or default_registry
        self.max_workers = max(1, max_workers or DEFAULT_MAX_WORKERS)
        self.environment = environment

    @classmethod
    def from_settings(cls, transport: EmailSender) -> NotificationDispatcher:
        config = settings.NOTIFICATIONS
        return cls(
            transport=transport,
            max_workers=config.get("MAX_WORKERS", DEFAULT_MAX_WORKERS),
            environment=config.get("ENVIRONMENT"),
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def notify(
        self,
        event_code: str,
        recipient: Recipient,
        data: dict[str, Any],
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult[DispatchSummary]:
        """
        Deliver one event to one recipient.

        Returns:
            ServiceResult with DispatchSummary if the event was dispatchable

        Error codes:
            UNKNOWN_EVENT: event_code is not in the catalog
            EVENT_NOT_REGISTERED: No channel has a renderer for the event
            INVALID_METADATA: metadata is not a JSON-serializable mapping
            INVALID_RECIPIENT: recipients holds something other than Recipient
        """
        return self.notify_batch(event_code, [recipient], lambda _: data, metadata)

    def notify_batch(
        self,
        event_code: str,
        recipients: Iterable[Recipient],
        data_fn: DataFn,
        metadata: dict[str, Any] | None = None,
    ) -> ServiceResult[DispatchSummary]:
        """
        Deliver one event to many recipients through the worker pool.

        Args:
            event_code: Catalog event code
            recipients: Recipients to notify
            data_fn: Builds the template payload for one recipient; runs in a
                worker thread and must not query the database
            metadata: Context stored on every log and inbox row

        Returns:
            ServiceResult with DispatchSummary if the event was dispatchable

        Error codes:
            UNKNOWN_EVENT: event_code is not in the catalog
            EVENT_NOT_REGISTERED: No channel has a renderer for the event
            INVALID_METADATA: metadata is not a JSON-serializable mapping
            INVALID_RECIPIENT: recipients holds something other than Recipient
        """
        event_code = str(event_code)

        try:
            event, channels = self._validate(event_code)
            metadata = self._clean_metadata(metadata)
            recipients = self._clean_recipients(recipients)
        except ValidationError as e:
            logger.warning(f"Rejected dispatch of {event_code}: {e.message}")
            return ServiceResult.from_exception(e)
        except Exception as e:
            return self.handle_exception(e, f"Dispatch validation failed for {event_code}")

        summary = DispatchSummary()
        if not recipients:
            return ServiceResult.success(summary)

        email_allowed = self._email_allowed(event, recipients, channels, metadata)

        plans = []
        for recipient in recipients:
            plan = []
            for channel in channels:
                if channel == Channel.EMAIL and not email_allowed.get((recipient.id, recipient.type)):
                    logger.debug(f"Skipping email {event_code} for user {recipient.id}")
                    summary.record_skipped()
                    continue
                plan.append(channel)
            plans.append(plan)

        width = min(self.max_workers, len(recipients))
        with ThreadPoolExecutor(max_workers=width, thread_name_prefix="notify") as executor:
            futures = {
                executor.submit(self._prepare, event_code, recipient, plan, data_fn): (recipient, plan)
                for recipient, plan in zip(recipients, plans)
                if plan
            }
            for future in as_completed(futures):
                recipient, plan = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.exception(f"Dispatch job crashed for user {recipient.id} ({event_code})")
                    outcome = RecipientOutcome(
                        recipient=recipient,
                        channels=[
                            ChannelOutcome(channel=channel, error=str(e) or type(e).__name__)
                            for channel in plan
                        ],
                    )
                self._record(event_code, outcome, metadata, summary)

        logger.info(
            f"Dispatched {event_code} to {len(recipients)} recipients: "
            f"sent={summary.sent} failed={summary.failed} skipped={summary.skipped}"
        )
        return ServiceResult.success(summary)

    # -------------------------------------------------------------------------
    # Main-thread helpers
    # -------------------------------------------------------------------------

    def _validate(self, event_code: str):
        """
        Catalog event and renderable channels for event_code.

        Raises:
            ValidationError: Unknown code, or no renderer on any channel
        """
        event = EventCatalog.get(event_code)
        if event is None:
            raise ValidationError(f"Unknown event code: {event_code}", error_code="UNKNOWN_EVENT")

        channels = self.registry.channels_for(event_code)
        if not channels:
            raise ValidationError(
                f"No renderer registered for event: {event_code}",
                error_code="EVENT_NOT_REGISTERED",
            )
        return event, channels

    @staticmethod
    def _clean_metadata(metadata: Mapping[str, Any] | None) -> dict[str, Any]:
        """
        JSON-safe copy of metadata for the log and inbox rows.

        Dates, decimals and UUIDs are converted the way DjangoJSONEncoder
        writes them.

        Raises:
            ValidationError: Not a mapping, or holds values JSON cannot store
        """
        if metadata is None:
            return {}
        if not isinstance(metadata, Mapping):
            raise ValidationError(
                f"Metadata must be a mapping, got {type(metadata).__name__}",
                error_code="INVALID_METADATA",
            )
        try:
            return json.loads(json.dumps(dict(metadata), cls=DjangoJSONEncoder))
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Metadata is not JSON serializable: {e}",
                error_code="INVALID_METADATA",
            ) from e

    @staticmethod
    def _clean_recipients(recipients: Iterable[Recipient]) -> list[Recipient]:
        """
        Raises:
            ValidationError: Not iterable, or an entry is not a Recipient
        """
        try:
            recipients = list(recipients)
        except TypeError as e:
            raise ValidationError(
                "Recipients must be an iterable of Recipient",
                error_code="INVALID_RECIPIENT",
            ) from e

        for index, recipient in enumerate(recipients):
            if not isinstance(recipient, Recipient):
                raise ValidationError(
                    f"Recipient at position {index} is {type(recipient).__name__}, not Recipient",
                    error_code="INVALID_RECIPIENT",
                )
        return recipients

    def _email_allowed(
        self,
        event,
        recipients: list[Recipient],
        channels: list[str],
        metadata: dict[str, Any],
    ) -> dict[tuple[int, str], bool]:
        """Email gate per (user_id, user_type): preference and test suppression."""
        if Channel.EMAIL not in channels:
            return {}

        if metadata.get("test") and self.environment == PRODUCTION:
            logger.info(f"Test email for {event.code} suppressed in production")
            return {}

        keys = [(r.id, r.type) for r in recipients]
        try:
            prefs = PreferenceResolver.resolve_bulk(keys, event)
        except Exception:
            logger.exception(f"Preference lookup failed for {event.code}; using catalog default")
            default = EffectivePreference.default_for(event)
            prefs = {key: default for key in keys}
        return {key: pref.email_enabled for key, pref in prefs.items()}

    def _record(
        self,
        event_code: str,
        outcome: RecipientOutcome,
        metadata: dict[str, Any],
        summary: DispatchSummary,
    ) -> None:
        """Persist one recipient's channel outcomes."""
        recipient = outcome.recipient
        for result in outcome.channels:
            channel = result.channel
            try:
                if result.ok and channel == Channel.INAPP:
                    content = result.content
                    InAppChannel.create(
                        recipient,
                        content.title,
                        content.message,
                        content.link,
                        event_code,
                        metadata,
                    )
            except Exception as e:
                logger.exception(f"Inbox write failed for user {recipient.id} ({event_code})")
                result = ChannelOutcome(channel=channel, error=str(e) or type(e).__name__)

            if result.ok:
                subject, message = self._describe(result.content)
                status = DeliveryStatus.SENT
            else:
                subject, message = "", ""
                status = DeliveryStatus.FAILED
                logger.warning(f"{channel} {event_code} to user {recipient.id} failed: {result.error}")

            try:
                record_attempt(
                    event_code,
                    recipient,
                    channel,
                    status,
                    subject=subject,
                    message=message,
                    metadata=metadata,
                    error=result.error,
                )
            except Exception:
                logger.exception(f"Could not write log row for user {recipient.id} ({event_code})")

            if result.ok:
                summary.record_sent()
            else:
                summary.record_failed(recipient, channel, result.error)

    @staticmethod
    def _describe(content: EmailContent | InAppContent) -> tuple[str, str]:
        if isinstance(content, EmailContent):
            return content.subject, content.body_html
        return content.title, content.message

    # -------------------------------------------------------------------------
    # Worker
    # -------------------------------------------------------------------------

    def _prepare(
        self,
        event_code: str,
        recipient: Recipient,
        channels: list[str],
        data_fn: DataFn,
    ) -> RecipientOutcome:
        """
        Derive the payload, render and send email for one recipient.

        Runs in a worker thread; each channel is isolated from the others.
        """
        outcome = RecipientOutcome(recipient=recipient)

        try:
            data = data_fn(recipient)
        except Exception as e:
            logger.exception(f"Payload builder failed for user {recipient.id} ({event_code})")
            error = f"Payload error: {e}"
            outcome.channels = [ChannelOutcome(channel=c, error=error) for c in channels]
            return outcome

        for channel in channels:
            try:
                content = self.registry.render(event_code, channel, data)
                if channel == Channel.EMAIL:
                    self.email_channel.send(content.subject, content.body_html, recipient.email)
                outcome.channels.append(ChannelOutcome(channel=channel, content=content))
            except ChannelError as e:
                outcome.channels.append(ChannelOutcome(channel=channel, error=e.message))
            except Exception as e:
                logger.exception(f"Unexpected {channel} error for user {recipient.id} ({event_code})")
                outcome.channels.append(
                    ChannelOutcome(channel=channel, error=str(e) or type(e).__name__)
                )

        return outcome


_dispatcher: NotificationDispatcher | None = None


def configure_dispatcher(dispatcher: NotificationDispatcher | None) -> None:
    """Install the process-wide dispatcher (called from NotificationsConfig.ready)."""
    global _dispatcher
    _dispatcher = dispatcher


def get_dispatcher() -> NotificationDispatcher:
    """The process-wide dispatcher, built from settings on first use if unset."""
    global _dispatcher
    if _dispatcher is None:
        from toolkit.services.email import EmailService

        _dispatcher = NotificationDispatcher.from_settings(EmailService.from_settings())
    return _dispatcher
