"""
Template registry: per-event, per-channel renderers.

A renderer is a plain function that takes the event's data payload and
returns the channel content as a mapping:

    email  -> {"subject": str, "body_html": str}
    in-app -> {"title": str, "message": str, "link": str}

Renderers are optional per channel. The dispatcher skips channels that have
no renderer for an event and rejects events with no renderer at all.

Renderers must be pure functions of their input: the dispatcher calls them
from worker threads.

Usage:
    from notifications.registry import default_registry

    @default_registry.register("GRADE_POSTED", Channel.INAPP)
    def grade_posted_inapp(data):
        return {
            "title": "Grade Posted",
            "message": f"You scored {data['percentage']}%",
            "link": "/progress",
        }

    content = default_registry.render("GRADE_POSTED", Channel.INAPP, data)
    content.title
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from notifications.exceptions import ChannelError
from notifications.models import Channel

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from typing import Any

    RenderFn = Callable[[Mapping[str, Any]], Mapping[str, Any]]

logger = logging.getLogger(__name__)

# Channel attempt order for one recipient
CHANNEL_ORDER = (Channel.EMAIL, Channel.INAPP)


@dataclass(frozen=True)
class EmailContent:
    """Rendered email."""

    subject: str
    body_html: str


@dataclass(frozen=True)
class InAppContent:
    """Rendered inbox entry."""

    title: str
    message: str
    link: str = ""


class TemplateRegistry:
    """
    Maps (event_code, channel) to a renderer.

    Registration normally happens once at startup (NotificationsConfig.ready
    imports notifications.renderers); lookups afterwards are read-only.
    """

    def __init__(self):
        self._renderers: dict[tuple[str, str], RenderFn] = {}
        self._lock = threading.Lock()

    def register(self, event_code: str, channel: str, render_fn: RenderFn | None = None):
        """
        Bind a renderer to an event+channel pair.

        Can be called directly or used as a decorator:

            registry.register("ACCOUNT_CREATED", Channel.EMAIL, render_welcome)

            @registry.register("ACCOUNT_CREATED", Channel.EMAIL)
            def render_welcome(data): ...

        Raises:
            ValueError: Unknown channel
        """
        if channel not in Channel.values:
            raise ValueError(f"Unknown channel: {channel!r}")

        def decorator(fn: RenderFn) -> RenderFn:
            with self._lock:
                if (str(event_code), str(channel)) in self._renderers:
                    logger.debug(f"Replacing {channel} renderer for {event_code}")
                self._renderers[(str(event_code), str(channel))] = fn
            return fn

        if render_fn is not None:
            return decorator(render_fn)
        return decorator

    def unregister(self, event_code: str, channel: str) -> None:
        with self._lock:
            self._renderers.pop((str(event_code), str(channel)), None)

    def get(self, event_code: str, channel: str) -> RenderFn | None:
        return self._renderers.get((str(event_code), str(channel)))

    def channels_for(self, event_code: str) -> list[str]:
        """Channels with a renderer for event_code, email first."""
        return [
            channel
            for channel in CHANNEL_ORDER
            if (str(event_code), channel.value) in self._renderers
        ]

    def is_registered(self, event_code: str) -> bool:
        return bool(self.channels_for(event_code))

    def render(
        self,
        event_code: str,
        channel: str,
        data: Mapping[str, Any],
    ) -> EmailContent | InAppContent:
        """
        Render content for one channel.

        Raises:
            ChannelError: No renderer, missing data key, or malformed output
        """
        render_fn = self.get(event_code, channel)
        if render_fn is None:
            raise ChannelError(
                f"No {channel} renderer registered for {event_code}",
                error_code="RENDERER_NOT_FOUND",
            )

        try:
            output = render_fn(data)
        except KeyError as e:
            raise ChannelError(
                f"Missing template data key {e} for {event_code}",
                error_code="TEMPLATE_DATA_MISSING",
            ) from e
        except Exception as e:
            raise ChannelError(
                f"Template render failed for {event_code}: {e}",
                error_code="TEMPLATE_RENDER_FAILED",
            ) from e

        try:
            if channel == Channel.EMAIL:
                return EmailContent(
                    subject=str(output["subject"]),
                    body_html=str(output["body_html"]),
                )
            return InAppContent(
                title=str(output["title"]),
                message=str(output["message"]),
                link=str(output.get("link") or ""),
            )
        except (KeyError, TypeError) as e:
            raise ChannelError(
                f"Renderer for {event_code}/{channel} returned malformed content: {e}",
                error_code="TEMPLATE_OUTPUT_INVALID",
            ) from e


default_registry = TemplateRegistry()
