"""Bot assembly — wires store, channels, pipeline and dispatcher together.

``Bot`` owns the long-lived collaborators and exposes ``run`` and
``shutdown``.  Components receive their configuration explicitly; the
bot is the only place that reads ``BotSettings``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from bookdrop.channels import EventSource, Notifier, PayloadFetcher, Transmitter
from bookdrop.config import BotSettings
from bookdrop.core.commands import CommandRouter
from bookdrop.core.dispatcher import BoundedDispatcher
from bookdrop.core.pipeline import DeliveryPipeline
from bookdrop.core.record_store import RecordStore
from bookdrop.models.config import DeliveryConfig
from bookdrop.models.outcomes import StopReason

logger = logging.getLogger(__name__)


class Bot:
    """A fully wired bookdrop bot.

    Parameters
    ----------
    config:
        Core configuration shared by every component.
    store:
        The Record Store.
    source, fetcher, notifier:
        Inbound side; in production all three are one ``TelegramChannel``.
    transmitter:
        Outbound delivery channel.
    poll_timeout:
        Long-poll timeout for the dispatcher loop.
    """

    def __init__(
        self,
        config: DeliveryConfig,
        store: RecordStore,
        source: EventSource,
        fetcher: PayloadFetcher,
        notifier: Notifier,
        transmitter: Transmitter,
        *,
        poll_timeout: float = 60.0,
    ) -> None:
        self.config = config
        self.store = store
        self.pipeline = DeliveryPipeline(config, store, fetcher, transmitter, notifier)
        self.commands = CommandRouter(config, store, notifier)
        self.dispatcher = BoundedDispatcher(
            config,
            source,
            self.pipeline,
            self.commands,
            notifier,
            poll_timeout=poll_timeout,
        )
        self._closers: list[Callable[[], None]] = []
        self._identity: Callable[[], str] | None = None

    @classmethod
    def from_settings(cls, settings: BotSettings) -> Bot:
        """Build the production bot: Telegram in, SES out, SQLite store."""
        from bookdrop.channels.ses import SesTransmitter
        from bookdrop.channels.telegram import TelegramChannel

        settings.require_credentials()
        config = settings.to_delivery_config()
        telegram = TelegramChannel(
            settings.telegram_token,
            network_timeout=config.network_timeout,
            download_timeout=config.download_timeout,
        )
        transmitter = SesTransmitter(
            config.sender_address,
            region_name=settings.aws_region,
            timeout=config.network_timeout,
        )
        bot = cls(
            config,
            RecordStore(settings.db_path),
            source=telegram,
            fetcher=telegram,
            notifier=telegram,
            transmitter=transmitter,
            poll_timeout=settings.poll_timeout,
        )
        bot._closers.append(telegram.close)
        bot._identity = lambda: "@" + telegram.get_me().get("username", "")
        return bot

    def identity(self) -> str:
        """Return the bot's public handle, or ``"unknown"`` if not wired."""
        if self._identity is None:
            return "unknown"
        return self._identity()

    def run(self, stop: threading.Event) -> StopReason:
        """Dispatch until *stop* is set or the source closes."""
        return self.dispatcher.run(stop)

    def shutdown(self, timeout: float | None = None) -> bool:
        """Wait for in-flight deliveries, then release channel resources.

        Returns ``True`` if every worker finished within *timeout*.
        """
        idle = self.dispatcher.wait_idle(timeout)
        if not idle:
            logger.warning("Shutdown timed out with %d task(s) in flight", self.dispatcher.in_flight)
        for close in self._closers:
            close()
        return idle
