"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for stores, external clients, services and handlers.
Components are created on-demand and cached for reuse throughout the application.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from ..application.commands.operator_commands import OperatorCommandHandler
    from ..application.commands.submit_request import SubmitRequestHandler
    from ..application.interfaces.identity_directory import IdentityDirectory
    from ..application.interfaces.metadata_resolver import MetadataResolver
    from ..application.interfaces.track_catalog import TrackCatalog
    from ..application.queries.get_archive import GetArchiveHandler
    from ..application.queries.get_archive_stats import GetArchiveStatsHandler
    from ..application.queries.get_queue import GetQueueHandler
    from ..application.services.lifecycle_coordinator import LifecycleCoordinator
    from ..application.services.track_matcher import TrackMatcher
    from ..domain.requests.repository import EligibilityStore, RequestStore
    from ..domain.shared.events import EventBus
    from ..infrastructure.persistence.database import Database
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    This container manages all application dependencies and their lifecycle.
    Components are lazily initialized when first accessed.
    """

    settings: Settings

    # Persistence layer
    _database: Database | None = None
    _request_store: RequestStore | None = None
    _eligibility_store: EligibilityStore | None = None

    # Infrastructure adapters
    _event_bus: EventBus | None = None
    _metadata_resolver: MetadataResolver | None = None
    _track_catalog: TrackCatalog | None = None
    _identity_directory: IdentityDirectory | None = None

    # Application services
    _track_matcher: TrackMatcher | None = None
    _coordinator: LifecycleCoordinator | None = None

    # Command handlers
    _submit_request_handler: SubmitRequestHandler | None = None
    _operator_command_handler: OperatorCommandHandler | None = None

    # Query handlers
    _get_queue_handler: GetQueueHandler | None = None
    _get_archive_handler: GetArchiveHandler | None = None
    _get_archive_stats_handler: GetArchiveStatsHandler | None = None

    # === Database ===

    @property
    def database(self) -> Database:
        """Get the database connection manager."""
        if self._database is None:
            from ..infrastructure.persistence.database import Database

            self._database = Database(self.settings.database.url, settings=self.settings.database)
        return self._database

    # === Stores ===

    @property
    def request_store(self) -> RequestStore:
        if self._request_store is None:
            from ..infrastructure.persistence.repositories.request_repository import (
                SQLiteRequestStore,
            )

            self._request_store = SQLiteRequestStore(self.database)
        return self._request_store

    @property
    def eligibility_store(self) -> EligibilityStore:
        if self._eligibility_store is None:
            from ..infrastructure.persistence.repositories.eligibility_repository import (
                SQLiteEligibilityStore,
            )

            self._eligibility_store = SQLiteEligibilityStore(self.database)
        return self._eligibility_store

    # === Infrastructure Adapters ===

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import get_event_bus

            self._event_bus = get_event_bus()
        return self._event_bus

    @property
    def metadata_resolver(self) -> MetadataResolver:
        """Data API resolver when an API key is configured, yt-dlp otherwise."""
        if self._metadata_resolver is None:
            youtube = self.settings.youtube
            if youtube.use_api:
                from ..infrastructure.youtube.youtube_resolver import YouTubeDataResolver

                self._metadata_resolver = YouTubeDataResolver(youtube)
            else:
                from ..infrastructure.youtube.ytdlp_resolver import YtDlpMetadataResolver

                if youtube.backend == "auto":
                    logger.info(ErrorMessages.YOUTUBE_API_KEY_NOT_SET)
                self._metadata_resolver = YtDlpMetadataResolver(youtube)
        return self._metadata_resolver

    @property
    def track_catalog(self) -> TrackCatalog:
        if self._track_catalog is None:
            from ..infrastructure.spotify.spotify_catalog import SpotifyCatalog

            self._track_catalog = SpotifyCatalog(self.settings.spotify)
        return self._track_catalog

    @property
    def identity_directory(self) -> IdentityDirectory:
        if self._identity_directory is None:
            from ..infrastructure.twitch.identity_directory import TwitchIdentityDirectory

            self._identity_directory = TwitchIdentityDirectory(self.settings.twitch)
        return self._identity_directory

    # === Application Services ===

    @property
    def track_matcher(self) -> TrackMatcher:
        if self._track_matcher is None:
            from ..application.services.track_matcher import TrackMatcher

            self._track_matcher = TrackMatcher(
                self.track_catalog,
                max_results=self.settings.spotify.max_results_per_query,
            )
        return self._track_matcher

    @property
    def coordinator(self) -> LifecycleCoordinator:
        if self._coordinator is None:
            from ..application.services.lifecycle_coordinator import LifecycleCoordinator

            self._coordinator = LifecycleCoordinator(
                request_store=self.request_store,
                eligibility_store=self.eligibility_store,
                event_bus=self.event_bus,
                standard_max_duration=self.settings.queue.standard_max_duration_seconds,
                elevated_max_duration=self.settings.queue.elevated_max_duration_seconds,
            )
        return self._coordinator

    # === Command Handlers ===

    @property
    def submit_request_handler(self) -> SubmitRequestHandler:
        if self._submit_request_handler is None:
            from ..application.commands.submit_request import SubmitRequestHandler

            self._submit_request_handler = SubmitRequestHandler(
                coordinator=self.coordinator,
                resolver=self.metadata_resolver,
                matcher=self.track_matcher,
                identity_directory=self.identity_directory,
                event_bus=self.event_bus,
            )
        return self._submit_request_handler

    @property
    def operator_command_handler(self) -> OperatorCommandHandler:
        if self._operator_command_handler is None:
            from ..application.commands.operator_commands import OperatorCommandHandler

            self._operator_command_handler = OperatorCommandHandler(
                coordinator=self.coordinator,
                catalog=self.track_catalog,
            )
        return self._operator_command_handler

    # === Query Handlers ===

    @property
    def get_queue_handler(self) -> GetQueueHandler:
        if self._get_queue_handler is None:
            from ..application.queries.get_queue import GetQueueHandler

            self._get_queue_handler = GetQueueHandler(coordinator=self.coordinator)
        return self._get_queue_handler

    @property
    def get_archive_handler(self) -> GetArchiveHandler:
        if self._get_archive_handler is None:
            from ..application.queries.get_archive import GetArchiveHandler

            self._get_archive_handler = GetArchiveHandler(
                request_store=self.request_store,
                default_limit=self.settings.queue.archive_page_size,
            )
        return self._get_archive_handler

    @property
    def get_archive_stats_handler(self) -> GetArchiveStatsHandler:
        if self._get_archive_stats_handler is None:
            from ..application.queries.get_archive_stats import GetArchiveStatsHandler

            self._get_archive_stats_handler = GetArchiveStatsHandler(
                request_store=self.request_store
            )
        return self._get_archive_stats_handler

    # === Lifecycle ===

    async def initialize(self) -> None:
        """Initialize the database and start the coordinator."""
        await self.database.initialize()
        await self.coordinator.start()

    async def shutdown(self) -> None:
        """Shutdown and cleanup all resources."""
        if self._coordinator is not None:
            await self._coordinator.stop()

        for client in (self._metadata_resolver, self._track_catalog, self._identity_directory):
            if client is None:
                continue
            try:
                await client.close()
            except Exception as exc:
                logger.warning("Failed closing %s: %r", type(client).__name__, exc)

        if self._database is not None:
            await self._database.close()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
