from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from song_request_queue.domain.requests.entities import (
    EligibilityPolicy,
    MatchedTrack,
    QueueState,
    Requester,
    SongRequest,
)
from song_request_queue.domain.requests.value_objects import PriorityClass

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from song_request_queue.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def request_store(in_memory_database):
    """Create a request store with in-memory database."""
    from song_request_queue.infrastructure.persistence.repositories.request_repository import (
        SQLiteRequestStore,
    )

    return SQLiteRequestStore(in_memory_database)


@pytest_asyncio.fixture
async def eligibility_store(in_memory_database):
    """Create an eligibility store with in-memory database."""
    from song_request_queue.infrastructure.persistence.repositories.eligibility_repository import (
        SQLiteEligibilityStore,
    )

    return SQLiteEligibilityStore(in_memory_database)


# ============================================================================
# Domain Entity Fixtures
# ============================================================================

_VIDEO_IDS = iter(f"vid{n:08d}" for n in range(10**8))


def build_request(
    *,
    title: str = "Test Song",
    artist: str = "Test Channel",
    requester: str = "viewer",
    login: str | None = None,
    priority: PriorityClass = PriorityClass.STANDARD,
    duration_seconds: int = 180,
    video_id: str | None = None,
    **overrides,
) -> SongRequest:
    """Build a queued request with a unique video id unless one is given."""
    video_id = video_id or next(_VIDEO_IDS)
    return SongRequest(
        video_id=video_id,
        source_url=f"https://www.youtube.com/watch?v={video_id}",
        title=title,
        artist=artist,
        duration_seconds=duration_seconds,
        requester=Requester(display_name=requester, login=login),
        priority=priority,
        **overrides,
    )


@pytest.fixture
def make_request():
    """Factory fixture returning ``build_request``."""
    return build_request


@pytest.fixture
def sample_request():
    return build_request(title="Never Gonna Give You Up", artist="Rick Astley")


@pytest.fixture
def sample_match():
    return MatchedTrack(
        catalog_id="4uLU6hMCjMI75M1A2tKUQC",
        name="Never Gonna Give You Up",
        performers=("Rick Astley",),
        album_name="Whenever You Need Somebody",
        external_url="https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC",
        duration_ms=213573,
    )


@pytest.fixture
def empty_state():
    return QueueState()


@pytest.fixture
def default_policy():
    return EligibilityPolicy()


# ============================================================================
# Coordinator Fixtures
# ============================================================================


@pytest.fixture
def event_bus():
    from song_request_queue.domain.shared.events import EventBus

    return EventBus()


@pytest.fixture
def recorded_events(event_bus):
    """Subscribe to every request event and collect them in order."""
    from song_request_queue.domain.requests import events as request_events

    recorded = []

    async def record(event):
        recorded.append(event)

    for event_type in (
        request_events.QueueChanged,
        request_events.ActiveChanged,
        request_events.ArchiveAppended,
        request_events.ArchiveChanged,
        request_events.SubmissionAccepted,
        request_events.SubmissionDeclined,
        request_events.EnrichmentAttached,
        request_events.EligibilityChanged,
    ):
        event_bus.subscribe(event_type, record)
    return recorded


@pytest_asyncio.fixture
async def coordinator(request_store, eligibility_store, event_bus):
    """A running coordinator over the in-memory stores."""
    from song_request_queue.application.services.lifecycle_coordinator import (
        LifecycleCoordinator,
    )

    coord = LifecycleCoordinator(
        request_store=request_store,
        eligibility_store=eligibility_store,
        event_bus=event_bus,
    )
    await coord.start()
    yield coord
    await coord.stop()


@pytest.fixture
def mock_catalog():
    catalog = MagicMock()
    catalog.enabled = True
    catalog.search = AsyncMock(return_value=[])
    catalog.get_track = AsyncMock(return_value=None)
    catalog.extract_track_id = MagicMock(return_value=None)
    catalog.close = AsyncMock()
    return catalog
