"""
Ember Ascent - Dashboard Client
Async client that assembles the parent dashboard from the analytics endpoints.

Each slice is fetched concurrently and resolves on its own: a tier-gated or
failing endpoint leaves its slice ``locked`` or ``unavailable`` while the
rest of the dashboard still renders.
"""
import asyncio
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


# ============================================================================
# View models
# ============================================================================

class ViewModel(BaseModel):
    """Lenient parse of an API payload: unknown keys ignored, missing keys defaulted."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SummaryView(ViewModel):
    total_sessions: int = 0
    total_questions_answered: int = 0
    overall_accuracy: float = 0
    total_practice_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0


class SubjectView(ViewModel):
    subject: str = ""
    subject_label: str = ""
    total_questions: int = 0
    accuracy: float = 0
    mastery_level: str = "no_data"
    trend: str = "stable"


class TopicView(ViewModel):
    topic: str = ""
    subject: str = ""
    total_questions: int = 0
    accuracy: float = 0
    mastery_level: str = "no_data"


class ComprehensiveView(ViewModel):
    summary: SummaryView = Field(default_factory=SummaryView)
    subject_breakdown: list[SubjectView] = Field(default_factory=list)
    topic_breakdown: list[TopicView] = Field(default_factory=list)


class ReadinessComponentsView(ViewModel):
    accuracy_score: float = 0
    coverage_score: float = 0
    consistency_score: float = 0
    difficulty_score: float = 0
    improvement_score: float = 0


class ReadinessView(ViewModel):
    overall_score: int = 0
    overall_tier: str = "no_data"
    components: ReadinessComponentsView = Field(default_factory=ReadinessComponentsView)
    total_questions: int = 0
    disclaimer: str = ""


class HeatmapCellView(ViewModel):
    subject: str = ""
    topic: str = ""
    accuracy: float = 0
    total_questions: int = 0
    mastery_level: str = "no_data"
    needs_focus: bool = False


class HeatmapView(ViewModel):
    subjects: list[str] = Field(default_factory=list)
    cells: list[HeatmapCellView] = Field(default_factory=list)


class SubjectPercentileView(ViewModel):
    subject: str = ""
    percentile: int = 50
    average_score: float = 0
    child_score: float = 0


class BenchmarkView(ViewModel):
    overall_percentile: int = 50
    subject_percentiles: list[SubjectPercentileView] = Field(default_factory=list)


class LearningHealthView(ViewModel):
    rush_factor: float = 0
    fatigue_drop_off: float = 0
    stagnant_topics: int = 0
    stagnant_topic_names: list[str] = Field(default_factory=list)


# ============================================================================
# Slice state
# ============================================================================

class SliceStatus(str, Enum):
    READY = "ready"
    LOCKED = "locked"
    UNAVAILABLE = "unavailable"


@dataclass
class SliceState(Generic[T]):
    status: SliceStatus
    data: T | None = None
    error: str | None = None

    @classmethod
    def ready(cls, data: T) -> "SliceState[T]":
        return cls(SliceStatus.READY, data=data)

    @classmethod
    def locked(cls, message: str | None = None) -> "SliceState[T]":
        return cls(SliceStatus.LOCKED, error=message)

    @classmethod
    def unavailable(cls, error: str) -> "SliceState[T]":
        return cls(SliceStatus.UNAVAILABLE, error=error)

    @property
    def is_ready(self) -> bool:
        return self.status == SliceStatus.READY


@dataclass
class DashboardView:
    child_id: uuid.UUID
    date_range: str
    days: int
    comprehensive: SliceState[ComprehensiveView]
    readiness: SliceState[ReadinessView]
    heatmap: SliceState[HeatmapView]
    benchmark: SliceState[BenchmarkView]
    learning_health: SliceState[LearningHealthView]
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ============================================================================
# Client
# ============================================================================

@dataclass(frozen=True)
class SliceSpec:
    name: str
    path: str
    model: type[ViewModel]
    # Which of range/days the endpoint accepts
    params: tuple[str, ...] = ()


SLICES = (
    SliceSpec("comprehensive", "/analytics/comprehensive", ComprehensiveView, ("range",)),
    SliceSpec("readiness", "/analytics/readiness", ReadinessView, ("days",)),
    SliceSpec("heatmap", "/analytics/heatmap", HeatmapView, ("days",)),
    SliceSpec("benchmark", "/analytics/benchmark", BenchmarkView),
    SliceSpec("learning_health", "/analytics/learning-health", LearningHealthView, ("days",)),
)


class DashboardClient:
    """
    Fetches the dashboard slices from the analytics API.

    Usage:
        async with DashboardClient("https://app.example/api", token) as client:
            view = await client.fetch_dashboard(child_id)
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _fetch_slice(self, spec: SliceSpec, params: dict[str, Any]) -> SliceState:
        try:
            response = await self._client.get(spec.path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"Dashboard slice {spec.name} failed: {e}")
            return SliceState.unavailable(str(e))

        if response.status_code == 403:
            return SliceState.locked(_error_message(response))
        if response.is_error:
            logger.warning(f"Dashboard slice {spec.name} returned HTTP {response.status_code}")
            return SliceState.unavailable(_error_message(response) or f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            return SliceState.unavailable("Invalid JSON response")
        if not isinstance(payload, dict):
            return SliceState.unavailable("Unexpected response shape")

        if payload.get("preview"):
            return SliceState.locked(payload.get("message"))
        return SliceState.ready(spec.model.model_validate(payload.get("data") or {}))

    async def fetch_dashboard(
        self,
        child_id: uuid.UUID | str,
        date_range: str = "last_30_days",
        days: int = 30,
    ) -> DashboardView:
        """Fetch all slices concurrently; one failing slice never blocks the others."""
        available = {"childId": str(child_id), "range": date_range, "days": days}

        def params_for(spec: SliceSpec) -> dict[str, Any]:
            return {k: v for k, v in available.items() if k == "childId" or k in spec.params}

        results = await asyncio.gather(
            *(self._fetch_slice(spec, params_for(spec)) for spec in SLICES),
            return_exceptions=True,
        )

        slices: dict[str, SliceState] = {}
        for spec, result in zip(SLICES, results):
            if isinstance(result, BaseException):
                logger.warning(f"Dashboard slice {spec.name} could not be parsed: {result}")
                slices[spec.name] = SliceState.unavailable(str(result))
            else:
                slices[spec.name] = result

        return DashboardView(
            child_id=uuid.UUID(str(child_id)),
            date_range=date_range,
            days=days,
            **slices,
        )


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("error") if isinstance(body, dict) else None


# ============================================================================
# Loader
# ============================================================================

class DashboardLoader:
    """
    Owns one fetch cycle at a time, the way a mounted dashboard does.

    ``load`` with new parameters cancels the cycle in flight; ``aclose``
    (unmount) cancels it and closes the client. A cancelled cycle never
    publishes a view.
    """

    def __init__(
        self,
        client: DashboardClient,
        on_update: Callable[[DashboardView], None] | None = None,
    ):
        self._client = client
        self._on_update = on_update
        self._task: asyncio.Task | None = None
        self._params: tuple | None = None
        self._closed = False
        self._published: asyncio.Task | None = None
        self.view: DashboardView | None = None

    @property
    def in_flight(self) -> bool:
        return self._task is not None and not self._task.done()

    async def load(
        self,
        child_id: uuid.UUID | str,
        date_range: str = "last_30_days",
        days: int = 30,
    ) -> DashboardView | None:
        """
        Start (or join) a fetch cycle and wait for it.

        Returns None when the cycle was superseded or the loader closed.
        """
        if self._closed:
            raise RuntimeError("DashboardLoader is closed")

        params = (str(child_id), date_range, days)
        if self.in_flight and params == self._params:
            task = self._task
        else:
            self._cancel_current()
            self._params = params
            task = asyncio.create_task(self._client.fetch_dashboard(child_id, date_range, days))
            self._task = task

        try:
            # wait() does not raise when the task itself is cancelled
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task.cancelled() or task is not self._task or self._closed:
            return None

        view = task.result()
        # Callers joining the same cycle share one publication
        if self._published is not task:
            self._published = task
            self.view = view
            if self._on_update is not None:
                self._on_update(view)
        return view

    def _cancel_current(self) -> None:
        if self.in_flight:
            logger.debug(f"Cancelling dashboard fetch for {self._params}")
            self._task.cancel()

    async def aclose(self) -> None:
        self._closed = True
        task = self._task
        self._cancel_current()
        if task is not None:
            await asyncio.wait({task})
        await self._client.aclose()
