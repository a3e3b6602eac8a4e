"""
Sequential character analysis with pause/resume.

``SequencerState`` is an immutable record; every change goes through one of
the transition functions below and is committed in a single assignment, so
fields such as ``names``, ``cursor`` and ``running`` never drift apart.

``Sequencer`` drives the state from the asyncio event loop. A single worker
task processes one character at a time and re-checks the state after every
cursor advance, stopping when the run is paused, stopped or complete. At
most one remote call is outstanding at any moment.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from app.core.exceptions import (
    CharacterDetailError,
    EmptyTextError,
    InvalidTransitionError,
    NoCharactersFoundError,
)
from app.core.metrics import record_character_detail, record_run_finished
from app.core.request_context import log_context
from app.services.profile_store import CharacterProfile, ProfileStore

if TYPE_CHECKING:
    from app.services.character_generation import CharacterGenerationService

logger = logging.getLogger(__name__)

SKIP_DELAY_SECONDS = 2.0

STATUS_LISTING = "Scanning the text to identify key characters..."
STATUS_PAUSED = "Paused. You can resume at any time or edit the generated profiles."
STATUS_RESUMED = "Resuming analysis..."
STATUS_STOPPED = "Stopped. Profiles generated so far are kept."
STATUS_COMPLETED = "All character profiles are complete."


class Phase(str, Enum):
    IDLE = "idle"
    LISTING = "listing"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass(frozen=True)
class SequencerState:
    run_id: str | None = None
    names: tuple[str, ...] = ()
    cursor: int = -1
    running: bool = False
    paused: bool = False
    listing: bool = False
    status_message: str = ""
    error: str | None = None

    @property
    def total(self) -> int:
        return len(self.names)

    @property
    def phase(self) -> Phase:
        if self.listing:
            return Phase.LISTING
        if self.running:
            return Phase.PAUSED if self.paused else Phase.RUNNING
        if self.error:
            return Phase.FAILED
        if self.names and self.cursor >= self.total:
            return Phase.COMPLETED
        if self.names:
            return Phase.ABORTED
        return Phase.IDLE

    @property
    def progress_fraction(self) -> float:
        if self.total == 0 or self.cursor < 0:
            return 0.0
        return min(self.cursor, self.total) / self.total


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


def begin_listing(state: SequencerState, run_id: str) -> SequencerState:
    return SequencerState(
        run_id=run_id,
        running=True,
        listing=True,
        status_message=STATUS_LISTING,
    )


def listing_failed(state: SequencerState, error: str) -> SequencerState:
    return dataclasses.replace(
        state,
        running=False,
        paused=False,
        listing=False,
        status_message="",
        error=error,
    )


def listing_succeeded(state: SequencerState, names: list[str]) -> SequencerState:
    return dataclasses.replace(
        state,
        names=tuple(names),
        cursor=0,
        running=True,
        paused=False,
        listing=False,
        status_message=f"Received the novel text; building visual profiles for {len(names)} characters.",
        error=None,
    )


def step_started(state: SequencerState) -> SequencerState:
    name = state.names[state.cursor]
    return dataclasses.replace(
        state,
        status_message=f"Building profile {state.cursor + 1}/{state.total} for [{name}]...",
    )


def step_failed(state: SequencerState, error: str) -> SequencerState:
    return dataclasses.replace(
        state,
        running=False,
        paused=False,
        status_message="",
        error=error,
    )


def advance(state: SequencerState) -> SequencerState:
    cursor = min(state.cursor + 1, state.total)
    if cursor >= state.total:
        return dataclasses.replace(
            state,
            cursor=cursor,
            running=False,
            paused=False,
            status_message=STATUS_COMPLETED,
        )
    return dataclasses.replace(state, cursor=cursor)


def pause(state: SequencerState) -> SequencerState:
    if state.phase is not Phase.RUNNING:
        return state
    return dataclasses.replace(state, paused=True, status_message=STATUS_PAUSED)


def resume(state: SequencerState) -> SequencerState:
    if state.phase is not Phase.PAUSED:
        return state
    return dataclasses.replace(state, paused=False, status_message=STATUS_RESUMED)


def stop(state: SequencerState) -> SequencerState:
    if state.phase is not Phase.PAUSED:
        raise InvalidTransitionError("stop", state.phase.value)
    return dataclasses.replace(state, running=False, paused=False, status_message=STATUS_STOPPED)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AnalysisView:
    """Read-only snapshot handed to the presentation layer."""

    records: list[CharacterProfile]
    phase: Phase
    status_message: str
    error: str | None
    is_running: bool
    is_paused: bool
    cursor: int
    total: int
    completed_count: int
    progress_fraction: float


class Sequencer:
    def __init__(
        self,
        generator: CharacterGenerationService,
        store: ProfileStore | None = None,
        skip_delay_seconds: float = SKIP_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._generator = generator
        self._store = store or ProfileStore()
        self._skip_delay_seconds = skip_delay_seconds
        self._sleep = sleep
        self._state = SequencerState()
        self._text = ""
        self._worker: asyncio.Task | None = None

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def store(self) -> ProfileStore:
        return self._store

    def _commit(self, new_state: SequencerState) -> None:
        old_phase = self._state.phase
        self._state = new_state
        if new_state.phase is not old_phase:
            logger.info(
                "analysis phase %s -> %s",
                old_phase.value,
                new_state.phase.value,
                extra={"cursor": new_state.cursor, "total": new_state.total},
            )

    def view(self) -> AnalysisView:
        state = self._state
        return AnalysisView(
            records=self._store.list_profiles(),
            phase=state.phase,
            status_message=state.status_message,
            error=state.error,
            is_running=state.running,
            is_paused=state.paused,
            cursor=state.cursor,
            total=state.total,
            completed_count=self._store.completed_count(),
            progress_fraction=state.progress_fraction,
        )

    async def start(self, text: str) -> AnalysisView:
        """Identify the characters in ``text`` and start building their profiles.

        Raises:
            EmptyTextError: If ``text`` is blank; nothing changes
            InvalidTransitionError: If a run is already listing or in progress
            NoCharactersFoundError: If identification yields no names; the
                run ends in the failed phase with the error in the view
        """
        if not text or not text.strip():
            raise EmptyTextError()

        phase = self._state.phase
        if phase in (Phase.LISTING, Phase.RUNNING, Phase.PAUSED):
            raise InvalidTransitionError("start", phase.value)

        run_id = uuid.uuid4().hex
        self._commit(begin_listing(self._state, run_id))
        self._store.reset()
        # A stopped run may still have its last step in flight; its result
        # is dropped because the new run is listing.
        await self._drain_worker()
        self._text = text

        with log_context(run_id=run_id):
            logger.info("analysis started", extra={"text_length": len(text)})
            try:
                names = await asyncio.to_thread(self._generator.identify_characters, text)
            except BaseException:
                self._commit(listing_failed(self._state, "Character identification failed unexpectedly."))
                record_run_finished(Phase.FAILED.value)
                raise

            if not names:
                error = NoCharactersFoundError()
                self._commit(listing_failed(self._state, str(error)))
                record_run_finished(Phase.FAILED.value)
                logger.warning("no characters identified")
                raise error

            self._store.reset([CharacterProfile.placeholder(name, idx) for idx, name in enumerate(names)])
            self._commit(listing_succeeded(self._state, names))

        self._ensure_worker()
        return self.view()

    def pause(self) -> AnalysisView:
        self._commit(pause(self._state))
        return self.view()

    def resume(self) -> AnalysisView:
        new_state = resume(self._state)
        if new_state is not self._state:
            self._commit(new_state)
            self._ensure_worker()
        return self.view()

    def stop(self) -> AnalysisView:
        self._commit(stop(self._state))
        record_run_finished(Phase.ABORTED.value)
        return self.view()

    def edit_record(self, profile_id: str, profile: CharacterProfile) -> CharacterProfile:
        """Replace one stored profile by id; cursor and names are untouched."""
        return self._store.replace(profile_id, profile)

    async def join(self) -> None:
        """Wait until the current worker (if any) has stopped."""
        await self._drain_worker()

    async def shutdown(self) -> None:
        task = self._worker
        self._worker = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _ensure_worker(self) -> None:
        if self._worker is not None and not self._worker.done():
            return
        run_id = self._state.run_id
        self._worker = asyncio.get_running_loop().create_task(self._run(run_id))

    async def _drain_worker(self) -> None:
        task = self._worker
        if task is not None and not task.done():
            await asyncio.wait({task})

    def _is_current(self, run_id: str | None) -> bool:
        return self._state.run_id == run_id and not self._state.listing

    async def _run(self, run_id: str | None) -> None:
        with log_context(run_id=run_id):
            while True:
                state = self._state
                if not self._is_current(run_id) or not state.running or state.paused:
                    return
                if not 0 <= state.cursor < state.total:
                    return

                index = state.cursor
                name = state.names[index]
                self._commit(step_started(state))
                try:
                    await self._step(run_id, index, name)
                except Exception as exc:  # noqa: BLE001
                    logger.exception("analysis worker failed", extra={"index": index})
                    if self._is_current(run_id) and self._state.running:
                        self._commit(step_failed(self._state, f"Profile generation for {name} failed: {exc}"))
                        record_run_finished(Phase.FAILED.value)
                    return

                if not self._is_current(run_id):
                    return
                was_running = self._state.running
                self._commit(advance(self._state))
                # A run stopped during its last step was already counted as aborted.
                if was_running and self._state.phase is Phase.COMPLETED:
                    record_run_finished(Phase.COMPLETED.value)

    async def _step(self, run_id: str | None, index: int, name: str) -> None:
        with log_context(character=name):
            try:
                detail = await asyncio.to_thread(self._generator.generate_character_detail, name, self._text)
            except CharacterDetailError as exc:
                logger.warning(
                    "skipping character after failed profile request: %s",
                    exc,
                    extra={"index": index, "skip_delay_seconds": self._skip_delay_seconds},
                )
                record_character_detail("skipped")
                await self._sleep(self._skip_delay_seconds)
                return

            if not self._is_current(run_id):
                return
            self._store.merge_detail_at(index, detail)
            record_character_detail("completed")
