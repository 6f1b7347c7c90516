"""Flow controller — the per-user selection state machine.

Stages::

    IDLE ──search──▶ SEARCHED ──select──▶ SELECTED ──audio──▶ (pipeline) ──▶ IDLE
                                              │
                                              └──video──▶ FORMAT_CHOSEN ──quality──▶ (pipeline) ──▶ IDLE

``cancel`` returns any stage to ``IDLE``.  Every step that relies on an
earlier one re-checks the session and answers with an "expired" reply
when the required fields are gone; stale buttons never crash the flow.

Guarantees
----------
* Public operations never raise; every failure becomes a :class:`Reply`.
* After a terminal pipeline run, successful or not, the selection is
  cleared so an old button cannot replay it.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable

from ytd_bot import messages
from ytd_bot.core.callbacks import (
    BEST_SELECTOR,
    CallbackCommand,
    ChooseFormat,
    SelectResult,
    encode_format,
    encode_quality,
    encode_select,
)
from ytd_bot.core.delivery import DeliveryGate
from ytd_bot.core.format_filter import quality_label, select_quality_options
from ytd_bot.core.models import (
    Button,
    FlowStage,
    MediaKind,
    Outcome,
    Reply,
    SearchResultItem,
    Session,
    UserMode,
)
from ytd_bot.core.protocols import (
    ActivityLog,
    KeyedStore,
    MediaProbe,
    MediaSender,
    ProgressCallback,
)
from ytd_bot.core.size_budget import SizeBudgetPipeline
from ytd_bot.core.ticker import ProgressTicker
from ytd_bot.exceptions import ResolutionError, SizeExceededError
from ytd_bot.utils.text import truncate

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 10
_BUTTON_TITLE_CHARS = 60

# Broadcast capture outranks feedback capture.
_MODE_PRIORITY: tuple[UserMode, ...] = (
    UserMode.AWAITING_BROADCAST,
    UserMode.AWAITING_FEEDBACK,
)


def _expired() -> Reply:
    return Reply(messages.SELECTION_EXPIRED, Outcome.EXPIRED)


class FlowController:
    """Drive one user's search → select → format → quality flow.

    Parameters
    ----------
    probe:
        Search and metadata backend.
    pipeline:
        Produces the size-bounded media file at the terminal step.
    gate:
        Sends the produced file and removes it afterwards.
    sessions:
        Per-user :class:`Session` store.
    modes:
        Per-user set of active text-capture modes.
    activity:
        Optional activity sink; ``None`` disables activity logging.
    progress_interval:
        Seconds between "still working" updates during a pipeline run.
    """

    def __init__(
        self,
        probe: MediaProbe,
        pipeline: SizeBudgetPipeline,
        gate: DeliveryGate,
        *,
        sessions: KeyedStore[int, Session],
        modes: KeyedStore[int, frozenset[UserMode]],
        activity: ActivityLog | None = None,
        progress_interval: float = 5.0,
    ) -> None:
        self._probe = probe
        self._pipeline = pipeline
        self._gate = gate
        self._sessions = sessions
        self._modes = modes
        self._activity = activity
        self._progress_interval = progress_interval

    # ------------------------------------------------------------------
    # Session access
    # ------------------------------------------------------------------

    def session(self, user_id: int) -> Session | None:
        return self._sessions.get(user_id)

    # ------------------------------------------------------------------
    # Text-capture modes
    # ------------------------------------------------------------------

    def enter_mode(self, user_id: int, mode: UserMode) -> None:
        current = self._modes.get(user_id) or frozenset()
        self._modes.set(user_id, current | {mode})

    def leave_mode(self, user_id: int, mode: UserMode) -> None:
        remaining = (self._modes.get(user_id) or frozenset()) - {mode}
        if remaining:
            self._modes.set(user_id, remaining)
        else:
            self._modes.delete(user_id)

    def active_mode(self, user_id: int) -> UserMode | None:
        """Return the mode that should capture this user's next text."""
        current = self._modes.get(user_id) or frozenset()
        for mode in _MODE_PRIORITY:
            if mode in current:
                return mode
        return None

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def start_flow(self, user_id: int, query: str) -> Reply:
        """Search for *query* and present the results as numbered buttons."""
        return await self._guarded("search", self._start_flow(user_id, query))

    async def select_result(self, user_id: int, index: int) -> Reply:
        """Pick the *index*-th stored search result."""
        return await self._guarded("select", self._select_result(user_id, index))

    async def choose_format(
        self,
        user_id: int,
        kind: MediaKind,
        *,
        sender: MediaSender,
        progress: ProgressCallback | None = None,
    ) -> Reply:
        """Choose audio (terminal) or video (offers qualities)."""
        return await self._guarded(
            "format", self._choose_format(user_id, kind, sender, progress),
        )

    async def choose_quality(
        self,
        user_id: int,
        selector: str,
        *,
        sender: MediaSender,
        progress: ProgressCallback | None = None,
        label: str | None = None,
    ) -> Reply:
        """Download the chosen video variant (or ``best``) and deliver it."""
        return await self._guarded(
            "quality",
            self._choose_quality(user_id, selector, label or selector, sender, progress),
        )

    async def dispatch(
        self,
        user_id: int,
        command: CallbackCommand,
        *,
        sender: MediaSender,
        progress: ProgressCallback | None = None,
    ) -> Reply:
        """Route a decoded button press to the matching operation."""
        if isinstance(command, SelectResult):
            return await self.select_result(user_id, command.index)
        if isinstance(command, ChooseFormat):
            return await self.choose_format(
                user_id, command.kind, sender=sender, progress=progress,
            )
        return await self.choose_quality(
            user_id,
            command.selector,
            sender=sender,
            progress=progress,
            label=command.label,
        )

    def cancel(self, user_id: int) -> Reply:
        """Forget the session and any text-capture mode. Always succeeds."""
        self._sessions.delete(user_id)
        self._modes.delete(user_id)
        return Reply(messages.CANCELLED, Outcome.CANCELLED)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _start_flow(self, user_id: int, query: str) -> Reply:
        query = query.strip()
        if not query:
            return Reply(messages.SEARCH_PROMPT, Outcome.NO_RESULTS)

        self._record(user_id, "search", query)
        try:
            found = await self._probe.search(query)
        except ResolutionError as exc:
            logger.warning("Search for %r failed: %s", query, exc)
            return Reply(messages.SEARCH_UNAVAILABLE, Outcome.UNAVAILABLE)

        results = list(found)[:MAX_SEARCH_RESULTS]
        if not results:
            self._sessions.set(user_id, Session(last_search_query=query))
            return Reply(messages.NO_RESULTS, Outcome.NO_RESULTS)

        self._sessions.set(
            user_id,
            Session(
                search_results=results,
                last_search_query=query,
                stage=FlowStage.SEARCHED,
            ),
        )
        return Reply(
            messages.SELECT_RESULT,
            Outcome.OK,
            tuple((self._result_button(i, item),) for i, item in enumerate(results)),
        )

    async def _select_result(self, user_id: int, index: int) -> Reply:
        session = self._sessions.get(user_id)
        if session is None or not session.search_results:
            return _expired()
        if not 0 <= index < len(session.search_results):
            return Reply(messages.INVALID_SELECTION, Outcome.INVALID_SELECTION)

        item = session.search_results[index]
        session.select(item)
        self._record(user_id, "select_video", item.id)
        return Reply(
            messages.format_prompt(item.title),
            Outcome.OK,
            ((
                Button(messages.AUDIO_LABEL, encode_format(MediaKind.AUDIO)),
                Button(messages.VIDEO_LABEL, encode_format(MediaKind.VIDEO)),
            ),),
        )

    async def _choose_format(
        self,
        user_id: int,
        kind: MediaKind,
        sender: MediaSender,
        progress: ProgressCallback | None,
    ) -> Reply:
        session = self._sessions.get(user_id)
        if session is None or session.selected_video_id is None:
            if session is not None:
                session.clear_selection()
            return _expired()

        media_id = session.selected_video_id
        if kind is MediaKind.AUDIO:
            return await self._run_terminal(
                user_id, session, media_id, kind, None, "download_audio", sender, progress,
            )

        formats = list(await self._probe.formats(media_id))
        options = select_quality_options(formats)
        if not options:
            session.clear_selection()
            return Reply(messages.NO_FORMATS, Outcome.UNAVAILABLE)

        session.video_formats = formats
        session.stage = FlowStage.FORMAT_CHOSEN
        self._record(user_id, "select_quality", media_id)
        rows = [
            (Button(quality_label(fmt), encode_quality(fmt.format_id, quality_label(fmt))),)
            for fmt in options
        ]
        rows.append((
            Button(messages.BEST_QUALITY_LABEL, encode_quality(BEST_SELECTOR, BEST_SELECTOR)),
        ))
        return Reply(messages.SELECT_QUALITY, Outcome.OK, tuple(rows))

    async def _choose_quality(
        self,
        user_id: int,
        selector: str,
        label: str,
        sender: MediaSender,
        progress: ProgressCallback | None,
    ) -> Reply:
        session = self._sessions.get(user_id)
        if (
            session is None
            or session.selected_video_id is None
            or session.stage is not FlowStage.FORMAT_CHOSEN
        ):
            if session is not None:
                session.clear_selection()
            return _expired()

        if selector != BEST_SELECTOR and session.find_format(selector) is None:
            session.clear_selection()
            return Reply(messages.INVALID_SELECTION, Outcome.INVALID_SELECTION)

        return await self._run_terminal(
            user_id,
            session,
            session.selected_video_id,
            MediaKind.VIDEO,
            selector,
            f"download_video_{label}",
            sender,
            progress,
        )

    # ------------------------------------------------------------------
    # Terminal step
    # ------------------------------------------------------------------

    async def _run_terminal(
        self,
        user_id: int,
        session: Session,
        media_id: str,
        kind: MediaKind,
        selector: str | None,
        activity: str,
        sender: MediaSender,
        progress: ProgressCallback | None,
    ) -> Reply:
        """Run the pipeline, clear the selection, then deliver.

        *activity* is recorded only once the file reached the user.
        """
        title = session.selected_video_title or media_id
        fmt = session.find_format(selector) if selector else None

        try:
            async with ProgressTicker(progress, interval=self._progress_interval):
                result = await self._pipeline.run(
                    media_id, kind, format_selector=selector, format_hint=fmt,
                )
        finally:
            session.clear_selection()

        if result.file_path is None:
            return self._failure_reply(result.error)

        if not await self._gate.deliver(result.file_path, sender):
            return Reply(messages.DELIVERY_FAILED, Outcome.DELIVERY_FAILED)
        self._record(user_id, activity, media_id)
        return Reply(messages.delivered(title), Outcome.DELIVERED)

    @staticmethod
    def _failure_reply(error: Exception | None) -> Reply:
        if isinstance(error, ResolutionError):
            return Reply(messages.CONTENT_UNAVAILABLE, Outcome.UNAVAILABLE)
        if isinstance(error, SizeExceededError):
            return Reply(messages.SIZE_EXCEEDED, Outcome.SIZE_EXCEEDED)
        return Reply(messages.PROCESSING_FAILED, Outcome.FAILED)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _result_button(index: int, item: SearchResultItem) -> Button:
        label = f"{index + 1}. {truncate(item.title, _BUTTON_TITLE_CHARS)}"
        return Button(label, encode_select(index))

    def _record(self, user_id: int, activity_type: str, detail: str = "") -> None:
        if self._activity is not None:
            self._activity.record(user_id, activity_type, detail)

    @staticmethod
    async def _guarded(action: str, operation: Awaitable[Reply]) -> Reply:
        try:
            return await operation
        except Exception:
            logger.exception("Unhandled error during %s", action)
            return Reply(messages.GENERIC_FAILURE, Outcome.FAILED)
