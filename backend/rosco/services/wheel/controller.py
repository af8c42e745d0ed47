import logging
import threading
from collections import defaultdict
from functools import partial
from typing import Callable, Dict, List, Optional

from .state import LETTERS, ROUND_DURATION_SEC, END_MESSAGES, EndReason, RoundState, Verdict
from .timer import ManualTicker
from .turns import advance, has_letters_in_play

logger = logging.getLogger(__name__)

EVENTS = ('round_started', 'round_ended', 'state_changed')


class RoundController:
    """Owns one RoundState and the ticker counting it down.

    Actions and ticks are serialised on an internal lock, so each one runs to
    completion before the next is applied. Listeners registered with ``on``
    are called after the state has settled:

    - ``round_started(snapshot)``
    - ``state_changed(snapshot)`` after every start, answer and tick
    - ``round_ended(reason, message)`` exactly once per round
    """

    def __init__(self, ticker=None, duration: int = ROUND_DURATION_SEC, letters=LETTERS, label: str = ''):
        self.ticker = ticker if ticker is not None else ManualTicker()
        self.duration = int(duration)
        self.letters = tuple(letters)
        self.label = label
        self.state = RoundState.fresh(duration=self.duration, letters=self.letters)
        self._round_no = 0
        self._lock = threading.RLock()
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)

    def on(self, event: str, callback: Callable) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown event {event!r}; expected one of {EVENTS}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, *args) -> None:
        for callback in list(self._listeners[event]):
            callback(*args)

    def snapshot(self):
        with self._lock:
            return self.state.to_dict()

    def start_round(self) -> RoundState:
        """Reset every letter to pending and restart the countdown from scratch."""
        with self._lock:
            self.ticker.cancel()
            self.state = RoundState.fresh(duration=self.duration, letters=self.letters)
            self.state.started = True
            self._round_no += 1
            logger.info(f"[round-start] session={self.label} round={self._round_no} duration={self.duration}s")
            self.ticker.start(partial(self._on_tick, self._round_no))
            snapshot = self.state.to_dict()
            self._emit('round_started', snapshot)
            self._emit('state_changed', snapshot)
            return self.state

    def submit_answer(self, verdict) -> RoundState:
        """Record the verdict for the current letter and move to the next one in play.

        Ignored when the round has not started or is already over.
        """
        verdict = Verdict.parse(verdict)
        with self._lock:
            state = self.state
            if not state.accepting_answers:
                logger.debug(f"[answer-ignored] session={self.label} started={state.started} over={state.is_over}")
                return state

            letter = state.letters[state.current_index]
            state.status_of[letter] = verdict.to_status()
            logger.info(f"[answer] session={self.label} letter={letter} verdict={verdict.value}")

            ended = None
            if not has_letters_in_play(state):
                ended = self._finish(EndReason.ALL_LETTERS_RESOLVED)
            else:
                next_index = advance(state, (state.current_index + 1) % len(state))
                if next_index is None:
                    logger.warning(
                        f"[advance-miss] session={self.label} from={state.current_index} letters remain in play"
                    )
                else:
                    state.current_index = next_index

            self._notify(ended)
            return state

    def tick(self) -> RoundState:
        """Take one second off the clock, ending the round when it hits zero."""
        with self._lock:
            state = self.state
            if not state.accepting_answers:
                return state
            state.time_remaining = max(0, state.time_remaining - 1)
            ended = None
            if state.time_remaining == 0:
                ended = self._finish(EndReason.TIME_EXPIRED)
            self._notify(ended)
            return state

    def teardown(self) -> None:
        """Stop the countdown for good; late ticks from it are dropped."""
        with self._lock:
            self._round_no += 1
            self.ticker.cancel()
            logger.info(f"[teardown] session={self.label}")

    def _on_tick(self, round_no: int) -> None:
        with self._lock:
            if round_no != self._round_no:
                logger.debug(f"[tick-stale] session={self.label} round={round_no} live={self._round_no}")
                return
            self.tick()

    def _finish(self, reason: EndReason) -> Optional[EndReason]:
        state = self.state
        if state.is_over:
            return None
        state.is_over = True
        state.end_reason = reason
        self.ticker.cancel()
        logger.info(
            f"[round-end] session={self.label} round={self._round_no} reason={reason.value} "
            f"time_remaining={state.time_remaining}"
        )
        return reason

    def _notify(self, ended: Optional[EndReason]) -> None:
        self._emit('state_changed', self.state.to_dict())
        if ended is not None:
            self._emit('round_ended', ended, END_MESSAGES[ended])
