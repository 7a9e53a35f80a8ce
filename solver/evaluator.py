from __future__ import annotations

import threading
import time

from base.logging_utils import get_logger
from solver import auto_complete, stalemate

logger = get_logger(__name__)


class Evaluator:
    """
    Runs the stalemate test and, when the board allows it, auto-completion.

    Only one evaluation runs at a time. A request arriving while one is in flight is
    coalesced into a single fresh evaluation that starts after the current one finishes.
    With ``config.asyncEvaluation`` the work runs on a daemon thread and ``request``
    returns immediately.
    """

    def __init__(self, core):
        self.core = core
        self.evaluations = 0
        self._guard = threading.Lock()
        self._running = False
        self._pending = False
        self._cancelled = False
        self._idle = threading.Event()
        self._idle.set()

    @property
    def running(self) -> bool:
        return self._running

    def request(self):
        with self._guard:
            if self._running:
                self._pending = True
                return
            self._running = True
            self._idle.clear()
        if self.core.config.asyncEvaluation:
            threading.Thread(target=self._run_async, daemon=True).start()
        else:
            self._drain()

    def cancel(self):
        """Stops an in-flight auto-completion between two relocations."""
        with self._guard:
            if self._running:
                self._cancelled = True

    def wait_idle(self, timeout: float | None = None) -> bool:
        return self._idle.wait(timeout)

    def _run_async(self):
        try:
            self._drain()
        except Exception:
            logger.exception("board evaluation failed")

    def _drain(self):
        try:
            while True:
                self._evaluate()
                with self._guard:
                    if not self._pending:
                        self._release()
                        return
                    self._pending = False
        except BaseException:
            with self._guard:
                self._release()
            raise

    def _release(self):
        self._running = False
        self._pending = False
        self._cancelled = False
        self._idle.set()

    def _evaluate(self):
        core = self.core
        self.evaluations += 1
        with core.mutation():
            core.updateStalemate(stalemate.is_stalemate(core))
            eligible = (
                bool(core.config.autoComplete)
                and not self._cancelled
                and auto_complete.can_auto_complete(core)
                and auto_complete.next_auto_move(core) is not None
            )
        if not eligible:
            return

        logger.info("auto-completing from move %d", core.moveCount)
        # pacing only applies off the caller's thread
        delay = float(core.config.autoCompleteDelay or 0.0) if core.config.asyncEvaluation else 0.0
        steps = 0
        for move in auto_complete.iter_auto_complete(core, cancelled=lambda: self._cancelled):
            steps += 1
            logger.debug("auto move %s", move.to_notation())
            if delay > 0:
                time.sleep(delay)
        logger.info("auto-completion placed %d card(s), won=%s", steps, core.gameWon)
