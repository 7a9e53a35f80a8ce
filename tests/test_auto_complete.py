import threading
import unittest
from unittest.mock import patch

from base.Card import Card, Suit
from base.Core import Core, GameConfig, ToFoundation
from base.Interface import Interface
from solver import auto_complete, stalemate
from solver.auto_complete import AutoMove

H, D, C, S = Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES


class RecordingInterface(Interface):
    def __init__(self):
        super().__init__()
        self.events = []
        self.wins = []

    def onEvent(self, event):
        self.events.append(event)

    def onWin(self, moves, elapsed):
        self.wins.append(moves)


def up(suit, rank):
    return Card(suit, rank, True)


def down(suit, rank):
    return Card(suit, rank, False)


def descending(suit):
    return [up(suit, r) for r in range(13, 0, -1)]


def make_core(tableau=(), stock=(), waste=(), foundations=(), auto=False, asynchronous=False):
    config = GameConfig()
    config.autoComplete = auto
    config.asyncEvaluation = asynchronous
    core = Core()
    core.config = config
    core.stock = list(stock)
    core.waste = list(waste)
    core.tableau = [list(c) for c in tableau] + [[] for _ in range(7 - len(tableau))]
    core.foundations = [list(f) for f in foundations] + [[] for _ in range(4 - len(foundations))]
    ui = RecordingInterface()
    core.registerInterface(ui)
    return core, ui


SOLVABLE = [descending(H), descending(D), descending(C), descending(S)]


class AutoCompleteTestCase(unittest.TestCase):
    def test_eligibility(self):
        core, _ = make_core(tableau=SOLVABLE)
        self.assertTrue(auto_complete.can_auto_complete(core))
        core, _ = make_core(tableau=SOLVABLE, waste=[up(H, 1)])
        self.assertTrue(auto_complete.can_auto_complete(core))
        core, _ = make_core(tableau=[[down(S, 4), up(H, 1)]])
        self.assertFalse(auto_complete.can_auto_complete(core))
        core, _ = make_core(tableau=SOLVABLE, stock=[down(H, 1)])
        self.assertFalse(auto_complete.can_auto_complete(core))

    def test_run_to_completion_wins(self):
        core, ui = make_core(tableau=SOLVABLE)
        moves = auto_complete.run_auto_complete(core)
        self.assertEqual(52, len(moves))
        self.assertTrue(core.gameWon)
        self.assertTrue(all(len(f) == 13 for f in core.foundations))
        self.assertTrue(all(len(c) == 0 for c in core.tableau))
        self.assertEqual(1, len(ui.wins))
        self.assertEqual(52, core.moveCount)

    def test_scan_order(self):
        core, _ = make_core(tableau=SOLVABLE)
        moves = auto_complete.run_auto_complete(core)
        self.assertEqual(AutoMove("tableau", 0, Card(H, 1), 0), moves[0])
        self.assertEqual(AutoMove("tableau", 0, Card(H, 13), 0), moves[12])
        self.assertEqual(AutoMove("tableau", 1, Card(D, 1), 1), moves[13])
        self.assertEqual([0] * 13, [m.source_index for m in moves[:13]])
        self.assertEqual("T0->F0 ♥A", moves[0].to_notation())

    def test_tableau_is_scanned_before_waste(self):
        core, _ = make_core(tableau=[[], [], [], [up(H, 1)]], waste=[up(D, 1)])
        self.assertEqual(AutoMove("tableau", 3, Card(H, 1), 0), auto_complete.next_auto_move(core))

    def test_waste_top_used_when_tableau_is_stuck(self):
        core, _ = make_core(tableau=[[up(S, 9)]], waste=[up(C, 5), up(H, 2)], foundations=[[up(H, 1)]])
        move = auto_complete.next_auto_move(core)
        self.assertEqual(AutoMove("waste", -1, Card(H, 2), 0), move)
        self.assertEqual("W->F0 ♥2", move.to_notation())
        moves = auto_complete.run_auto_complete(core)
        self.assertEqual(1, len(moves))
        self.assertEqual([up(C, 5)], core.waste)
        self.assertFalse(core.gameWon)

    def test_steps_one_relocation_at_a_time(self):
        core, _ = make_core(tableau=SOLVABLE)
        steps = auto_complete.iter_auto_complete(core)
        next(steps)
        self.assertEqual(1, sum(len(f) for f in core.foundations))
        next(steps)
        self.assertEqual(2, sum(len(f) for f in core.foundations))

    def test_cancel_leaves_consistent_board(self):
        core, _ = make_core(tableau=SOLVABLE)
        moves = []
        for move in auto_complete.iter_auto_complete(core, cancelled=lambda: len(moves) >= 5):
            moves.append(move)
        self.assertEqual(5, len(moves))
        self.assertEqual(52, len(set(core.allCards())))
        self.assertEqual(5, len(core.foundations[0]))
        self.assertFalse(core.gameWon)

    def test_evaluation_auto_completes(self):
        core, ui = make_core(tableau=SOLVABLE, auto=True)
        core.resumeGame()
        self.assertTrue(core.gameWon)
        self.assertEqual(1, len(ui.wins))
        placed = [e for e in ui.events if isinstance(e, ToFoundation)]
        self.assertEqual(52, len(placed))
        self.assertTrue(all(e.isAuto() for e in placed))
        self.assertFalse(core.evaluator.running)

    def test_auto_completion_disabled(self):
        core, _ = make_core(tableau=SOLVABLE, auto=False)
        core.resumeGame()
        self.assertFalse(core.gameWon)
        self.assertEqual(0, sum(len(f) for f in core.foundations))

    def test_async_evaluation(self):
        core, ui = make_core(tableau=SOLVABLE, auto=True, asynchronous=True)
        core.resumeGame()
        self.assertTrue(core.evaluator.wait_idle(10))
        self.assertTrue(core.gameWon)
        self.assertEqual(1, len(ui.wins))


    def test_evaluation_finishes_from_the_waste(self):
        spades = [up(S, r) for r in range(11, 0, -1)]
        core, ui = make_core(
            tableau=[descending(H), descending(D), descending(C), spades],
            waste=[up(S, 13), up(S, 12)],
            auto=True,
        )
        core.resumeGame()
        self.assertTrue(core.gameWon)
        self.assertEqual([], core.waste)
        self.assertEqual(1, len(ui.wins))
        from_waste = [e.card for e in ui.events if isinstance(e, ToFoundation) and e.source[0] == "waste"]
        self.assertEqual([Card(S, 12), Card(S, 13)], from_waste)

    def test_sync_evaluation_runs_outside_the_caller_lock(self):
        spades = [up(S, r) for r in range(13, 1, -1)]
        core, ui = make_core(tableau=[descending(H), descending(D), descending(C), spades], stock=[down(S, 1)], auto=True)
        core.config.autoCompleteDelay = 0.05
        original = auto_complete.iter_auto_complete
        lock_free = []

        def try_lock():
            if core.lock.acquire(timeout=1.0):
                core.lock.release()
                lock_free.append(True)
            else:
                lock_free.append(False)

        def observed(board, cancelled=None):
            for move in original(board, cancelled):
                other = threading.Thread(target=try_lock)
                other.start()
                other.join()
                yield move

        with patch.object(auto_complete, "iter_auto_complete", observed), patch("solver.evaluator.time.sleep") as sleep:
            self.assertTrue(core.askDraw())
        self.assertTrue(core.gameWon)
        self.assertEqual(52, len(lock_free))
        self.assertTrue(all(lock_free))
        sleep.assert_not_called()

    def test_cancel_during_async_run(self):
        core, ui = make_core(tableau=SOLVABLE, auto=True, asynchronous=True)
        core.config.autoCompleteDelay = 0.02
        started = threading.Event()
        record = ui.onEvent

        def on_event(event):
            record(event)
            if len(ui.events) >= 3:
                started.set()

        ui.onEvent = on_event
        core.resumeGame()
        self.assertTrue(started.wait(10))
        core.evaluator.cancel()
        self.assertTrue(core.evaluator.wait_idle(10))

        placed = sum(len(f) for f in core.foundations)
        self.assertGreaterEqual(placed, 3)
        self.assertLess(placed, 52)
        self.assertFalse(core.gameWon)
        self.assertEqual(52, len(set(core.allCards())))
        self.assertEqual(52, len(core.allCards()))
        self.assertFalse(core.evaluator.running)

class EvaluatorTestCase(unittest.TestCase):
    def test_requests_during_evaluation_are_coalesced(self):
        core, _ = make_core(tableau=[[up(S, 5)]], stock=[down(H, 1)])
        calls = []
        original = stalemate.is_stalemate

        def reentrant(board):
            calls.append(board)
            if len(calls) == 1:
                core.requestEvaluation()
                core.requestEvaluation()
            return original(board)

        with patch.object(stalemate, "is_stalemate", side_effect=reentrant):
            core.requestEvaluation()
        self.assertEqual(2, len(calls))
        self.assertEqual(2, core.evaluator.evaluations)
        self.assertFalse(core.evaluator.running)

    def test_failed_evaluation_releases_the_runner(self):
        core, _ = make_core(tableau=[[up(S, 5)]])
        with patch.object(stalemate, "is_stalemate", side_effect=RuntimeError("boom")):
            with self.assertRaises(RuntimeError):
                core.requestEvaluation()
        self.assertFalse(core.evaluator.running)
        core.requestEvaluation()
        self.assertTrue(core.noMovesLeft)


if __name__ == "__main__":
    unittest.main()
