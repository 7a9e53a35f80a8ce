import json
from pathlib import Path

from base.logging_utils import get_logger

STATS_PATH = Path(__file__).with_name("stats.json")

logger = get_logger(__name__)


def _default_stats():
    return {
        "games_started": 0,
        "games_won": 0,
        "total_moves": 0,
        "best_moves": 0,
        "total_duration_sec": 0.0,
        "best_score": 0,
        "current_streak": 0,
        "best_streak": 0,
    }


def _as_int(value, default=0):
    try:
        return int(value)
    except Exception:
        return int(default)


def _as_float(value, default=0.0):
    try:
        return float(value)
    except Exception:
        return float(default)


def _sanitize(data):
    out = _default_stats()
    if not isinstance(data, dict):
        return out
    for key in ("games_started", "games_won", "total_moves", "best_moves", "best_score", "current_streak", "best_streak"):
        out[key] = max(0, _as_int(data.get(key), out[key]))
    out["total_duration_sec"] = max(0.0, _as_float(data.get("total_duration_sec"), out["total_duration_sec"]))
    return out


def load_stats(path=None):
    path = Path(path or STATS_PATH)
    if not path.exists():
        return _default_stats()
    try:
        return _sanitize(json.loads(path.read_text(encoding="utf-8")))
    except Exception:
        return _default_stats()


def save_stats(stats, path=None):
    path = Path(path or STATS_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(_sanitize(stats), ensure_ascii=False, indent=2), encoding="utf-8")


def record_game_started(stats):
    stats = _sanitize(stats)
    stats["games_started"] += 1
    return stats


def record_game_won(stats, moves, duration_sec, score=0):
    stats = _sanitize(stats)
    moves = max(0, int(moves))
    stats["games_won"] += 1
    stats["total_moves"] += moves
    stats["total_duration_sec"] += max(0.0, float(duration_sec))
    if stats["best_moves"] == 0 or moves < stats["best_moves"]:
        stats["best_moves"] = moves
    stats["best_score"] = max(stats["best_score"], int(score))
    stats["current_streak"] += 1
    stats["best_streak"] = max(stats["best_streak"], stats["current_streak"])
    return stats


def record_game_lost(stats, moves):
    stats = _sanitize(stats)
    stats["total_moves"] += max(0, int(moves))
    stats["current_streak"] = 0
    return stats


def win_percentage(stats) -> float:
    stats = _sanitize(stats)
    if stats["games_started"] == 0:
        return 0.0
    return stats["games_won"] / stats["games_started"] * 100


def average_moves(stats) -> float:
    stats = _sanitize(stats)
    if stats["games_started"] == 0:
        return 0.0
    return stats["total_moves"] / stats["games_started"]


class StatsRecorder:
    """Collaborator the session reports discrete game outcomes to."""

    def __init__(self, path=None):
        self.path = path

    def _update(self, change, *args):
        stats = change(load_stats(self.path), *args)
        try:
            save_stats(stats, self.path)
        except OSError as exc:
            logger.warning("could not save stats: %s", exc)
        return stats

    def game_started(self):
        return self._update(record_game_started)

    def game_won(self, moves, duration_sec, score=0):
        return self._update(record_game_won, moves, duration_sec, score)

    def game_abandoned(self, moves):
        return self._update(record_game_lost, moves)
