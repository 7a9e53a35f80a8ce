import configparser
from pathlib import Path

from base.Core import GameConfig
from session.game_store import DEFAULT_SAVE_DIR

SETTINGS_PATH = Path(__file__).with_name("settings.ini")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_SETTINGS = {
    "auto_complete": "1",
    "auto_complete_delay": "0.0",
    "async_evaluation": "0",
    "save_dir": "",
    "log_level": "INFO",
}


def _as_flag(value, default):
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return "1"
    if text in ("0", "false", "no", "off"):
        return "0"
    return default


def _sanitize(settings):
    data = dict(DEFAULT_SETTINGS)
    data.update(settings)

    data["auto_complete"] = _as_flag(data["auto_complete"], DEFAULT_SETTINGS["auto_complete"])
    data["async_evaluation"] = _as_flag(data["async_evaluation"], DEFAULT_SETTINGS["async_evaluation"])

    try:
        delay = float(data["auto_complete_delay"])
    except Exception:
        delay = float(DEFAULT_SETTINGS["auto_complete_delay"])
    if delay < 0 or delay > 5:
        delay = float(DEFAULT_SETTINGS["auto_complete_delay"])
    data["auto_complete_delay"] = str(delay)

    level = str(data["log_level"]).strip().upper()
    if level not in LOG_LEVELS:
        level = DEFAULT_SETTINGS["log_level"]
    data["log_level"] = level

    data["save_dir"] = str(data["save_dir"]).strip()
    return {k: data[k] for k in DEFAULT_SETTINGS}


def load_settings():
    parser = configparser.ConfigParser()
    if not SETTINGS_PATH.exists():
        return dict(DEFAULT_SETTINGS)
    try:
        parser.read(SETTINGS_PATH, encoding="utf-8")
    except Exception:
        return dict(DEFAULT_SETTINGS)
    if "game" not in parser:
        return dict(DEFAULT_SETTINGS)
    raw = {key: parser["game"].get(key, default) for key, default in DEFAULT_SETTINGS.items()}
    return _sanitize(raw)


def save_settings(settings):
    data = _sanitize(settings)
    parser = configparser.ConfigParser()
    parser["game"] = data
    SETTINGS_PATH.parent.mkdir(parents=True, exist_ok=True)
    with SETTINGS_PATH.open("w", encoding="utf-8") as f:
        parser.write(f)


def to_game_config(settings, seed=None) -> GameConfig:
    data = _sanitize(settings)
    config = GameConfig()
    config.seed = seed
    config.autoComplete = data["auto_complete"] == "1"
    config.asyncEvaluation = data["async_evaluation"] == "1"
    config.autoCompleteDelay = float(data["auto_complete_delay"])
    return config


def save_dir(settings) -> Path:
    data = _sanitize(settings)
    if data["save_dir"]:
        return Path(data["save_dir"]).expanduser()
    return DEFAULT_SAVE_DIR


def log_level(settings) -> str:
    return _sanitize(settings)["log_level"]
