import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".lecturelens"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

def load_config() -> Dict[str, Any]:
    """Load config from ~/.lecturelens/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # .env may override any value below (e.g. LOG_LEVEL)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    review_cfg = config.get("review", {})
    config["review"] = {
        "default_limit": int(os.getenv("REVIEW_DEFAULT_LIMIT", review_cfg.get("default_limit", 20))),
        "max_limit": int(os.getenv("REVIEW_MAX_LIMIT", review_cfg.get("max_limit", 200))),
    }
    grading_cfg = config.get("grading", {})
    config["grading"] = {
        "perfect_threshold": float(os.getenv("GRADING_PERFECT_THRESHOLD", grading_cfg.get("perfect_threshold", 0.98))),
        "good_threshold": float(os.getenv("GRADING_GOOD_THRESHOLD", grading_cfg.get("good_threshold", 0.85))),
        "pass_threshold": float(os.getenv("GRADING_PASS_THRESHOLD", grading_cfg.get("pass_threshold", 0.70))),
        "close_threshold": float(os.getenv("GRADING_CLOSE_THRESHOLD", grading_cfg.get("close_threshold", 0.50))),
        "some_threshold": float(os.getenv("GRADING_SOME_THRESHOLD", grading_cfg.get("some_threshold", 0.20))),
    }
    server_cfg = config.get("server", {})
    config["server"] = {
        "host": os.getenv("SERVER_HOST", server_cfg.get("host", "127.0.0.1")),
        "port": int(os.getenv("SERVER_PORT", server_cfg.get("port", 8000))),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('review', 'default_limit')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value
