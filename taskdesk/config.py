from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import json
import logging

from .models import UserFilter

log = logging.getLogger(__name__)

APP_DIR = Path.home() / ".taskdesk"
CFG_PATH = APP_DIR / "config.json"

@dataclass
class AppConfig:
    poll_interval_ms: int = 250          # how often the GUI asks the tracker
    cpu_update_interval_s: float = 1.0   # tracker throttle
    cpu_history_size: int = 5
    ticks_per_second: int = 0            # 0 = ask the OS
    user_filter: str = UserFilter.CURRENT.value
    log_level: str = "INFO"

    def user_filter_enum(self) -> UserFilter:
        try:
            return UserFilter(self.user_filter)
        except ValueError:
            return UserFilter.CURRENT

def ensure_dirs() -> None:
    APP_DIR.mkdir(parents=True, exist_ok=True)

def load_config() -> AppConfig:
    ensure_dirs()
    if not CFG_PATH.exists():
        cfg = AppConfig()
        save_config(cfg)
        return cfg
    try:
        data = json.loads(CFG_PATH.read_text(encoding="utf-8"))
        known = {k: data[k] for k in data if k in AppConfig.__dataclass_fields__}
        return AppConfig(**known)
    except (OSError, ValueError, TypeError) as e:
        log.warning("unreadable config %s (%s), restoring defaults", CFG_PATH, e)
        cfg = AppConfig()
        save_config(cfg)
        return cfg

def save_config(cfg: AppConfig) -> None:
    ensure_dirs()
    CFG_PATH.write_text(json.dumps(cfg.__dict__, indent=2), encoding="utf-8")
