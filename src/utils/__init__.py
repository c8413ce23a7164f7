"""Configuration, logging and operator notices."""
from .config import Config
from .logger import setup_logging, log_timing
from .notices import NoticeBoard, Notice

__all__ = ["Config", "setup_logging", "log_timing", "NoticeBoard", "Notice"]
