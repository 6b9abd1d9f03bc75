from __future__ import annotations
from dataclasses import dataclass
from PySide6.QtCore import QObject, Signal

@dataclass(frozen=True)
class Notify:
    message: str
    notify_type: str = "info"   # info/success/warn/error

class AppState(QObject):
    notification = Signal(object)   # emits Notify

    def __init__(self):
        super().__init__()
        self.app_data_dir: str | None = None
        self.db = None
        self.config = None
        self.library = None
        self.player = None
        self.queue = None
        self.queued_notifications: list[Notify] = []
