from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Config:
    volume: float = 0.8
    auto_advance: bool = True
    skip_hidden_files: bool = True
