from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "db_path": "lessons.db",
    "vocab_files": [],
    "highlight_vocabulary": True,
    "shuffle_clues": True,
    "default_section": "General",
    "default_unit": "Unit 1",
}


@dataclass
class Settings:
    db_path: str = DEFAULTS["db_path"]
    vocab_files: list[str] = field(default_factory=lambda: list(DEFAULTS["vocab_files"]))
    highlight_vocabulary: bool = DEFAULTS["highlight_vocabulary"]
    shuffle_clues: bool = DEFAULTS["shuffle_clues"]
    default_section: str = DEFAULTS["default_section"]
    default_unit: str = DEFAULTS["default_unit"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def data_dir(self) -> Path:
        return self.project_root / "data"

    @property
    def db_full_path(self) -> Path:
        return self.project_root / self.db_path

    def resolved_vocab_files(self) -> list[Path]:
        if self.vocab_files:
            root = self.project_root
            return [root / f for f in self.vocab_files]
        return sorted([*self.data_dir.glob("*.md"), *self.data_dir.glob("*.json")])

    def to_dict(self) -> dict:
        return {
            "db_path": self.db_path,
            "vocab_files": self.vocab_files,
            "highlight_vocabulary": self.highlight_vocabulary,
            "shuffle_clues": self.shuffle_clues,
            "default_section": self.default_section,
            "default_unit": self.default_unit,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
