"""Persist and load CLI mapping profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


@dataclass
class MappingProfile:
    roster_mapping: Dict[str, str]
    preset: Optional[str] = None
    team_names: list[str] = field(default_factory=list)

    @classmethod
    def load(cls, path: Path) -> "MappingProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            roster_mapping=data.get("roster_mapping", {}),
            preset=data.get("preset"),
            team_names=list(data.get("team_names", [])),
        )

    def save(self, path: Path) -> None:
        payload = {
            "roster_mapping": self.roster_mapping,
            "preset": self.preset,
            "team_names": self.team_names,
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
