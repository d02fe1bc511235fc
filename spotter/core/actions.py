"""
Action definitions and the label -> action list registry.

Each recognizable label maps to an ordered list of actions (show a
panorama, play a video). The special 'spot' list is the default list that
is not tied to a visual detection.
"""

import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

SPOT_LABEL = 'spot'


class ActionKind(Enum):
    PANORAMA = 'panorama'
    VIDEO = 'video'

    @classmethod
    def parse(cls, value) -> 'ActionKind':
        if isinstance(value, ActionKind):
            return value
        text = str(value or '').strip().lower()
        aliases = {
            'panorama': cls.PANORAMA,
            'panoramaview': cls.PANORAMA,
            'show_panorama': cls.PANORAMA,
            'image': cls.PANORAMA,
            'video': cls.VIDEO,
            'videoplayer': cls.VIDEO,
            'play_video': cls.VIDEO,
        }
        if text not in aliases:
            raise ValueError(f"Unknown action type: {value!r}")
        return aliases[text]


@dataclass(frozen=True)
class Action:
    """A single follow-up presentation."""
    kind: ActionKind
    media: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Action':
        if not isinstance(data, dict):
            raise ValueError(f"Action must be a dict, got {type(data).__name__}")
        media = data.get('media')
        if not media:
            raise ValueError(f"Action missing media: {data}")
        return cls(ActionKind.parse(data.get('type')), str(media))

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.kind.value, 'media': self.media}


ActionList = Tuple[Action, ...]


class ActionRegistry:
    """Registry mapping labels to action lists, optionally persisted as JSON."""

    def __init__(self, actions: Dict[str, List[Dict[str, Any]]] = None, filepath: str = None):
        """
        Initialize the registry.

        Args:
            actions: Mapping of label -> list of {type, media} dicts
            filepath: Optional JSON file to load from and save to
        """
        self.filepath = filepath
        self._lists: Dict[str, ActionList] = {}
        if filepath:
            self._load()
        for label, items in (actions or {}).items():
            self._lists[label] = self._build(label, items)

    @staticmethod
    def _build(label: str, items) -> ActionList:
        if not isinstance(items, (list, tuple)):
            raise ValueError(f"Actions for '{label}' must be a list")
        return tuple(item if isinstance(item, Action) else Action.from_dict(item) for item in items)

    def _load(self):
        """Load action lists from file."""
        if not os.path.exists(self.filepath):
            return
        with open(self.filepath, 'r') as f:
            data = json.load(f)
        self._lists = {label: self._build(label, items) for label, items in data.items()}
        print(f"Action lists loaded: {len(self._lists)} from {self.filepath}")

    def _save(self):
        """Save action lists to file."""
        if not self.filepath:
            return
        directory = os.path.dirname(self.filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

    def register(self, label: str, actions) -> ActionList:
        """
        Register (or replace) the action list for a label.

        Args:
            label: Classifier label, or 'spot' for the default list
            actions: List of Action objects or {type, media} dicts
        """
        built = self._build(label, actions)
        self._lists[label] = built
        self._save()
        print(f"Action list registered: {label} ({len(built)} actions)")
        return built

    def get(self, label: str) -> Optional[ActionList]:
        return self._lists.get(label)

    def get_spot(self) -> Optional[ActionList]:
        return self._lists.get(SPOT_LABEL)

    def delete(self, label: str) -> bool:
        if label in self._lists:
            del self._lists[label]
            self._save()
            return True
        return False

    def labels(self) -> List[str]:
        return list(self._lists)

    def __contains__(self, label: str) -> bool:
        return label in self._lists

    def __len__(self) -> int:
        return len(self._lists)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {label: [a.to_dict() for a in actions] for label, actions in self._lists.items()}
