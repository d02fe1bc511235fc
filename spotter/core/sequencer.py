"""
Action sequencer.

Runs the action list of a confirmed (or manually triggered) label one step
at a time. A step is complete only when its viewer reports that it closed;
the close report carries the viewer kind and label, and the sequencer's
cursor is the single source of truth for which step that report belongs to.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .actions import Action, ActionKind, ActionList
from .session import SessionState


class SequenceOrigin(Enum):
    AUTO = 'auto'
    MANUAL = 'manual'
    RESUMED_FROM_VIDEO = 'resumed_from_video'


@dataclass
class SequencerState:
    label: str
    actions: ActionList
    cursor: int = 0
    origin: SequenceOrigin = SequenceOrigin.AUTO

    @property
    def current_action(self) -> Optional[Action]:
        if 0 <= self.cursor < len(self.actions):
            return self.actions[self.cursor]
        return None


class ActionSequencer:
    """Executes one action list at a time."""

    def __init__(self, session: SessionState):
        self.session = session
        self.state: Optional[SequencerState] = None

        # Callbacks, set by the owner
        self.on_action_requested: Optional[Callable[[Action, str, int, SequenceOrigin], None]] = None
        self.on_finished: Optional[Callable[[str], None]] = None

    @property
    def in_flight(self) -> bool:
        return self.state is not None

    @property
    def current_identifier(self) -> Optional[str]:
        return self.state.label if self.state else None

    @property
    def current_action_index(self) -> Optional[int]:
        return self.state.cursor if self.state else None

    def start(self, label: str, actions: ActionList, origin: SequenceOrigin = SequenceOrigin.AUTO) -> bool:
        """
        Start a sequence for a label.

        Returns:
            True if started, False if another sequence is in flight or the
            list is empty
        """
        if self.state is not None:
            print(f"Sequence for '{self.state.label}' in flight, ignoring start for '{label}'")
            return False
        if not actions:
            return False

        self.state = SequencerState(label=label, actions=tuple(actions), cursor=0, origin=origin)
        self.session.suspend('sequence')
        print(f"Sequence started: {label} ({len(actions)} actions, {origin.value})")
        self._execute_current()
        return True

    def advance(self):
        """Move to the next action, or finish the sequence."""
        if self.state is None:
            return
        self.state.cursor += 1
        if self.state.cursor < len(self.state.actions):
            self._execute_current()
        else:
            self._finish()

    def report_viewer_closed(self, kind=None, label: str = None, index: int = None) -> bool:
        """
        Handle a viewer closing.

        Reports that do not match the in-flight step (no sequence, another
        label, another kind, or a stale index) are ignored.

        Returns:
            True if the report advanced the sequence
        """
        state = self.state
        if state is None:
            print("Viewer closed with no sequence in flight, ignoring")
            return False
        if label is not None and label != state.label:
            print(f"Viewer closed for '{label}' but '{state.label}' is in flight, ignoring")
            return False
        if index is not None and index != state.cursor:
            print(f"Viewer closed for step {index} but step {state.cursor} is current, ignoring")
            return False
        current = state.current_action
        if kind is not None and current is not None and ActionKind.parse(kind) != current.kind:
            print(f"Viewer '{ActionKind.parse(kind).value}' closed but current step is "
                  f"'{current.kind.value}', ignoring")
            return False

        if current is not None and current.kind == ActionKind.VIDEO:
            state.origin = SequenceOrigin.RESUMED_FROM_VIDEO
        self.advance()
        return True

    def _execute_current(self):
        state = self.state
        action = state.current_action
        print(f"Sequence step {state.cursor + 1}/{len(state.actions)}: "
              f"{action.kind.value} {action.media}")
        if self.on_action_requested:
            self.on_action_requested(action, state.label, state.cursor, state.origin)

    def _finish(self):
        label = self.state.label
        self.state = None
        print(f"Sequence complete: {label}")
        self.session.resume('sequence')
        if self.on_finished:
            self.on_finished(label)

    def cancel(self):
        """Drop the in-flight sequence without finishing it."""
        if self.state is not None:
            print(f"Sequence cancelled: {self.state.label}")
        self.state = None
        self.session.resume('sequence')

    def get_summary(self) -> dict:
        state = self.state
        if state is None:
            return {'in_flight': False}
        return {
            'in_flight': True,
            'label': state.label,
            'cursor': state.cursor,
            'length': len(state.actions),
            'origin': state.origin.value,
        }
