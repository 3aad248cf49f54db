"""
Bounded snapshot history for the FrameMark editor.

Every committed edit pushes a full copy of the surface. Snapshots that
correspond to a pin placement carry the index of that pin, so undoing them
retracts exactly that pin and nothing else.
"""

from dataclasses import dataclass
from typing import List, Optional

from PySide6.QtGui import QImage

from framemark.editor.pins import Pin
from framemark.editor.surface import SurfaceManager
from framemark.services.logging_service import get_logger


DEFAULT_UNDO_DEPTH = 20


@dataclass
class Snapshot:
    """A full copy of the surface at one committed instant."""
    image: QImage
    pin_index: Optional[int] = None

    @property
    def is_pin_commit(self) -> bool:
        return self.pin_index is not None


class UndoStack:
    """
    Ordered, bounded sequence of surface snapshots.

    The stack never drops below one entry (the initial state). It writes
    through to the surface it was built for and to the shared pin list.
    """

    def __init__(
        self,
        surface: SurfaceManager,
        pins: List[Pin],
        max_depth: int = DEFAULT_UNDO_DEPTH
    ) -> None:
        self._logger = get_logger(__name__)
        self._surface = surface
        self._pins = pins
        self._max_depth = max(1, max_depth)
        self._snapshots: List[Snapshot] = [Snapshot(surface.current_snapshot())]

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    @property
    def top(self) -> Snapshot:
        """The most recently committed snapshot."""
        return self._snapshots[-1]

    @property
    def can_undo(self) -> bool:
        return len(self._snapshots) > 1

    @property
    def snapshots(self) -> List[Snapshot]:
        """Snapshots oldest first (a copy of the sequence)."""
        return list(self._snapshots)

    def push(self, pin_index: Optional[int] = None) -> Snapshot:
        """
        Snapshot the current surface and append it.

        Args:
            pin_index: Index into the pin list when this commit placed a pin.

        Returns:
            The pushed snapshot.
        """
        snapshot = Snapshot(self._surface.current_snapshot(), pin_index)
        self._snapshots.append(snapshot)

        while len(self._snapshots) > self._max_depth:
            self._snapshots.pop(0)

        self._logger.debug(
            f"Snapshot pushed (depth {len(self._snapshots)}/{self._max_depth}, "
            f"pin={pin_index})"
        )
        return snapshot

    def pop(self) -> bool:
        """
        Undo the most recent commit.

        Restores the surface to the previous snapshot and retracts the pin
        the popped commit placed, if any.

        Returns:
            True if something was undone, False if only the initial
            snapshot remains.
        """
        if not self.can_undo:
            return False

        popped = self._snapshots.pop()
        self._surface.restore(self.top.image)

        if popped.is_pin_commit and popped.pin_index < len(self._pins):
            del self._pins[popped.pin_index]

        self._logger.debug(
            f"Undo (depth {len(self._snapshots)}, retracted pin={popped.pin_index})"
        )
        return True

    def reset(self) -> None:
        """Clear all pins, restore the source and start a fresh history."""
        self._pins.clear()
        self._surface.reset_to_source()
        self._snapshots = [Snapshot(self._surface.current_snapshot())]
        self._logger.debug("History reset")
