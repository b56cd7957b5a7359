"""
Selection State

The currently selected episode id and the series it belongs to. Views
watch it; it clears itself when the selected record is deleted.
"""
import logging
from typing import Callable, List, Optional

from episode_catalog.core.event_bus import ChangeBroadcastBus
from episode_catalog.core.events import ChangeEvent, ChangeKind, RecordDeleted

logger = logging.getLogger(__name__)

SelectionWatcher = Callable[["SelectionState"], None]


class SelectionState:
    """
    Usage:
        selection = SelectionState()
        selection.bind(bus)
        unwatch = selection.watch(lambda s: print(s.selected_id))
        selection.select("3", series="Stranger Things")
    """

    def __init__(self):
        self.selected_id: Optional[str] = None
        self.series: Optional[str] = None
        self._watchers: List[SelectionWatcher] = []
        self._bus: Optional[ChangeBroadcastBus] = None
        self._bus_token: Optional[int] = None

    @property
    def has_selection(self) -> bool:
        return self.selected_id is not None

    def select(self, record_id: str, series: Optional[str] = None) -> None:
        self.selected_id = record_id
        self.series = series
        self._notify()

    def clear(self) -> None:
        if self.selected_id is None and self.series is None:
            return
        self.selected_id = None
        self.series = None
        self._notify()

    def watch(self, watcher: SelectionWatcher) -> Callable[[], None]:
        """Register a change callback; returns the function that removes it"""
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def bind(self, bus: ChangeBroadcastBus) -> None:
        """Clear the selection whenever the selected record is deleted"""
        self.unbind()
        self._bus = bus
        self._bus_token = bus.subscribe({ChangeKind.DELETED}, self._on_deleted, name="selection")

    def unbind(self) -> None:
        if self._bus is not None and self._bus_token is not None:
            self._bus.unsubscribe(self._bus_token)
        self._bus = None
        self._bus_token = None

    def _on_deleted(self, event: ChangeEvent) -> None:
        if isinstance(event, RecordDeleted) and event.id == self.selected_id:
            logger.debug(f"Selected episode {event.id} was deleted; clearing selection")
            self.clear()

    def _notify(self) -> None:
        for watcher in list(self._watchers):
            try:
                watcher(self)
            except Exception as e:
                logger.error(f"Selection watcher failed: {e}", exc_info=True)

    def __repr__(self) -> str:
        return f"SelectionState(selected_id={self.selected_id}, series={self.series})"
