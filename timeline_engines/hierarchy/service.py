"""Group manager: parent/child layer graph on top of the timeline store."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from timeline_engines.common.errors import (
    CircularReferenceError,
    NotFoundError,
    TimelineError,
    TimelineValidationError,
)
from timeline_engines.event_bus import events as ev
from timeline_engines.event_bus.events import TimelineEvent
from timeline_engines.timeline_core.models import Layer, LayerCreate
from timeline_engines.timeline_core.service import TimelineStore

logger = logging.getLogger(__name__)


class HierarchyManager:
    """
    Builds groups out of layers. Holds no entity data of its own; every change
    goes through the store, so the store's events fire before the group events.

    Rejected operations (unknown ids, cycles) log a warning, publish an ``ERROR``
    event and leave the hierarchy unchanged.
    """

    def __init__(self, store: TimelineStore) -> None:
        self.store = store

    @property
    def bus(self):
        return self.store.bus

    def _reject(self, error: TimelineError) -> None:
        logger.warning("Hierarchy change rejected: %s", error)
        self.bus.emit(TimelineEvent.ERROR, ev.ErrorEvent(error=error.detail()))

    def _missing(self, ids: Sequence[str]) -> Optional[str]:
        for layer_id in ids:
            if not self.store.has_layer(layer_id):
                return layer_id
        return None

    # ------------------------------------------------------------------
    # Queries

    def would_create_circular_reference(self, layer_id: str, group_id: str) -> bool:
        """True if ``layer_id`` is ``group_id`` or one of its ancestors."""
        if layer_id == group_id:
            return True
        return layer_id in self.store.get_ancestors(group_id)

    def get_child_layers(self, group_id: str) -> List[Layer]:
        return self.store.get_children(group_id)

    def get_parent_group(self, layer_id: str) -> Optional[Layer]:
        layer = self.store.get_layer(layer_id)
        if layer.parent_id is None:
            return None
        return self.store.get_layer(layer.parent_id)

    def get_top_level_groups(self) -> List[Layer]:
        return [
            layer
            for layer in self.store.get_layers()
            if layer.parent_id is None and self.store.is_group(layer.id)
        ]

    def is_child_of_group(self, layer_id: str, group_id: str) -> bool:
        """True if ``group_id`` is any ancestor of ``layer_id``."""
        if layer_id == group_id:
            return False
        return group_id in self.store.get_ancestors(layer_id)[1:]

    def get_layers_with_indentation(self) -> List[Tuple[Layer, int]]:
        """
        Depth-first, pre-order listing of layers with their depth.

        Starts at top-level layers; the subtree of a collapsed layer is skipped.
        Siblings are ordered by ``order`` ascending, ties keep insertion order.
        """
        result: List[Tuple[Layer, int]] = []
        top_level = sorted(
            (layer for layer in self.store.get_layers() if layer.parent_id is None),
            key=lambda layer: layer.order,
        )
        stack: List[Tuple[Layer, int]] = [(layer, 0) for layer in reversed(top_level)]
        visited = set()
        while stack:
            layer, depth = stack.pop()
            if layer.id in visited:
                continue
            visited.add(layer.id)
            result.append((layer, depth))
            if layer.is_expanded:
                for child in reversed(self.store.get_children(layer.id)):
                    stack.append((child, depth + 1))
        return result

    # ------------------------------------------------------------------
    # Mutations

    def create_group(self, name: str, layer_ids: Sequence[str]) -> Optional[str]:
        if not layer_ids:
            self._reject(TimelineValidationError("Cannot create a group with no layers selected"))
            return None
        missing = self._missing(layer_ids)
        if missing is not None:
            self._reject(NotFoundError("layer", missing))
            return None

        # a group of siblings stays under their shared parent
        parents = {self.store.get_layer(layer_id).parent_id for layer_id in layer_ids}
        parent_id = parents.pop() if len(parents) == 1 else None
        if parent_id in layer_ids:
            parent_id = None

        group = self.store.add_layer(LayerCreate(name=name, parent_id=parent_id, is_expanded=True))
        child_ids = list(dict.fromkeys(layer_ids))
        for order, layer_id in enumerate(child_ids):
            self.store.update_layer(layer_id, {"parent_id": group.id, "order": order})
        self.bus.emit(TimelineEvent.GROUP_CREATED, ev.GroupCreatedEvent(group_id=group.id, child_ids=child_ids))
        logger.info("Created group %s with %s layers", group.id, len(child_ids))
        return group.id

    def _delete_subtree(self, layer_id: str) -> None:
        for child in self.store.get_children(layer_id):
            self._delete_subtree(child.id)
        self.store.remove_layer(layer_id)

    def delete_group(self, group_id: str, preserve_children: bool = True) -> bool:
        if not self.store.has_layer(group_id):
            self._reject(NotFoundError("group", group_id))
            return False
        group = self.store.get_layer(group_id)

        if preserve_children:
            for child in self.store.get_children(group_id):
                self.store.update_layer(child.id, {"parent_id": group.parent_id})
            self.store.remove_layer(group_id)
        else:
            self._delete_subtree(group_id)

        self.bus.emit(
            TimelineEvent.GROUP_DELETED,
            ev.GroupDeletedEvent(group_id=group_id, preserve_children=preserve_children),
        )
        return True

    def rename_group(self, group_id: str, name: str) -> bool:
        if not self.store.has_layer(group_id):
            self._reject(NotFoundError("group", group_id))
            return False
        self.store.update_layer(group_id, {"name": name})
        return True

    def add_layer_to_group(self, layer_id: str, group_id: str) -> bool:
        missing = self._missing([layer_id, group_id])
        if missing is not None:
            self._reject(NotFoundError("layer", missing))
            return False
        if self.would_create_circular_reference(layer_id, group_id):
            self._reject(CircularReferenceError(layer_id, group_id))
            return False
        siblings = self.store.get_children(group_id)
        order = max((s.order for s in siblings), default=-1) + 1
        self.store.update_layer(layer_id, {"parent_id": group_id, "order": order})
        return True

    def remove_layer_from_group(self, layer_id: str) -> bool:
        """Move a layer out of its group to the top level."""
        if not self.store.has_layer(layer_id):
            self._reject(NotFoundError("layer", layer_id))
            return False
        if self.store.get_layer(layer_id).parent_id is None:
            return False
        self.store.update_layer(layer_id, {"parent_id": None})
        return True

    def toggle_group_expanded(self, group_id: str) -> Optional[bool]:
        if not self.store.has_layer(group_id):
            self._reject(NotFoundError("group", group_id))
            return None
        expanded = not self.store.get_layer(group_id).is_expanded
        self.store.update_layer(group_id, {"is_expanded": expanded})
        event = TimelineEvent.GROUP_EXPANDED if expanded else TimelineEvent.GROUP_COLLAPSED
        self.bus.emit(event, ev.GroupToggledEvent(group_id=group_id, is_expanded=expanded))
        return expanded
