"""
Slot-keyed store of render layers.

At most one layer occupies each LayerSlot. Whatever goes into a slot carries
the slot's name as its id, so deck.gl sees a replacement as an update of the
same layer rather than a remove followed by an add.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from drillmap.deckgl.layers import CANONICAL_ORDER, LayerSlot, RenderLayer

logger = logging.getLogger(__name__)

SlotKey = Union[LayerSlot, str]


class LayerManager:
    """
    Arena of immutable RenderLayer records indexed by slot.

    Usage:
        manager = LayerManager()
        manager.add("boundary", build_geojson_layer(geography))
        manager.update("points", {"pickable": False})
        deck.set_layers(manager.get_all())
    """

    def __init__(self):
        self._layers: Dict[LayerSlot, RenderLayer] = {}

    @staticmethod
    def _slot(slot: SlotKey) -> LayerSlot:
        return slot if isinstance(slot, LayerSlot) else LayerSlot(slot)

    def add(self, slot: SlotKey, layer: RenderLayer) -> None:
        """Install `layer` in `slot`; an occupied slot is updated instead."""
        key = self._slot(slot)
        if key in self._layers:
            self.update(key, layer)
            return
        self._layers[key] = layer.with_id(key.value)

    def update(self, slot: SlotKey, layer_or_props: Union[RenderLayer, Mapping[str, Any]]) -> None:
        """
        Replace or patch the layer in `slot`.

        - A full RenderLayer replaces the current one; its id is forced to the
          slot name when it differs.
        - A props mapping is merged over the current layer's props and a new
          layer of the same type is built from the result.
        - A props mapping for an empty slot is ignored; a full layer for an
          empty slot is installed.
        """
        key = self._slot(slot)

        if isinstance(layer_or_props, RenderLayer):
            if layer_or_props.id != key.value:
                logger.debug(
                    f"🔁 Rebuilding layer '{layer_or_props.id}' as slot '{key.value}'"
                )
            self._layers[key] = layer_or_props.with_id(key.value)
            return

        current = self._layers.get(key)
        if current is None:
            logger.debug(f"⏭️ Ignoring props patch for empty slot '{key.value}'")
            return
        patch = {k: v for k, v in layer_or_props.items() if k != "id"}
        self._layers[key] = current.with_props(patch)

    def remove(self, slot: SlotKey) -> None:
        self._layers.pop(self._slot(slot), None)

    def get(self, slot: SlotKey) -> Optional[RenderLayer]:
        return self._layers.get(self._slot(slot))

    def get_all(self) -> List[RenderLayer]:
        """Occupied slots in canonical order (boundary, points, lines, trails)."""
        return [self._layers[s] for s in CANONICAL_ORDER if s in self._layers]

    def clear(self) -> None:
        self._layers.clear()

    def __contains__(self, slot: SlotKey) -> bool:
        return self._slot(slot) in self._layers

    def __len__(self) -> int:
        return len(self._layers)
