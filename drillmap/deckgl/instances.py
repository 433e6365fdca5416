"""
Registry of deck.gl scene instances.

A DeckInstance holds what a deck.gl `Deck` would hold on the page: the view
state, the view mode and the current layer list. Instances are created and
removed explicitly; looking up an id that was never created, or was already
removed, is a lifecycle bug and raises.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import pydeck as pdk

from drillmap.config_types import DeckViewConfig
from drillmap.deckgl.layers import RenderLayer
from drillmap.errors import DuplicateInstanceError, InstanceNotFoundError

logger = logging.getLogger(__name__)

ClickHandler = Callable[[Optional[Dict[str, Any]]], None]


class DeckInstance:
    """One deck.gl scene: view state, mode and layers."""

    def __init__(
        self,
        instance_id: str,
        view: DeckViewConfig,
        mode: str = "2d",
        initial_view_state: Optional[Dict[str, float]] = None,
        on_click: Optional[ClickHandler] = None,
    ):
        self.instance_id = instance_id
        self.mode = mode
        self.latitude_limit = view.latitude_limit
        self.on_click = on_click
        self.view_state: Dict[str, float] = {
            "longitude": view.longitude,
            "latitude": view.latitude,
            "zoom": view.zoom,
            "pitch": view.pitch_3d if mode == "3d" else view.pitch,
        }
        if initial_view_state:
            self.view_state.update(initial_view_state)
        self.view_state = self.constrain_view_state(self.view_state)
        self.layers: List[RenderLayer] = []
        self.redraw_count = 0

    def constrain_view_state(self, view_state: Dict[str, float]) -> Dict[str, float]:
        """Copy of `view_state` with latitude clamped to +/- latitude_limit."""
        limit = self.latitude_limit
        latitude = max(-limit, min(limit, float(view_state.get("latitude", 0.0))))
        return {**view_state, "latitude": latitude}

    def on_view_state_change(self, view_state: Dict[str, float]) -> Dict[str, float]:
        self.view_state = self.constrain_view_state(view_state)
        return self.view_state

    def set_layers(self, layers: Sequence[RenderLayer]) -> None:
        self.layers = list(layers)
        self.redraw_count += 1

    def click(self, pick_info: Optional[Dict[str, Any]]) -> None:
        """Dispatch a pick result ({"object": ..., "layer": {"id": ...}})."""
        if self.on_click is not None:
            self.on_click(pick_info)

    def to_pydeck(self, tooltip: Any = None) -> pdk.Deck:
        return pdk.Deck(
            layers=[layer.to_pydeck() for layer in self.layers],
            initial_view_state=pdk.ViewState(**self.view_state),
            views=[pdk.View(type="MapView", controller=True, repeat=True)],
            map_style=None,
            map_provider=None,
            tooltip=tooltip if tooltip is not None else False,
        )


class DeckInstanceRegistry:
    """
    Id -> DeckInstance map.

    Usage:
        registry = DeckInstanceRegistry()
        deck = registry.create("deckgl-1", app_config.deck, mode="3d")
        registry.get("deckgl-1").set_layers(manager.get_all())
        registry.remove("deckgl-1")
    """

    def __init__(self):
        self._instances: Dict[str, DeckInstance] = {}

    def create(
        self,
        instance_id: str,
        view: Optional[DeckViewConfig] = None,
        mode: str = "2d",
        initial_view_state: Optional[Dict[str, float]] = None,
        on_click: Optional[ClickHandler] = None,
    ) -> DeckInstance:
        if instance_id in self._instances:
            raise DuplicateInstanceError(instance_id)
        instance = DeckInstance(
            instance_id,
            view or DeckViewConfig(),
            mode=mode,
            initial_view_state=initial_view_state,
            on_click=on_click,
        )
        self._instances[instance_id] = instance
        logger.debug(f"🆕 Deck instance {instance_id} ({mode})")
        return instance

    def get(self, instance_id: str) -> DeckInstance:
        try:
            return self._instances[instance_id]
        except KeyError:
            raise InstanceNotFoundError(instance_id) from None

    def remove(self, instance_id: str) -> None:
        if instance_id not in self._instances:
            raise InstanceNotFoundError(instance_id)
        del self._instances[instance_id]
        logger.debug(f"🗑️ Deck instance {instance_id} removed")

    def ids(self) -> List[str]:
        return list(self._instances)

    def __contains__(self, instance_id: str) -> bool:
        return instance_id in self._instances

    def __len__(self) -> int:
        return len(self._instances)
