# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from __future__ import annotations

import asyncio
import html
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Protocol

from shared.types import Coordinates, Store
from storemap.geocoder import Geocoder
from storemap.stores import StoreSource

logger = logging.getLogger(__name__)

DEFAULT_CENTER = Coordinates(lat=33.37903821496581, lng=126.55043597716713)
DEFAULT_LEVEL = 9


@dataclass
class MapOptions:
    center: Coordinates = field(default_factory=lambda: DEFAULT_CENTER)
    level: int = DEFAULT_LEVEL
    scrollwheel: bool = False


@dataclass
class Marker:
    store: Store
    position: Coordinates
    bubble_open: bool = False

    def bubble_html(self) -> str:
        return (
            '<div style="width:150px; text-align:center;">'
            f"{html.escape(self.store.name)}</div>"
        )


@dataclass
class DetailPanel:
    """The side panel showing the store behind the last clicked marker."""

    visible: bool = False
    store: Optional[Store] = None

    def show(self, store: Store) -> None:
        self.store = store
        self.visible = True

    def toggle(self) -> None:
        self.visible = not self.visible

    def to_html(self) -> str:
        if self.store is None:
            return ""
        return (
            '<div class="container my-3">'
            f"<h2>{html.escape(self.store.name)}</h2>"
            f"<p>{html.escape(self.store.review)}</p>"
            f"<p>{html.escape(self.store.addr)}</p>"
            "</div>"
        )


class MapCanvas(Protocol):
    """The drawing surface. Real implementations wrap a map SDK."""

    def reset(self, options: MapOptions) -> None:
        ...

    def place_marker(self, marker: Marker) -> None:
        ...


@dataclass
class InMemoryMapCanvas:
    """Records what would have been drawn."""

    options: Optional[MapOptions] = None
    markers: List[Marker] = field(default_factory=list)
    resets: int = 0

    def reset(self, options: MapOptions) -> None:
        self.options = options
        self.markers = []
        self.resets += 1

    def place_marker(self, marker: Marker) -> None:
        self.markers.append(marker)


class StoreMapRenderer:
    """
    Turns store records into map markers and tracks their interaction state.

    Each render starts one geocoding task per store, keyed by store id.
    Tasks finish in any order and each one only touches its own marker.
    Stores whose address cannot be geocoded get no marker.
    """

    def __init__(
        self,
        source: StoreSource,
        geocoder: Geocoder,
        canvas: Optional[MapCanvas] = None,
        options: Optional[MapOptions] = None,
    ):
        self.source = source
        self.geocoder = geocoder
        self.canvas = canvas or InMemoryMapCanvas()
        self.options = options or MapOptions()
        self.markers: Dict[int, Marker] = {}
        self.selected: Optional[Marker] = None
        self.detail = DetailPanel()
        self._tasks: Dict[int, asyncio.Task] = {}
        self._generation = 0

    async def render_all(self) -> List[Marker]:
        return await self._render(lambda: asyncio.to_thread(self.source.list_stores))

    async def render_one(self, store_id: int) -> List[Marker]:
        async def fetch() -> List[Store]:
            store = await asyncio.to_thread(self.source.get_store, store_id)
            return [store]

        return await self._render(fetch)

    async def _render(self, fetch: Callable[[], Awaitable[List[Store]]]) -> List[Marker]:
        self._generation += 1
        generation = self._generation
        self.canvas.reset(self.options)
        self.markers = {}
        self.selected = None

        stores = await fetch()
        self._tasks = {
            store.id: asyncio.create_task(
                self._place(store, generation), name=f"geocode-store-{store.id}"
            )
            for store in stores
        }
        results = await asyncio.gather(*self._tasks.values())
        placed = [marker for marker in results if marker is not None]
        logger.info("Placed %d of %d store markers", len(placed), len(stores))
        return placed

    async def _place(self, store: Store, generation: int) -> Optional[Marker]:
        try:
            position = await asyncio.to_thread(self.geocoder.address_search, store.addr)
        except Exception as e:
            logger.debug("Geocoding store %s failed: %s", store.id, e)
            return None
        if position is None:
            logger.debug("No coordinates for store %s (%r)", store.id, store.addr)
            return None
        if generation != self._generation:
            # A newer render reset the map while this lookup was in flight.
            return None

        marker = Marker(store=store, position=position)
        self.markers[store.id] = marker
        self.canvas.place_marker(marker)
        return marker

    def hover(self, store_id: int) -> None:
        marker = self.markers.get(store_id)
        if marker:
            marker.bubble_open = True

    def hover_out(self, store_id: int) -> None:
        marker = self.markers.get(store_id)
        if marker:
            marker.bubble_open = False

    def click(self, store_id: int) -> None:
        marker = self.markers.get(store_id)
        if marker is None:
            return
        if self.selected is not marker:
            self.detail.show(marker.store)
        self.selected = marker

    def toggle_detail(self) -> None:
        self.detail.toggle()
