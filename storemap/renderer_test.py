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

import threading
import unittest

from shared.types import Coordinates, Store
from storemap.geocoder import InMemoryGeocoder
from storemap.renderer import DEFAULT_CENTER, InMemoryMapCanvas, StoreMapRenderer
from storemap.stores import InMemoryStoreSource

STORES = [
    Store(id=1, name="Noodle House", addr="Jeju-si 1", review="Rich broth"),
    Store(id=2, name="Tangerine Cafe", addr="Seogwipo-si 2", review="Great view"),
    Store(id=3, name="Lost Shop", addr="Nowhere", review="?"),
]
KNOWN = {
    "Jeju-si 1": Coordinates(lat=33.5, lng=126.5),
    "Seogwipo-si 2": Coordinates(lat=33.25, lng=126.56),
}


class RaisingGeocoder:
    def address_search(self, address):
        if address == "Jeju-si 1":
            raise RuntimeError("quota exceeded")
        return KNOWN.get(address)


class HandshakeGeocoder:
    """Store 1's lookup only returns after store 2's lookup has finished."""

    def __init__(self):
        self.second_done = threading.Event()
        self.first_saw_second = None

    def address_search(self, address):
        if address == "Jeju-si 1":
            self.first_saw_second = self.second_done.wait(timeout=5)
            return KNOWN[address]
        result = KNOWN.get(address)
        self.second_done.set()
        return result


class StoreMapRendererTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.canvas = InMemoryMapCanvas()
        self.renderer = StoreMapRenderer(
            source=InMemoryStoreSource(list(STORES)),
            geocoder=InMemoryGeocoder(known=dict(KNOWN)),
            canvas=self.canvas,
        )

    async def test_render_all_skips_ungeocodable_stores(self):
        markers = await self.renderer.render_all()
        self.assertEqual(sorted(m.store.id for m in markers), [1, 2])
        self.assertEqual(set(self.renderer.markers), {1, 2})
        self.assertEqual(len(self.canvas.markers), 2)
        self.assertEqual(self.canvas.options.center, DEFAULT_CENTER)
        self.assertEqual(self.canvas.options.level, 9)
        self.assertEqual(self.renderer.markers[2].position, KNOWN["Seogwipo-si 2"])

    async def test_geocoder_exception_is_swallowed(self):
        renderer = StoreMapRenderer(
            source=InMemoryStoreSource(list(STORES)),
            geocoder=RaisingGeocoder(),
            canvas=self.canvas,
        )
        markers = await renderer.render_all()
        self.assertEqual([m.store.id for m in markers], [2])

    async def test_render_one(self):
        markers = await self.renderer.render_one(2)
        self.assertEqual([m.store.name for m in markers], ["Tangerine Cafe"])
        self.assertEqual(list(self.renderer.markers), [2])

    async def test_geocodes_run_concurrently(self):
        geocoder = HandshakeGeocoder()
        renderer = StoreMapRenderer(
            source=InMemoryStoreSource(STORES[:2]),
            geocoder=geocoder,
            canvas=self.canvas,
        )
        markers = await renderer.render_all()
        self.assertTrue(geocoder.first_saw_second)
        self.assertEqual(sorted(m.store.id for m in markers), [1, 2])
        # Completion order is free; each store still owns its own marker.
        self.assertEqual(renderer.markers[1].store.id, 1)
        self.assertEqual(renderer.markers[2].store.id, 2)

    async def test_hover_bubbles_are_independent(self):
        await self.renderer.render_all()
        self.renderer.hover(1)
        self.assertTrue(self.renderer.markers[1].bubble_open)
        self.assertFalse(self.renderer.markers[2].bubble_open)

        self.renderer.hover(2)
        self.renderer.hover_out(1)
        self.assertFalse(self.renderer.markers[1].bubble_open)
        self.assertTrue(self.renderer.markers[2].bubble_open)
        self.assertIn("Tangerine Cafe", self.renderer.markers[2].bubble_html())

    async def test_click_replaces_detail_panel(self):
        await self.renderer.render_all()
        self.assertFalse(self.renderer.detail.visible)

        self.renderer.click(1)
        self.assertTrue(self.renderer.detail.visible)
        self.assertIs(self.renderer.selected, self.renderer.markers[1])
        self.assertIn("Rich broth", self.renderer.detail.to_html())

        self.renderer.click(2)
        self.assertIs(self.renderer.selected, self.renderer.markers[2])
        panel = self.renderer.detail.to_html()
        self.assertIn("Tangerine Cafe", panel)
        self.assertIn("Seogwipo-si 2", panel)
        self.assertNotIn("Noodle House", panel)

    async def test_toggle_is_independent_of_selection(self):
        await self.renderer.render_all()
        self.renderer.click(1)
        self.renderer.toggle_detail()
        self.assertFalse(self.renderer.detail.visible)
        # Clicking the already selected marker leaves the panel alone.
        self.renderer.click(1)
        self.assertFalse(self.renderer.detail.visible)
        self.renderer.toggle_detail()
        self.assertTrue(self.renderer.detail.visible)
        self.assertEqual(self.renderer.detail.store.id, 1)

    async def test_rerender_clears_markers_and_selection(self):
        await self.renderer.render_all()
        self.renderer.click(1)
        await self.renderer.render_one(2)
        self.assertIsNone(self.renderer.selected)
        self.assertEqual(list(self.renderer.markers), [2])
        self.assertEqual(self.canvas.resets, 2)
        self.assertEqual(len(self.canvas.markers), 1)

    async def test_unknown_marker_events_are_ignored(self):
        await self.renderer.render_all()
        self.renderer.hover(3)
        self.renderer.click(3)
        self.assertIsNone(self.renderer.selected)


class HtmlEscapingTest(unittest.TestCase):
    def test_store_text_is_escaped(self):
        renderer = StoreMapRenderer(
            source=InMemoryStoreSource([]), geocoder=InMemoryGeocoder()
        )
        renderer.detail.show(Store(id=9, name="<b>x</b>", addr="a&b", review="<script>"))
        panel = renderer.detail.to_html()
        self.assertIn("&lt;b&gt;x&lt;/b&gt;", panel)
        self.assertIn("a&amp;b", panel)
        self.assertNotIn("<script>", panel)


if __name__ == "__main__":
    unittest.main()
