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

from dataclasses import dataclass, field
from typing import List, Protocol

import requests

from shared.types import Store

REQUEST_TIMEOUT = 30  # seconds


class StoreSource(Protocol):
    """Where the renderer reads store records from."""

    def list_stores(self) -> List[Store]:
        ...

    def get_store(self, store_id: int) -> Store:
        ...


@dataclass
class InMemoryStoreSource:
    stores: List[Store] = field(default_factory=list)

    def list_stores(self) -> List[Store]:
        return list(self.stores)

    def get_store(self, store_id: int) -> Store:
        for store in self.stores:
            if store.id == store_id:
                return store
        raise LookupError(f"Store {store_id} not found")


@dataclass
class HttpStoreSource:
    """
    Reads stores from the postboard API.

    Args:
        base_url (str): Service root, e.g. ``http://localhost:8000``.
        api_prefix (str): Prefix the store routes are mounted under.
    """

    base_url: str
    api_prefix: str = "/api"
    timeout: float = REQUEST_TIMEOUT

    def _url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{self.api_prefix}{path}"

    def list_stores(self) -> List[Store]:
        response = requests.get(self._url("/stores"), timeout=self.timeout)
        response.raise_for_status()
        return [Store.from_dict(item) for item in response.json()]

    def get_store(self, store_id: int) -> Store:
        response = requests.get(self._url(f"/stores/{store_id}"), timeout=self.timeout)
        response.raise_for_status()
        return Store.from_dict(response.json())
