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

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import requests

from shared.types import Coordinates

logger = logging.getLogger(__name__)

KAKAO_ADDRESS_SEARCH_URL = "https://dapi.kakao.com/v2/local/search/address.json"
REQUEST_TIMEOUT = 10  # seconds


class Geocoder(Protocol):
    """Resolves a free-form address to a coordinate pair."""

    def address_search(self, address: str) -> Optional[Coordinates]:
        ...


@dataclass
class InMemoryGeocoder:
    """Lookup-table geocoder for tests and offline runs."""

    known: dict[str, Coordinates] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def address_search(self, address: str) -> Optional[Coordinates]:
        self.calls.append(address)
        return self.known.get(address)


@dataclass
class KakaoGeocoder:
    """
    Geocoder backed by the Kakao Local address search API.

    Any HTTP or decoding problem is reported as "no result" so a single
    bad address never breaks a render.
    """

    api_key: str
    url: str = KAKAO_ADDRESS_SEARCH_URL
    timeout: float = REQUEST_TIMEOUT

    def __post_init__(self):
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"KakaoAK {self.api_key}"

    def address_search(self, address: str) -> Optional[Coordinates]:
        try:
            response = self._session.get(
                self.url, params={"query": address}, timeout=self.timeout
            )
            response.raise_for_status()
            documents = response.json().get("documents") or []
        except (requests.RequestException, ValueError) as e:
            logger.debug("Geocoding failed for %r: %s", address, e)
            return None

        if not documents:
            return None
        # Kakao returns x as longitude and y as latitude, both as strings.
        first = documents[0]
        try:
            return Coordinates(lat=float(first["y"]), lng=float(first["x"]))
        except (KeyError, TypeError, ValueError):
            logger.debug("Unexpected geocoding payload for %r: %s", address, first)
            return None
