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

import math
from dataclasses import dataclass
from enum import StrEnum


class Role(StrEnum):
    USER = "USER"
    AUTHOR = "AUTHOR"
    ADMIN = "ADMIN"


@dataclass
class Coordinates:
    lat: float
    lng: float


@dataclass
class Store:
    """A store shown on the map. Owned by the backend, read by the map."""

    id: int
    name: str
    addr: str
    review: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Store":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            addr=data.get("addr", ""),
            review=data.get("review") or "",
        )


@dataclass
class PageDescriptor:
    page: int
    page_size: int
    total: int
    total_pages: int

    @classmethod
    def build(cls, page: int, page_size: int, total: int) -> "PageDescriptor":
        total_pages = math.ceil(total / page_size) if page_size > 0 else 0
        return cls(
            page=page, page_size=page_size, total=total, total_pages=total_pages
        )
