"""
Renders the store map headlessly and prints the placed markers as JSON.

Useful for checking which store addresses the geocoder can resolve.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storemap.geocoder import KakaoGeocoder
from storemap.renderer import StoreMapRenderer
from storemap.stores import HttpStoreSource


def main() -> int:
    parser = argparse.ArgumentParser(description="Geocode stores and list markers")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Postboard service root",
    )
    parser.add_argument(
        "--store-id",
        type=int,
        default=None,
        help="Render only this store",
    )
    parser.add_argument(
        "--kakao-key",
        default=os.environ.get("KAKAO_REST_API_KEY"),
        help="Kakao REST API key (default: $KAKAO_REST_API_KEY)",
    )
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    if not args.kakao_key:
        print("A Kakao REST API key is required.")
        return 2

    renderer = StoreMapRenderer(
        source=HttpStoreSource(args.base_url),
        geocoder=KakaoGeocoder(api_key=args.kakao_key),
    )
    if args.store_id is None:
        markers = asyncio.run(renderer.render_all())
    else:
        markers = asyncio.run(renderer.render_one(args.store_id))

    print(json.dumps([asdict(marker) for marker in markers], ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
