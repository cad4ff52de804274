import os
import asyncio
import csv
import sys
from typing import List, Optional
import pandas as pd
from loguru import logger

from rat.config import INPUT_CSV, OUTPUT_CSV, BATCH_SIZE, LOG_LEVEL, STORE_PATH, GOOGLE_API_KEY
from rat.clients import HttpClient
from rat.lookup import search_restaurant
from rat.models import RestaurantLookup
from rat.places_fetcher import find_place_id
from rat.store import JsonFileKeyValueStore, RecentsFavoritesStore

OUTPUT_COLUMNS = ["Name", "camis", "matched_name", "grade", "color", "stage", "inspections"]


def load_searches_from_csv(file_path: str, nrows: int = None) -> List[dict]:
    """Load restaurant searches from CSV; Name is required, Building/Zipcode/Place ID are optional."""
    df = pd.read_csv(file_path, nrows=nrows, dtype=str)
    searches = []
    for _, row in df.iterrows():
        # Helper to safely extract values from pandas Series, converting NaN to None
        def safe_get(col) -> Optional[str]:
            if col not in row.index:
                return None
            val = row[col]
            if pd.isna(val):
                return None
            return str(val).strip() or None

        name = safe_get("Name")
        if not name:
            continue
        searches.append({
            "name": name,
            "building": safe_get("Building"),
            "zipcode": safe_get("Zipcode"),
            "place_id": safe_get("Place ID"),
        })
    return searches


def batch_iter(items: list, batch_size: int):
    """
    Yield index and slices of size `batch_size` for batched processing.
    """
    n = len(items)
    for i in range(0, n, batch_size):
        yield i, items[i:i+batch_size]


def result_row(lookup: RestaurantLookup) -> list:
    if lookup.view is None:
        return [lookup.query_name, "", "", "N/A", "gray", "", 0]
    return [
        lookup.query_name,
        lookup.match.camis or "",
        lookup.view.name or "",
        lookup.view.display_grade,
        lookup.view.color_class,
        lookup.match.stage.value,
        len(lookup.view.violations),
    ]


async def main():
    """
    Orchestrate the batch lookup.

    - Loads searches from the input CSV.
    - Resolves each batch concurrently against the places directory and inspection feed.
    - Writes results incrementally to the output CSV and records matches in recents.
    """
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    searches = load_searches_from_csv(INPUT_CSV)
    store = RecentsFavoritesStore(JsonFileKeyValueStore(STORE_PATH))

    output_path = OUTPUT_CSV
    if os.path.exists(output_path):
        os.remove(output_path)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_COLUMNS)

    client = HttpClient()
    try:
        for start_idx, batch in batch_iter(searches, BATCH_SIZE):
            logger.info(f"Processing rows {start_idx}..{start_idx + len(batch) - 1}")

            # Rows without a place id get one from the places directory when a key is configured
            if GOOGLE_API_KEY:
                missing = [s for s in batch if not s["place_id"]]
                found = await asyncio.gather(*[find_place_id(client, s["name"]) for s in missing])
                for s, place_id in zip(missing, found):
                    s["place_id"] = place_id

            lookups = await asyncio.gather(*[
                search_restaurant(
                    s["name"],
                    place_id=s["place_id"],
                    building=s["building"],
                    zipcode=s["zipcode"],
                    store=store,
                    client=client,
                )
                for s in batch
            ])

            with open(output_path, "a", newline="") as f:
                writer = csv.writer(f)
                for lookup in lookups:
                    writer.writerow(result_row(lookup))
    finally:
        # Close the shared session to prevent unclosed connector warnings
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
