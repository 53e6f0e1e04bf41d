import asyncio
import json
import mimetypes
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app.core.config import settings
from app.core.db import SessionLocal, init_models
from app.core.exceptions import ServiceError
from app.modules.bhajans.schemas import AssetSlot
from app.modules.bhajans.service import BhajanService
from app.modules.bhajans.uploads import AssetPayload
from app.platform.provider_registry import ProviderRegistry


def load_assets(entry: dict, base_dir: str) -> dict[str, AssetPayload]:
    """
    Reads the files referenced by an entry's "files" object
    ({"audio": "path", ...}, relative to the seed file) into payloads.
    """
    assets = {}
    for slot in AssetSlot:
        rel_path = (entry.get("files") or {}).get(slot.value)
        if not rel_path:
            continue
        path = os.path.join(base_dir, rel_path)
        with open(path, "rb") as f:
            data = f.read()
        content_type, _ = mimetypes.guess_type(path)
        assets[slot.value] = AssetPayload(data=data, content_type=content_type, filename=os.path.basename(path))
    return assets


async def seed(service: BhajanService, entries: list[dict], base_dir: str) -> tuple[int, int]:
    """
    Creates one bhajan per entry. Returns (created, failed); a failing entry
    is reported and skipped.
    """
    created = failed = 0
    for entry in entries:
        fields = {k: v for k, v in entry.items() if k != "files"}
        try:
            obj = await service.create(fields, load_assets(entry, base_dir))
        except (ServiceError, OSError) as e:
            print(f"  - Skipping '{fields.get('title', '?')}': {e}")
            failed += 1
            continue
        print(f"  - Created {obj.id}: {obj.title}")
        created += 1
    return created, failed


async def main(seed_file: str):
    with open(seed_file, "r", encoding="utf-8") as f:
        entries = json.load(f)
    base_dir = os.path.dirname(os.path.abspath(seed_file))

    await init_models()
    storage = ProviderRegistry(settings).object_storage()
    async with SessionLocal() as session:
        created, failed = await seed(BhajanService(session, storage), entries, base_dir)
    print(f"Seeding complete: {created} created, {failed} failed.")
    return 1 if failed else 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/seed_bhajans.py <seed.json>")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
