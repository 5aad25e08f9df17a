import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Any, List, Sequence

from .core import normalize_seed_product

# This file holds the JSON-file datastore. Every request loads it fresh and
# every mutation rewrites the whole file; there is no in-memory copy.

logger = logging.getLogger(__name__)


def empty_store() -> Dict[str, Any]:
    return {"products": [], "brands": []}


class ProductStore:
    def __init__(self, path: Path, seed_files: Sequence[Path] = ()):
        self.path = Path(path)
        self.seed_files = [Path(p) for p in seed_files]

    def ensure(self) -> None:
        """Create the store file if missing, seeded from the first readable fixture."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if self.path.exists():
                return
            seed = self._read_seed()
            self._write(seed)
            logger.info("Datastore created with %d products", len(seed["products"]))
        except OSError:
            logger.exception("Could not initialise the datastore")

    def _read_seed(self) -> Dict[str, Any]:
        for candidate in self.seed_files:
            if not candidate.is_file():
                continue
            try:
                raw = json.loads(candidate.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.warning("Ignoring unreadable seed file %s", candidate.name)
                continue
            if not isinstance(raw, dict):
                logger.warning("Ignoring seed file %s: expected a JSON object", candidate.name)
                continue
            products: List[Dict[str, Any]] = []
            for entry in raw.get("products") or []:
                if isinstance(entry, dict):
                    product = normalize_seed_product(entry)
                    if product is not None:
                        products.append(product)
            brands = raw.get("brands") if isinstance(raw.get("brands"), list) else []
            logger.info("Seeding datastore from %s", candidate.name)
            return {"products": products, "brands": brands}
        return empty_store()

    def load(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.exception("Error reading datastore")
            return empty_store()
        if not isinstance(data, dict) or not isinstance(data.get("products"), list):
            logger.error("Datastore has an unexpected shape; using an empty store")
            return empty_store()
        if not isinstance(data.get("brands"), list):
            data["brands"] = []
        return data

    def save(self, store: Dict[str, Any]) -> bool:
        try:
            self._write(store)
            return True
        except (OSError, TypeError, ValueError):
            logger.exception("Error saving datastore")
            return False

    def _write(self, store: Dict[str, Any]) -> None:
        payload = json.dumps(store, indent=2, ensure_ascii=False)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".products-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
