"""
Catalog and hash map persistence.

The catalog (models + provider directory) and the content hash map are
two JSON files, read once when a run starts and written once when it
succeeds. Writes go to a temporary file first and are moved into place,
so a failed write never leaves a half-written catalog behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..errors import PersistenceError
from ..logging import get_logger
from ..models.catalog import CatalogStructure, HashMap

logger = get_logger(__name__)


class CatalogStore:
    """
    Reads and writes the persisted catalog and hash map.

    Usage:
        store = CatalogStore(Path('models.json'), Path('models.hashes.json'))
        catalog = store.load_catalog()
        hashes = store.load_hashes()
        ...
        store.save(new_catalog, new_hashes)
    """

    def __init__(self, catalog_path: Path, hashes_path: Path):
        self.catalog_path = catalog_path
        self.hashes_path = hashes_path

    def load_catalog(self) -> CatalogStructure:
        """Load the catalog; a missing file is an empty catalog."""
        data = self._read_json(self.catalog_path)
        if data is None:
            logger.info('catalog_missing', path=str(self.catalog_path))
            return CatalogStructure()
        try:
            catalog = CatalogStructure.model_validate(data)
        except PydanticValidationError as e:
            raise PersistenceError(
                f"Catalog file does not match the catalog schema: {e}",
                context={'path': str(self.catalog_path)},
            ) from e
        logger.info('catalog_loaded', models=len(catalog.models), providers=len(catalog.providers))
        return catalog

    def load_hashes(self) -> HashMap:
        """Load the content hash map; a missing file is an empty map."""
        data = self._read_json(self.hashes_path)
        if data is None:
            return {}
        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            raise PersistenceError(
                'Hash file must map model ids to hash strings',
                context={'path': str(self.hashes_path)},
            )
        return data

    def save(self, catalog: CatalogStructure, hashes: HashMap) -> None:
        """Write catalog and hash map, each atomically."""
        # Catalog first: if the hash map write then fails, the stale hashes only
        # make the affected models re-enrich on the next run.
        write_json_atomic(self.catalog_path, catalog.to_json_dict(), indent=None)
        write_json_atomic(self.hashes_path, dict(sorted(hashes.items())), indent=2)
        logger.info(
            'catalog_saved',
            path=str(self.catalog_path),
            models=len(catalog.models),
            hashes=len(hashes),
        )

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding='utf-8'))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(
                f"Cannot read {path.name}: {e}",
                context={'path': str(path)},
            ) from e


def write_json_atomic(path: Path, data: Any, indent: int | None) -> None:
    """
    Write JSON to a temporary file next to path, then move it into place.

    Raises:
        PersistenceError: If the file cannot be written; the temporary file is removed
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f'.{path.name}.', suffix='.tmp')
        with os.fdopen(fd, 'w', encoding='utf-8') as handle:
            json.dump(data, handle, indent=indent, ensure_ascii=False)
        os.replace(tmp_name, path)
    except (OSError, TypeError, ValueError) as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise PersistenceError(
            f"Cannot write {path.name}: {e}",
            context={'path': str(path)},
        ) from e
