"""Read-through cache for business and pipeline configuration."""

import logging
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, TypeVar, Generic

import aiofiles
import yaml
from pydantic import BaseModel, ValidationError

from ..models import (
    BusinessConfig,
    PipelineDefinition,
    BusinessNotFoundError,
    PipelineNotFoundError,
    InvalidInputError,
    ConfigParseError,
)
from ..models.base import utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

_VALID_ID = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]*")


@dataclass
class CacheEntry(Generic[T]):
    """A parsed document and when it was loaded."""
    value: T
    loaded_at: datetime = field(default_factory=utcnow)


class _Cache(Generic[T]):
    """
    A dict of CacheEntry guarded by a lock.

    The lock is held only for single dict operations, never across file I/O,
    so a slow load never blocks readers of other keys.
    """

    def __init__(self):
        self._entries: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry[T]]:
        with self._lock:
            return self._entries.get(key)

    def fill(self, key: str, value: T) -> T:
        """Store value unless another loader got there first; return the winner."""
        with self._lock:
            entry = self._entries.setdefault(key, CacheEntry(value))
        return entry.value

    def evict(self, key: Optional[str] = None) -> int:
        with self._lock:
            if key is None:
                count = len(self._entries)
                self._entries.clear()
                return count
            return 1 if self._entries.pop(key, None) is not None else 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ConfigStore:
    """
    Loads and caches configuration from YAML files.

    Layout::

        <config_dir>/businesses/<business_id>.yaml
        <config_dir>/pipelines/<pipeline_key>.yaml

    Each document is parsed on first use and cached for the life of the
    process, or until one of the ``invalidate_*`` methods evicts it.
    Concurrent misses on the same key may both parse the file; the first
    to fill the cache wins and every caller gets that object.

    Usage:
        store = ConfigStore("config")
        business = await store.load_business("acme")
        pipeline = await store.load_pipeline(business.pipelines.default_form)
    """

    def __init__(self, config_dir: Path | str):
        self.config_dir = Path(config_dir)
        self._businesses: _Cache[BusinessConfig] = _Cache()
        self._pipelines: _Cache[PipelineDefinition] = _Cache()

    @property
    def businesses_dir(self) -> Path:
        return self.config_dir / "businesses"

    @property
    def pipelines_dir(self) -> Path:
        return self.config_dir / "pipelines"

    def business_config_path(self, business_id: str) -> Path:
        """Get the file a business is loaded from."""
        _check_id(business_id, "business id")
        return self.businesses_dir / f"{business_id}.yaml"

    def pipeline_config_path(self, pipeline_key: str) -> Path:
        """Get the file a pipeline is loaded from."""
        _check_id(pipeline_key, "pipeline key")
        return self.pipelines_dir / f"{pipeline_key}.yaml"

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_business(self, business_id: str) -> BusinessConfig:
        """
        Get a business configuration by id.

        Args:
            business_id: Tenant id (file name without ``.yaml``)

        Returns:
            The cached or freshly parsed BusinessConfig

        Raises:
            BusinessNotFoundError: If there is no document for this id
            ConfigParseError: If the document is malformed
            InvalidInputError: If the id is not a valid file name
        """
        entry = self._businesses.get(business_id)
        if entry is not None:
            return entry.value

        path = self.business_config_path(business_id)
        data = await self._read_document(path, BusinessNotFoundError, "business", business_id)
        business = _validate(BusinessConfig, data, "business", business_id)
        if not business.id:
            business.id = business_id

        logger.debug(f"Loaded business config {business_id} from {path}")
        return self._businesses.fill(business_id, business)

    async def load_pipeline(self, pipeline_key: str) -> PipelineDefinition:
        """
        Get a pipeline definition by key.

        Same caching contract as load_business, in a separate namespace.

        Raises:
            PipelineNotFoundError: If there is no document for this key
            ConfigParseError: If the document is malformed
            InvalidInputError: If the key is not a valid file name
        """
        entry = self._pipelines.get(pipeline_key)
        if entry is not None:
            return entry.value

        path = self.pipeline_config_path(pipeline_key)
        data = await self._read_document(path, PipelineNotFoundError, "pipeline", pipeline_key)
        pipeline = _validate(PipelineDefinition, data, "pipeline", pipeline_key)
        if not pipeline.key:
            pipeline.key = pipeline_key

        logger.debug(
            f"Loaded pipeline {pipeline_key} with {len(pipeline.actions)} actions from {path}"
        )
        return self._pipelines.fill(pipeline_key, pipeline)

    async def load_all_businesses(self) -> list[BusinessConfig]:
        """
        Load every business in the businesses directory.

        Documents that fail to load are logged and skipped, so the result
        may be partial.
        """
        if not self.businesses_dir.is_dir():
            logger.warning(f"Businesses directory not found: {self.businesses_dir}")
            return []

        businesses = []
        for path in sorted(self.businesses_dir.glob("*.yaml")):
            if not path.is_file():
                continue
            try:
                businesses.append(await self.load_business(path.stem))
            except (InvalidInputError, BusinessNotFoundError, ConfigParseError) as e:
                logger.warning(f"Skipping business config {path.name}: {e}")
                continue

        logger.info(f"Loaded {len(businesses)} business configurations from {self.businesses_dir}")
        return businesses

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate_business(self, business_id: Optional[str] = None) -> int:
        """Evict one business (or all when id is None). Returns the count evicted."""
        count = self._businesses.evict(business_id)
        logger.info(f"Invalidated {count} cached business config(s) ({business_id or 'all'})")
        return count

    def invalidate_pipeline(self, pipeline_key: Optional[str] = None) -> int:
        """Evict one pipeline (or all when key is None). Returns the count evicted."""
        count = self._pipelines.evict(pipeline_key)
        logger.info(f"Invalidated {count} cached pipeline(s) ({pipeline_key or 'all'})")
        return count

    def cached_at(self, business_id: str) -> Optional[datetime]:
        """When a business was loaded, or None if it isn't cached."""
        entry = self._businesses.get(business_id)
        return entry.loaded_at if entry else None

    def cache_info(self) -> dict[str, int]:
        return {"businesses": len(self._businesses), "pipelines": len(self._pipelines)}

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _read_document(
        self,
        path: Path,
        not_found: type,
        kind: str,
        key: str,
    ) -> dict:
        """Read and YAML-parse one document."""
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                text = await f.read()
        except FileNotFoundError as e:
            raise not_found(f"{kind} config '{key}' not found", cause=e) from e
        except UnicodeDecodeError as e:
            raise ConfigParseError(f"{kind} config '{key}' is not valid UTF-8", cause=e) from e
        except OSError as e:
            raise ConfigParseError(f"failed to read {kind} config '{key}'", cause=e) from e

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigParseError(f"failed to parse {kind} config '{key}'", cause=e) from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigParseError(
                f"{kind} config '{key}' must be a mapping, got {type(data).__name__}"
            )
        return data


def _validate(model: type[T], data: dict, kind: str, key: str) -> T:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(f"invalid {kind} config '{key}'", cause=e) from e


def _check_id(value: str, what: str) -> None:
    if not value or not _VALID_ID.fullmatch(value):
        raise InvalidInputError(f"invalid {what}: {value!r}")
