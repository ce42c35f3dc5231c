"""Feature Layer Document Store

DocumentStore adapter over hosted ArcGIS feature services. Each configured
collection maps to a layer (or table) of a hosted item; a write unit is one
``edit_features`` call made with ``rollback_on_failure=True`` so the service
applies all of the unit's updates or none of them.
"""

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from arcgis.features import FeatureLayer, Table

from opsconsole.config import ConfigLoader
from opsconsole.connection import ArcGISConnector
from opsconsole.exceptions import OpsConfigurationError
from .exceptions import ChunkCommitFailure, StoreAccessError
from .store import DocumentStore, SERVER_TIMESTAMP, WriteUnit

logger = logging.getLogger(__name__)

GLOBAL_ID_FIELD = "GlobalID"


def _epoch_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def to_attribute_value(value: Any, now: datetime) -> Any:
    """Convert a patch value to what a feature service attribute accepts.
    
    Dates become epoch milliseconds, booleans become 1/0 and nested
    structures are stored as JSON text.
    """
    if value is SERVER_TIMESTAMP:
        return _epoch_millis(now)
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return _epoch_millis(value)
    if isinstance(value, date):
        return _epoch_millis(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str, separators=(",", ":"))
    return value


class FeatureLayerWriteUnit(WriteUnit):
    """Collects attribute updates for one ``edit_features`` call."""
    
    def __init__(self, layer: FeatureLayer, collection_name: str, key_field: str,
                 clock: Callable[[], datetime]):
        self.layer = layer
        self.collection_name = collection_name
        self.key_field = key_field
        self.use_global_ids = key_field == GLOBAL_ID_FIELD
        self._clock = clock
        self._patches: List[tuple] = []
    
    def add_patch(self, key: str, fields: Mapping[str, Any]) -> None:
        self._patches.append((key, dict(fields)))
    
    @property
    def keys(self) -> List[str]:
        return [key for key, _ in self._patches]
    
    def _key_value(self, key: str) -> Any:
        if not self.use_global_ids and key.isdigit():
            return int(key)
        return key
    
    def build_updates(self) -> List[Dict[str, Any]]:
        now = self._clock()
        updates = []
        for key, fields in self._patches:
            attributes = {name: to_attribute_value(value, now) for name, value in fields.items()}
            attributes[self.key_field] = self._key_value(key)
            updates.append({"attributes": attributes})
        return updates
    
    def commit(self) -> None:
        if not self._patches:
            return
        
        try:
            result = self.layer.edit_features(
                updates=self.build_updates(),
                rollback_on_failure=True,
                use_global_ids=self.use_global_ids
            )
        except Exception as e:
            raise ChunkCommitFailure(f"edit_features failed on {self.collection_name}: {e}", self.keys,
                                     collection=self.collection_name)
        
        if not result or "updateResults" not in result:
            raise ChunkCommitFailure("Invalid update result format from ArcGIS", self.keys,
                                     collection=self.collection_name)
        
        update_results = result["updateResults"]
        failures = [r for r in update_results if not r.get("success", False)]
        if failures or len(update_results) != len(self._patches):
            description = "missing update results"
            if failures:
                description = failures[0].get("error", {}).get("description", "Unknown error")
            raise ChunkCommitFailure(
                f"{len(failures)} of {len(self._patches)} updates rejected on "
                f"{self.collection_name}: {description}",
                self.keys,
                collection=self.collection_name
            )
        
        logger.debug(f"edit_features applied {len(update_results)} updates to {self.collection_name}")


class FeatureLayerDocumentStore(DocumentStore):
    """Document store backed by hosted feature layers and tables.
    
    Args:
        connector: Connected ArcGISConnector
        config_loader: ConfigLoader with the environment's ``collections`` section
        environment: Environment whose collections are used
        clock: Source of the value written for SERVER_TIMESTAMP
    """
    
    def __init__(self, connector: ArcGISConnector, config_loader: ConfigLoader,
                 environment: str = "development",
                 clock: Optional[Callable[[], datetime]] = None):
        self.connector = connector
        self.config_loader = config_loader
        self.environment = environment
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._layer_cache: Dict[str, Any] = {}
    
    def begin_unit(self, collection_name: str) -> FeatureLayerWriteUnit:
        layer = self.get_layer(collection_name)
        key_field = self._collection_config(collection_name)["key_field"]
        return FeatureLayerWriteUnit(layer, collection_name, key_field, self.clock)
    
    def fetch_records(self, collection_name: str) -> List[Dict[str, Any]]:
        layer = self.get_layer(collection_name)
        key_field = self._collection_config(collection_name)["key_field"]
        feature_set = layer.query(where="1=1", out_fields="*", return_geometry=False)
        
        records = []
        for feature in feature_set.features:
            attributes = dict(feature.attributes)
            records.append({"id": str(attributes.get(key_field)), **attributes})
        logger.info(f"Fetched {len(records)} records from {collection_name}")
        return records
    
    def get_layer(self, collection_name: str):
        """Resolve and cache the layer or table behind a collection.
        
        Raises:
            StoreAccessError: If the collection is not configured or not accessible
        """
        if collection_name in self._layer_cache:
            return self._layer_cache[collection_name]
        
        collection_config = self._collection_config(collection_name)
        item = self.connector.get_gis().content.get(collection_config["item_id"])
        if not item:
            raise StoreAccessError(
                f"Item {collection_config['item_id']} for collection '{collection_name}' not found",
                collection=collection_name
            )
        
        layer_class = Table if collection_config.get("table") else FeatureLayer
        layer = layer_class.fromitem(item, collection_config["layer_index"])
        self._layer_cache[collection_name] = layer
        logger.info(f"Resolved collection {collection_name} to {layer.url}")
        return layer
    
    def _collection_config(self, collection_name: str) -> Dict[str, Any]:
        try:
            return self.config_loader.get_collection_config(self.environment, collection_name)
        except OpsConfigurationError as e:
            raise StoreAccessError(e.message, collection=collection_name)
