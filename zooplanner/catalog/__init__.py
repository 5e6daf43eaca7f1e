"""Zoo catalog — load, validate, query, and serialize catalog/*.json."""

from .models import AnimalRequirement, CatalogEntry, CatalogResult, ValidationError
from .loader import load_catalog, item_type_id, occupant_type_id, CATALOG_DIR
from .serialization import catalog_to_dict, entry_to_dict, animal_to_dict

__all__ = [
    # Models
    "AnimalRequirement", "CatalogEntry", "CatalogResult", "ValidationError",
    # Loader
    "load_catalog", "item_type_id", "occupant_type_id", "CATALOG_DIR",
    # Serialization
    "catalog_to_dict", "entry_to_dict", "animal_to_dict",
]
