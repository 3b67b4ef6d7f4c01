"""Resource classification and the approval requirement derived from it."""
from .entities import Classification, Tag
from .catalog import CatalogClient, ResourceKey, TABLE_WILDCARD
from .oracle import ClassificationOracle, requires_approval
