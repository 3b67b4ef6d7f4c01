"""Sharing state per resource and target domain."""
from .entities import (
    ConsumerStatus,
    ShareMapping,
    ShareStatus,
    resource_mapping_key,
    tag_mapping_key,
    tag_set_fingerprint,
)
from .index import ShareMappingIndex
