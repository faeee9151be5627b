"""Endpoint descriptors, validation and URL construction."""

from .builder import (
    QUERY_KEYS,
    Endpoint,
    build_endpoint,
    build_path,
    build_query,
    plan_date_chunks,
    range_segment,
)
from .descriptor import EndpointDescriptor, ResourceFamily
from .validation import VALIDATION_RULES, ValidationContext, validate

__all__ = [
    "Endpoint",
    "EndpointDescriptor",
    "ResourceFamily",
    "QUERY_KEYS",
    "VALIDATION_RULES",
    "ValidationContext",
    "build_endpoint",
    "build_path",
    "build_query",
    "plan_date_chunks",
    "range_segment",
    "validate",
]
