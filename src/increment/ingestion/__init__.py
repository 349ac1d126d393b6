"""
Data ingestion layer for Increment.

Parses uploaded MMM, attribution and spend files and normalizes them into
channel-keyed structures.
"""

from increment.ingestion.loaders import (
    decode_upload,
    detect_format,
    load_series_file,
    load_spend_file,
    read_upload,
)
from increment.ingestion.normalizer import (
    ChannelSpend,
    Dataset,
    SpendTable,
    canonical_key,
    derive_channels,
    normalize_series,
    normalize_spend,
    parse_spend_csv,
    performance_channels,
    to_number,
)
from increment.ingestion.parser import parse_delimited

__all__ = [
    # Parser
    "parse_delimited",
    # Normalizer
    "ChannelSpend",
    "Dataset",
    "SpendTable",
    "canonical_key",
    "derive_channels",
    "normalize_series",
    "normalize_spend",
    "parse_spend_csv",
    "performance_channels",
    "to_number",
    # Loaders
    "decode_upload",
    "detect_format",
    "load_series_file",
    "load_spend_file",
    "read_upload",
]
