# Export-specific data loaders
# Each loader turns one retailer's export format into the engine's line-item records

from .costco_client import CostcoReceiptLoader, LoadedReceipts
from .errors import (
    ReceiptDataError,
    UnsupportedFileTypeError,
    EmptyReceiptFileError,
    MissingColumnsError,
)
from .parsers import DateParser, normalize_code, normalize_column_name
from .quality import DataQualityChecker, DataQualityIssue, DataQualityReport

__all__ = [
    "CostcoReceiptLoader",
    "LoadedReceipts",
    "ReceiptDataError",
    "UnsupportedFileTypeError",
    "EmptyReceiptFileError",
    "MissingColumnsError",
    "DateParser",
    "normalize_code",
    "normalize_column_name",
    "DataQualityChecker",
    "DataQualityIssue",
    "DataQualityReport",
]
