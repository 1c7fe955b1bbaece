#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
ROM Audit - Consolidated Exception Classes

All exception classes used by the auditor live here. Only the catalog and
configuration errors are fatal for a run; archive errors are caught by the
inventory and recorded on the affected archive.
"""

from datetime import datetime
from typing import Dict, Any, Optional


class BaseError(Exception):
    """Base class for all project-specific errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.error_code = error_code or "ERROR"
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Converts the exception to a dictionary for structured logging."""
        return {
            'error_code': self.error_code,
            'message': str(self),
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


# =====================================================================================================
# Configuration -related errors
# =====================================================================================================

class ConfigurationError(BaseError):
    """Base class for configuration errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 file_path: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        config_details = details or {}
        if file_path:
            config_details['file_path'] = file_path
        super().__init__(message, error_code or "CONFIG_ERROR", config_details)


class ValidationError(ConfigurationError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 expected_type: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        validation_details = details or {}
        if field_name:
            validation_details['field_name'] = field_name
        if expected_type:
            validation_details['expected_type'] = expected_type
        super().__init__(message, "VALIDATION_ERROR", None, validation_details)


# =====================================================================================================
# Data -related errors
# =====================================================================================================

class DataError(BaseError):
    """Base class for data-related errors."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code or "DATA_ERROR", details)


class CatalogError(DataError):
    """Base class for reference catalog errors. Always fatal for a run."""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code or "CATALOG_ERROR", details)


class CatalogSourceError(CatalogError):
    """Raised when the catalog document cannot be read or deserialized."""

    def __init__(self, message: str, source: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        source_details = details or {}
        if source:
            source_details['source'] = str(source)
        super().__init__(message, "CATALOG_SOURCE_ERROR", source_details)


class MalformedDigestError(CatalogError):
    """Raised when a catalog checksum (or size) field does not parse."""

    def __init__(self, message: str, set_name: Optional[str] = None,
                 entry_name: Optional[str] = None,
                 field_name: Optional[str] = None,
                 value: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        digest_details = details or {}
        if set_name:
            digest_details['set_name'] = set_name
        if entry_name:
            digest_details['entry_name'] = entry_name
        if field_name:
            digest_details['field_name'] = field_name
        if value is not None:
            digest_details['value'] = value
        super().__init__(message, "MALFORMED_DIGEST", digest_details)
        self.set_name = set_name
        self.entry_name = entry_name


class ArchiveReadError(DataError):
    """Raised when an archive or one of its entries cannot be read."""

    def __init__(self, message: str, archive_path: Optional[str] = None,
                 entry_name: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        archive_details = details or {}
        if archive_path:
            archive_details['archive_path'] = str(archive_path)
        if entry_name:
            archive_details['entry_name'] = entry_name
        super().__init__(message, "ARCHIVE_READ_ERROR", archive_details)
