"""Unified exception hierarchy for drive-analyzer."""


class DriveAnalyzerError(Exception):
    """Base exception for all drive-analyzer errors."""


# Google
class GoogleError(DriveAnalyzerError):
    """Base exception for Google API operations."""


class GoogleAuthError(GoogleError):
    """Google authentication or authorization failure."""


class DriveFetchError(GoogleError):
    """Failed to fetch Drive file listings or content."""


# Apify
class ApifyError(DriveAnalyzerError):
    """Base exception for Apify actor operations."""


class ApifyRunError(ApifyError):
    """An actor run could not be started, polled, or read back."""


# Web
class WebFetchError(DriveAnalyzerError):
    """Failed to fetch web content directly."""


# Local files
class LocalFileError(DriveAnalyzerError):
    """A local file could not be read or is too large."""


# LLM
class LLMError(DriveAnalyzerError):
    """Base exception for analysis backend operations."""


# Storage
class StorageError(DriveAnalyzerError):
    """Failed to read or write persisted state."""


class AnalysisImportError(StorageError):
    """An imported saved analysis is malformed or collides with an existing one."""


# Pipeline
class AnalysisAbortedError(DriveAnalyzerError):
    """An analysis run was aborted before or during source collection."""
