"""Custom exceptions used across StockFlow."""


class StockFlowError(Exception):
    """Base error for the application."""


class ConfigError(StockFlowError):
    """Configuration related error."""


class FileFormatError(StockFlowError):
    """Raised when an uploaded buffer cannot be read as a spreadsheet."""
