"""
Error types and data validation for the Census workshop toolkit.
"""

import pandas as pd
from typing import Optional, List, Dict, Any
import logging

logger = logging.getLogger(__name__)

class ValidationError(Exception):
    """Base class for validation errors."""
    pass

class DataValidationError(ValidationError):
    """Raised when data validation fails."""
    pass

class ConfigValidationError(ValidationError):
    """Raised when configuration validation fails."""
    pass

class GeographyError(ValueError):
    """Raised when a geography level or FIPS filter cannot be resolved."""
    pass

class CensusAPIError(Exception):
    """Raised when the Census Data API answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url

    def __str__(self):
        if self.status_code is not None:
            return f"Census API error (HTTP {self.status_code}): {self.message}"
        return f"Census API error: {self.message}"


def validate_dataframe(
    df: pd.DataFrame,
    required_columns: Optional[List[str]] = None,
    allow_missing: bool = True,
    missing_threshold: float = 0.5
) -> None:
    """
    Validate a pandas DataFrame returned by the Census API.

    Args:
        df: DataFrame to validate
        required_columns: List of columns that must be present
        allow_missing: Whether to allow missing values
        missing_threshold: Proportion of missing values per column above which a warning is logged

    Raises:
        DataValidationError: If validation fails
    """
    if df.empty:
        raise DataValidationError("DataFrame is empty")

    if required_columns:
        missing_cols = set(required_columns) - set(df.columns)
        if missing_cols:
            raise DataValidationError(f"Missing required columns: {sorted(missing_cols)}")

    if not allow_missing:
        cols_with_missing = df.columns[df.isna().any()].tolist()
        if cols_with_missing:
            raise DataValidationError(f"Missing values found in columns: {cols_with_missing}")
    else:
        missing_ratios = df.isna().mean()
        cols_exceeding_threshold = missing_ratios[missing_ratios > missing_threshold].index.tolist()
        if cols_exceeding_threshold:
            logger.warning(
                f"Columns with more than {missing_threshold*100}% missing values: {cols_exceeding_threshold}"
            )

    logger.debug(f"DataFrame validation passed: {df.shape}")

def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    required_sections = ['census', 'visualization', 'logging']

    missing_sections = set(required_sections) - set(config.keys())
    if missing_sections:
        raise ConfigValidationError(f"Missing required config sections: {sorted(missing_sections)}")

    timeout = config['census'].get('timeout')
    if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ConfigValidationError("census.timeout must be a positive number")

    if 'figure_sizes' not in config['visualization']:
        raise ConfigValidationError("Missing figure_sizes in visualization configuration")

    if 'level' not in config['logging']:
        raise ConfigValidationError("Missing logging level configuration")
    if 'format' not in config['logging']:
        raise ConfigValidationError("Missing logging format configuration")

    logger.debug("Configuration validation passed")
