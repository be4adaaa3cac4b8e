"""
Data loading utilities
Loads the field pattern table, either the built-in default or a JSON override
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from src.utils.field_patterns import DEFAULT_FIELD_PATTERNS, FieldPatternTable

logger = logging.getLogger(__name__)


# Get project root directory
PROJECT_ROOT = Path(__file__).parent.parent.parent


# ============================================================================
# FIELD PATTERNS
# ============================================================================

@lru_cache(maxsize=4)
def _load_pattern_file(path: str) -> FieldPatternTable:
    patterns_path = Path(path)
    if not patterns_path.is_absolute():
        patterns_path = PROJECT_ROOT / patterns_path

    if not patterns_path.exists():
        raise FileNotFoundError(f"Field pattern file not found at {patterns_path}")

    with open(patterns_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    # Fields missing from the file keep their default patterns
    merged = DEFAULT_FIELD_PATTERNS.model_dump()
    merged.update(data)
    logger.info("Loaded field patterns", extra={"path": str(patterns_path)})
    return FieldPatternTable(**merged)


def load_field_patterns(path: Optional[str] = None) -> FieldPatternTable:
    """
    Load the field pattern table
    Cached per path to avoid repeated file reads

    Args:
        path: JSON file with the same keys as FieldPatternTable
            (relative paths resolve against the project root)

    Returns:
        FieldPatternTable (the default table when path is None)

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not path:
        return DEFAULT_FIELD_PATTERNS
    return _load_pattern_file(path)
