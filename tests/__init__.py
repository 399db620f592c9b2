# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Test suite for RowAlchemy.

This package contains tests for all components of RowAlchemy:
- Unit tests for field classification, change detection and statements
- Save orchestration tests against a recording driver
- Integration tests against a real SQLite database
"""

from pathlib import Path
import tempfile
import uuid


def create_test_db_path() -> Path:
    return Path(tempfile.gettempdir()) / f"test_rowalchemy_{uuid.uuid4().hex[:8]}.db"


__all__ = [
    "create_test_db_path",
]
