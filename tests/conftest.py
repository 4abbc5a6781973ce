"""
Run with:
    python3 -m pytest tests -v
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.file_storage import GenerationLogger


@pytest.fixture
def generation_logger(tmp_path):
    return GenerationLogger(tmp_path / "generation_logs.json")
