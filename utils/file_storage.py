"""
Storage utilities for syllabus generation.
Identifier/timestamp helpers plus local JSON persistence for run logs.
"""

import json
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).parent.parent
GENERATION_LOGS_FILE = Path(
    os.getenv("GENERATION_LOGS_FILE", str(BASE_DIR / "syllabus_generation_logs.json"))
)


def generate_uuid() -> str:
    """Generate unique ID for sessions, syllabi, modules and questions"""
    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds"""
    return int(time.time() * 1000)


def read_json_file(filepath: Path) -> Optional[Dict[str, Any]]:
    """Read JSON file, return None if not found or invalid"""
    try:
        if not filepath.exists():
            return None
        with open(filepath, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {filepath}: {e}")
        return None
    except Exception as e:
        logger.error(f"Error reading {filepath}: {e}")
        return None


def write_json_file(filepath: Path, data: Dict[str, Any]) -> bool:
    """Write data to JSON file atomically"""
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
        temp_file = filepath.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=str)
        temp_file.replace(filepath)
        return True
    except Exception as e:
        logger.error(f"Error writing {filepath}: {e}")
        return False


def append_to_json_list(filepath: Path, item: Dict[str, Any]) -> bool:
    """Append item to JSON list file (creates if not exists)"""
    try:
        data = read_json_file(filepath) or {"items": []}
        if "items" not in data:
            data["items"] = []
        data["items"].append(item)
        return write_json_file(filepath, data)
    except Exception as e:
        logger.error(f"Error appending to {filepath}: {e}")
        return False


# Generation Logging (local file, one entry per run)
class GenerationLogger:
    """Log syllabus generation runs for debugging and cost tracking"""

    def __init__(self, filepath: Optional[Path] = None):
        self.filepath = filepath or GENERATION_LOGS_FILE

    def log_generation(self, log_entry: Dict[str, Any]) -> bool:
        """Log a generation attempt"""
        log_entry["timestamp"] = datetime.now(timezone.utc).isoformat()
        return append_to_json_list(self.filepath, log_entry)
