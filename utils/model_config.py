"""
Model configuration and switching for syllabus generation.
Centralized model management, one entry per selectable reasoning model.
"""

import os
from typing import Dict, Any, Optional
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class ModelProvider(str, Enum):
    GEMINI = "gemini"


# Model configurations
MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "gemini-3-flash": {
        "provider": ModelProvider.GEMINI,
        "model": "gemini-3-flash-preview",
        "max_tokens": 32768,
        "supports_thoughts": True,
        "temperature": 0.7
    },
    "gemini-2.5-flash": {
        "provider": ModelProvider.GEMINI,
        "model": "gemini-2.5-flash",
        "max_tokens": 32768,
        "supports_thoughts": True,
        "temperature": 0.7
    },
    "gemini-2.5-pro": {
        "provider": ModelProvider.GEMINI,
        "model": "gemini-2.5-pro",
        "max_tokens": 32768,
        "supports_thoughts": True,
        "temperature": 0.7
    },
    "gemini-2.0-flash": {
        "provider": ModelProvider.GEMINI,
        "model": "gemini-2.0-flash",
        "max_tokens": 8192,
        "supports_thoughts": False,
        "temperature": 0.7
    },
}

DEFAULT_MODEL = os.getenv("SYLLABUS_MODEL", "gemini-3-flash")


class ModelConfig:
    """Model configuration manager"""

    @staticmethod
    def get_config(model_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for specified model or default"""
        key = model_key or DEFAULT_MODEL

        if key not in MODEL_CONFIGS:
            raise ValueError(f"Unknown model: {key}. Available: {list(MODEL_CONFIGS.keys())}")

        return MODEL_CONFIGS[key]

    @staticmethod
    def get_available_models() -> list:
        """List all available models"""
        return list(MODEL_CONFIGS.keys())

    @staticmethod
    def supports_thoughts(model_key: Optional[str] = None) -> bool:
        """Check if model can stream thought summaries"""
        config = ModelConfig.get_config(model_key)
        return config.get("supports_thoughts", False)
