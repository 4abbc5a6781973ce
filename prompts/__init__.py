# Prompts module initialization

# Syllabus Generation Prompts
from .syllabus_prompts import (
    build_research_prompt,
    build_structuring_prompt,
    SYLLABUS_SCHEMA_DESCRIPTION
)

__all__ = [
    'build_research_prompt',
    'build_structuring_prompt',
    'SYLLABUS_SCHEMA_DESCRIPTION'
]
