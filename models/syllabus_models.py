"""
Pydantic models for syllabus generation.
Syllabus -> Module -> LearningObjective -> Question, serialized in camelCase
so the wire payload matches what the planning UI consumes.
"""

from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from pydantic.alias_generators import to_camel
from typing import List, Optional, Dict
from enum import Enum


class CamelModel(BaseModel):
    """Base for every model that crosses the wire (snake_case in Python, camelCase in JSON)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Enums for type safety and validation
class BloomLevel(str, Enum):
    REMEMBER = "remember"
    UNDERSTAND = "understand"
    APPLY = "apply"


class QuestionType(str, Enum):
    MCQ = "mcq"
    SHORT = "short"
    PARAGRAPH = "paragraph"


class ModuleStatus(str, Enum):
    DRAFT = "draft"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Scoring and presentation tables
BLOOM_POINTS: Dict[BloomLevel, int] = {
    BloomLevel.REMEMBER: 1,
    BloomLevel.UNDERSTAND: 2,
    BloomLevel.APPLY: 3,
}

QUESTION_TIME_LIMITS: Dict[QuestionType, int] = {
    QuestionType.MCQ: 30,
    QuestionType.SHORT: 45,
    QuestionType.PARAGRAPH: 90,
}

# Target question counts per learning objective, used by the structuring prompt
QUESTIONS_PER_LO = {
    BloomLevel.REMEMBER: {"min": 1, "max": 2},
    BloomLevel.UNDERSTAND: {"min": 2, "max": 2},
    BloomLevel.APPLY: {"min": 2, "max": 3},
}

MODULE_COLORS: List[str] = [
    "#ef4444",  # red
    "#f97316",  # orange
    "#eab308",  # yellow
    "#22c55e",  # green
    "#06b6d4",  # cyan
    "#3b82f6",  # blue
    "#8b5cf6",  # violet
    "#ec4899",  # pink
]


# Syllabus tree
class MCQOption(CamelModel):
    """One answer choice; id is positional (opt-0, opt-1, ...)"""
    id: str
    text: str
    is_correct: bool = False


class Question(CamelModel):
    """Assessment question"""
    id: str
    bloom_level: BloomLevel
    type: QuestionType
    text: str
    options: List[MCQOption] = []  # MCQ only, empty for other types
    correct_answer: str = ""
    rationale: str = ""
    points: int
    time_limit_seconds: int


class LearningObjective(CamelModel):
    id: str
    description: str
    questions: List[Question] = []


class Module(CamelModel):
    id: str
    title: str
    description: str
    learning_objectives: List[LearningObjective] = []
    status: ModuleStatus = ModuleStatus.DRAFT
    color: Optional[str] = None
    order: int = Field(..., ge=0)


class Syllabus(CamelModel):
    """Complete generated syllabus"""
    id: str
    title: str
    description: str
    modules: List[Module] = []
    created_at: int  # epoch milliseconds
    updated_at: int

    @property
    def learning_objective_count(self) -> int:
        return sum(len(m.learning_objectives) for m in self.modules)

    @property
    def question_count(self) -> int:
        return sum(
            len(lo.questions)
            for m in self.modules
            for lo in m.learning_objectives
        )


# Request Models
class ProcessSyllabusRequest(CamelModel):
    """Generate a syllabus from uploaded documents"""
    document_locators: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("documentLocators", "document_locators", "pdfUrls"),
    )
    title_hint: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("titleHint", "title_hint", "projectTitle"),
    )
    model: Optional[str] = None
