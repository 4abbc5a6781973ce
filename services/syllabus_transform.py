"""
Structuring transform.
Parses the model's structuring response and maps its loosely-shaped JSON into
the typed Syllabus tree with fresh identifiers and derived fields. Every
nested value is guarded; missing text falls back to an empty string.
"""

import json
import re
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from models.syllabus_models import (
    BLOOM_POINTS, MODULE_COLORS, QUESTION_TIME_LIMITS,
    BloomLevel, LearningObjective, MCQOption, Module, ModuleStatus, Question,
    QuestionType, Syllabus,
)
from utils.exceptions import StructuringError
from utils.file_storage import generate_uuid, now_ms

logger = logging.getLogger(__name__)

EXPECTED_MCQ_OPTIONS = 4

_BLOOM_ALIASES = {
    "remember": BloomLevel.REMEMBER,
    "remembering": BloomLevel.REMEMBER,
    "knowledge": BloomLevel.REMEMBER,
    "understand": BloomLevel.UNDERSTAND,
    "understanding": BloomLevel.UNDERSTAND,
    "comprehension": BloomLevel.UNDERSTAND,
    "apply": BloomLevel.APPLY,
    "applying": BloomLevel.APPLY,
    "application": BloomLevel.APPLY,
}

_TYPE_ALIASES = {
    "mcq": QuestionType.MCQ,
    "multiple_choice": QuestionType.MCQ,
    "multiple-choice": QuestionType.MCQ,
    "multiple choice": QuestionType.MCQ,
    "short": QuestionType.SHORT,
    "short_answer": QuestionType.SHORT,
    "short-answer": QuestionType.SHORT,
    "short answer": QuestionType.SHORT,
    "paragraph": QuestionType.PARAGRAPH,
    "long_answer": QuestionType.PARAGRAPH,
    "essay": QuestionType.PARAGRAPH,
}

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


# Structured response parsing

def parse_structured_response(text: str) -> Dict[str, Any]:
    """
    Deserialize the structuring response.

    Direct parsing is tried first; otherwise the largest JSON object embedded
    in the text (code fence, brace span, or any decodable object) is used.

    Raises:
        StructuringError: if no JSON object can be recovered
    """
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except (json.JSONDecodeError, TypeError):
        pass

    candidate = _largest_embedded_object(text or "")
    if candidate is not None:
        logger.warning(f"Structuring response needed extraction ({len(text)} chars raw)")
        return candidate

    logger.error(f"Could not extract JSON from: {(text or '')[:500]}")
    raise StructuringError("Failed to parse syllabus structure")


def _largest_embedded_object(text: str) -> Optional[Dict[str, Any]]:
    candidates = []

    for body in _CODE_FENCE_PATTERN.findall(text):
        candidates.append(body)

    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        candidates.append(text[first:last + 1])

    best = None
    best_size = -1
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(parsed, dict) and len(candidate) > best_size:
            best, best_size = parsed, len(candidate)

    if best is not None:
        return best

    # Slow path: try decoding from every opening brace
    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            parsed, end = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        size = end - match.start()
        if isinstance(parsed, dict) and size > best_size:
            best, best_size = parsed, size
    return best


# Field guards

def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float, bool)):
        return str(value)
    return ""


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1", "correct")
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _bloom_level(value: Any) -> BloomLevel:
    return _BLOOM_ALIASES.get(_as_str(value).lower(), BloomLevel.REMEMBER)


def _question_type(value: Any, has_options: bool) -> QuestionType:
    key = _as_str(value).lower()
    if key in _TYPE_ALIASES:
        return _TYPE_ALIASES[key]
    return QuestionType.MCQ if has_options else QuestionType.SHORT


# Tree transform

class SyllabusTransformer:
    """Maps one raw structuring response into a Syllabus; ids are unique per tree"""

    def __init__(self, id_factory: Callable[[], str] = generate_uuid):
        self.id_factory = id_factory
        self._used_ids: Set[str] = set()

    def _fresh_id(self) -> str:
        new_id = self.id_factory()
        while new_id in self._used_ids:
            new_id = self.id_factory()
        self._used_ids.add(new_id)
        return new_id

    def transform(self, raw: Any, title_hint: Optional[str] = None) -> Syllabus:
        data = _as_dict(raw)
        timestamp = now_ms()
        syllabus_id = self._fresh_id()
        modules = [
            self._module(raw_module, index)
            for index, raw_module in enumerate(_as_list(data.get("modules")))
        ]
        return Syllabus(
            id=syllabus_id,
            title=_as_str(data.get("title")) or _as_str(title_hint),
            description=_as_str(data.get("description")),
            modules=modules,
            created_at=timestamp,
            updated_at=timestamp,
        )

    def _module(self, raw: Any, index: int) -> Module:
        data = _as_dict(raw)
        module_id = self._fresh_id()
        return Module(
            id=module_id,
            title=_as_str(data.get("title")),
            description=_as_str(data.get("description")),
            learning_objectives=[
                self._learning_objective(raw_lo)
                for raw_lo in _as_list(data.get("learningObjectives"))
            ],
            status=ModuleStatus.DRAFT,
            color=MODULE_COLORS[index % len(MODULE_COLORS)],
            order=index,
        )

    def _learning_objective(self, raw: Any) -> LearningObjective:
        data = _as_dict(raw)
        # The model tags objectives (LO1, LO2...) and may reuse tags across modules
        tag = _as_str(data.get("id"))
        if tag and tag not in self._used_ids:
            self._used_ids.add(tag)
            lo_id = tag
        else:
            lo_id = self._fresh_id()

        return LearningObjective(
            id=lo_id,
            description=_as_str(data.get("description")),
            questions=[self._question(raw_q) for raw_q in _as_list(data.get("questions"))],
        )

    def _question(self, raw: Any) -> Question:
        data = _as_dict(raw)
        raw_options = _as_list(data.get("options"))
        bloom_level = _bloom_level(data.get("bloomLevel"))
        question_type = _question_type(data.get("type"), has_options=bool(raw_options))
        question_id = self._fresh_id()

        options: List[MCQOption] = []
        if question_type == QuestionType.MCQ:
            options = [self._option(raw_opt, index) for index, raw_opt in enumerate(raw_options)]
            correct = sum(1 for o in options if o.is_correct)
            if len(options) != EXPECTED_MCQ_OPTIONS or correct != 1:
                logger.warning(
                    f"MCQ {question_id} has {len(options)} options and {correct} correct; keeping as generated"
                )

        return Question(
            id=question_id,
            bloom_level=bloom_level,
            type=question_type,
            text=_as_str(data.get("text")),
            options=options,
            correct_answer=_as_str(data.get("correctAnswer")),
            rationale=_as_str(data.get("rationale")),
            points=BLOOM_POINTS[bloom_level],
            time_limit_seconds=QUESTION_TIME_LIMITS[question_type],
        )

    @staticmethod
    def _option(raw: Any, index: int) -> MCQOption:
        if isinstance(raw, str):
            return MCQOption(id=f"opt-{index}", text=raw.strip(), is_correct=False)
        data = _as_dict(raw)
        return MCQOption(
            id=f"opt-{index}",
            text=_as_str(data.get("text")),
            is_correct=_as_bool(data.get("isCorrect")),
        )


def transform_syllabus(
    raw: Any,
    title_hint: Optional[str] = None,
    id_factory: Callable[[], str] = generate_uuid,
) -> Syllabus:
    """Build a typed Syllabus from the deserialized structuring response"""
    return SyllabusTransformer(id_factory=id_factory).transform(raw, title_hint)
