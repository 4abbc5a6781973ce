"""
Structuring transform: response parsing, id assignment, derived fields.
"""

import json

import pytest

from models.syllabus_models import MODULE_COLORS, BloomLevel, ModuleStatus, QuestionType
from services.syllabus_transform import parse_structured_response, transform_syllabus
from utils.exceptions import StructuringError
from tests.fakes import counter_ids, make_raw_syllabus


def all_ids(syllabus):
    ids = [syllabus.id]
    for module in syllabus.modules:
        ids.append(module.id)
        for lo in module.learning_objectives:
            ids.append(lo.id)
            ids.extend(q.id for q in lo.questions)
    return ids


def test_ids_are_unique_across_tree():
    syllabus = transform_syllabus(make_raw_syllabus(4, 3))
    ids = all_ids(syllabus)
    assert len(ids) == len(set(ids))


def test_duplicate_objective_tags_get_fresh_ids():
    raw = {
        "modules": [
            {"title": "One", "learningObjectives": [{"id": "LO1", "description": "a"}]},
            {"title": "Two", "learningObjectives": [{"id": "LO1", "description": "b"}]},
        ]
    }
    syllabus = transform_syllabus(raw, id_factory=counter_ids())
    first, second = (m.learning_objectives[0] for m in syllabus.modules)
    assert first.id == "LO1"
    assert second.id != "LO1"
    assert len(set(all_ids(syllabus))) == len(all_ids(syllabus))


def test_id_factory_collisions_are_skipped():
    ids = iter(["dup", "dup", "dup", "fresh-1", "fresh-2"])
    syllabus = transform_syllabus({"modules": [{"title": "M"}]}, id_factory=lambda: next(ids))
    assert syllabus.id == "dup"
    assert syllabus.modules[0].id == "fresh-1"


def test_transform_twice_gives_same_shape_with_distinct_ids():
    raw = make_raw_syllabus(2, 2)
    first = transform_syllabus(raw)
    second = transform_syllabus(raw)

    def shape(s):
        return [
            (m.title, m.order, m.color, [(lo.description, [(q.type, q.points) for q in lo.questions])
                                         for lo in m.learning_objectives])
            for m in s.modules
        ]

    assert shape(first) == shape(second)
    assert first.id != second.id
    assert first.modules[0].learning_objectives[0].questions[0].id != \
        second.modules[0].learning_objectives[0].questions[0].id


def test_mcq_options_get_positional_ids():
    syllabus = transform_syllabus(make_raw_syllabus(1, 1))
    mcq = syllabus.modules[0].learning_objectives[0].questions[0]

    assert mcq.type == QuestionType.MCQ
    assert [o.id for o in mcq.options] == ["opt-0", "opt-1", "opt-2", "opt-3"]
    assert [o.is_correct for o in mcq.options] == [False, True, False, False]


def test_derived_points_and_time_limits():
    syllabus = transform_syllabus(make_raw_syllabus(1, 1))
    questions = syllabus.modules[0].learning_objectives[0].questions

    assert [(q.bloom_level, q.type, q.points, q.time_limit_seconds) for q in questions] == [
        (BloomLevel.REMEMBER, QuestionType.MCQ, 1, 30),
        (BloomLevel.UNDERSTAND, QuestionType.SHORT, 2, 45),
        (BloomLevel.APPLY, QuestionType.PARAGRAPH, 3, 90),
    ]
    assert questions[1].options == []
    assert questions[2].options == []


def test_module_order_status_and_palette_cycle():
    syllabus = transform_syllabus(make_raw_syllabus(10, 0))

    assert [m.order for m in syllabus.modules] == list(range(10))
    assert all(m.status == ModuleStatus.DRAFT for m in syllabus.modules)
    assert syllabus.modules[0].color == MODULE_COLORS[0]
    assert syllabus.modules[8].color == MODULE_COLORS[0]
    assert syllabus.modules[9].color == MODULE_COLORS[1]


def test_timestamps_match():
    syllabus = transform_syllabus(make_raw_syllabus(1, 1))
    assert syllabus.created_at == syllabus.updated_at > 0


def test_missing_fields_become_empty():
    syllabus = transform_syllabus({
        "modules": [
            None,
            {"learningObjectives": [{"questions": [{"options": ["yes", {"isCorrect": "true"}]}]}]},
        ]
    })

    assert syllabus.title == ""
    assert syllabus.description == ""
    assert syllabus.modules[0].title == ""
    assert syllabus.modules[0].learning_objectives == []

    question = syllabus.modules[1].learning_objectives[0].questions[0]
    assert question.text == ""
    assert question.correct_answer == ""
    assert question.rationale == ""
    # Unknown type with options reads as MCQ, unknown level as remember
    assert question.type == QuestionType.MCQ
    assert question.bloom_level == BloomLevel.REMEMBER
    assert [(o.text, o.is_correct) for o in question.options] == [("yes", False), ("", True)]


def test_non_object_input_gives_empty_syllabus():
    syllabus = transform_syllabus(["not", "an", "object"], title_hint="Fallback Title")
    assert syllabus.modules == []
    assert syllabus.title == "Fallback Title"


def test_title_hint_only_fills_missing_title():
    syllabus = transform_syllabus({"title": "From Model"}, title_hint="Hint")
    assert syllabus.title == "From Model"


def test_level_and_type_aliases():
    raw = {"modules": [{"learningObjectives": [{"questions": [
        {"bloomLevel": "Application", "type": "short_answer", "text": "q1"},
        {"bloomLevel": "comprehension", "type": "Essay", "text": "q2"},
        {"bloomLevel": "evaluate", "text": "q3"},
    ]}]}]}
    questions = transform_syllabus(raw).modules[0].learning_objectives[0].questions

    assert [(q.bloom_level, q.type) for q in questions] == [
        (BloomLevel.APPLY, QuestionType.SHORT),
        (BloomLevel.UNDERSTAND, QuestionType.PARAGRAPH),
        (BloomLevel.REMEMBER, QuestionType.SHORT),
    ]


def test_lenient_mcq_is_kept_as_generated():
    raw = {"modules": [{"learningObjectives": [{"questions": [{
        "type": "mcq",
        "options": [{"text": "a", "isCorrect": True}, {"text": "b", "isCorrect": True}],
    }]}]}]}
    question = transform_syllabus(raw).modules[0].learning_objectives[0].questions[0]
    assert len(question.options) == 2
    assert sum(o.is_correct for o in question.options) == 2


def test_counts():
    syllabus = transform_syllabus(make_raw_syllabus(3, 2))
    assert syllabus.learning_objective_count == 6
    assert syllabus.question_count == 18


def test_serialized_syllabus_uses_camel_case():
    dumped = transform_syllabus(make_raw_syllabus(1, 1)).model_dump(by_alias=True)
    module = dumped["modules"][0]
    assert "learningObjectives" in module
    question = module["learningObjectives"][0]["questions"][0]
    assert {"bloomLevel", "correctAnswer", "timeLimitSeconds"} <= set(question)
    assert "isCorrect" in question["options"][0]


# parse_structured_response

def test_parse_plain_json():
    raw = make_raw_syllabus(1, 1)
    assert parse_structured_response(json.dumps(raw)) == raw


def test_parse_fenced_json_with_prose():
    text = 'Here is the syllabus:\n```json\n{"title": "T", "modules": []}\n```\nHope this helps!'
    assert parse_structured_response(text) == {"title": "T", "modules": []}


def test_parse_prefers_largest_embedded_object():
    text = 'note {"a": 1} then {"title": "Big", "modules": [{"title": "M"}]} end'
    assert parse_structured_response(text) == {"title": "Big", "modules": [{"title": "M"}]}


@pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", '{"broken": '])
def test_parse_failure_raises(text):
    with pytest.raises(StructuringError):
        parse_structured_response(text)
