"""
Prompt templates for syllabus generation.
Two fixed templates: a research pass over the attached documents, then a
structuring pass that turns the research report into syllabus JSON.
"""

from typing import Optional

from models.syllabus_models import BLOOM_POINTS, QUESTIONS_PER_LO, BloomLevel


SYLLABUS_SCHEMA_DESCRIPTION = """{
  "title": "Syllabus title",
  "description": "Brief overview of what this syllabus covers",
  "modules": [
    {
      "title": "Module title",
      "description": "What this module covers",
      "learningObjectives": [
        {
          "id": "LO1",
          "description": "Action-oriented learning objective (Identify/Explain/Apply...)",
          "questions": [
            {
              "bloomLevel": "remember | understand | apply",
              "type": "mcq | short | paragraph",
              "text": "Question text",
              "options": [
                { "text": "Option A", "isCorrect": false },
                { "text": "Option B", "isCorrect": true },
                { "text": "Option C", "isCorrect": false },
                { "text": "Option D", "isCorrect": false }
              ],
              "correctAnswer": "The correct answer",
              "rationale": "Why this is correct"
            }
          ]
        }
      ]
    }
  ]
}"""


def build_research_prompt(title_hint: Optional[str], document_count: int) -> str:
    """Build prompt for the deep research pass over the attached documents"""

    context_section = f"""
PROJECT CONTEXT: "{title_hint}"
""" if title_hint else ""

    return f"""You are an expert instructional designer researching source material for a training syllabus.
{context_section}
RESEARCH TASK:
Analyze all {document_count} attached document(s) in depth and write a detailed research report.

ANALYSIS STEPS:
1. CONTENT EXTRACTION: Find every key topic, concept and knowledge area in the documents
2. STRUCTURE ANALYSIS: Work out how the topics relate and the best order to learn them
3. COMPETENCY MAPPING: Map content to cognitive levels (remember facts, understand concepts, apply in scenarios)
4. SCENARIO IDENTIFICATION: Collect real situations from the content usable for assessment
5. GAP ANALYSIS: Note areas that need extra emphasis

OUTPUT REQUIREMENTS:
Write the report with these sections, each introduced by a "## " heading:

## EXECUTIVE SUMMARY
What the documents cover and the training needs they address.

## KEY TOPICS AND CONCEPTS
Every major topic with a short explanation, related topics grouped together.

## RECOMMENDED MODULE STRUCTURE
Organize the content into 3-7 training modules. For each module give:
- Module title
- What it covers
- Key concepts to teach
- Suggested learning objectives (action verbs: "Identify...", "Explain...", "Apply...")

## ASSESSMENT STRATEGIES
For each learning objective, suggest remember-level, understand-level and
apply-level (scenario-based) questions.

## REAL-WORLD SCENARIOS
Concrete scenarios from the documents for apply-level questions, with the
context, the situation and the correct response.

Be thorough. This report will be converted into a formal training syllabus."""


def build_structuring_prompt(research_report: str, title_hint: Optional[str]) -> str:
    """Build prompt that converts the research report into syllabus JSON"""

    title = title_hint or "Training Syllabus"
    remember = QUESTIONS_PER_LO[BloomLevel.REMEMBER]
    understand = QUESTIONS_PER_LO[BloomLevel.UNDERSTAND]
    apply = QUESTIONS_PER_LO[BloomLevel.APPLY]

    return f"""Using the research report below, create a structured training syllabus titled "{title}" in JSON format.

RESEARCH REPORT:
{research_report}

BLOOM'S TAXONOMY (levels 1-3 only):
Level 1 - REMEMBER ({BLOOM_POINTS[BloomLevel.REMEMBER]} point): recall facts, definitions, terminology
Level 2 - UNDERSTAND ({BLOOM_POINTS[BloomLevel.UNDERSTAND]} points): explain why, categorize, interpret
Level 3 - APPLY ({BLOOM_POINTS[BloomLevel.APPLY]} points): use in scenarios, solve problems, demonstrate

QUESTIONS PER LEARNING OBJECTIVE:
- Remember: {remember["min"]}-{remember["max"]} questions (mcq or short)
- Understand: {understand["min"]} questions (mcq or short)
- Apply: {apply["min"]}-{apply["max"]} questions (must be scenario-based)
- Total per learning objective: 5-6 questions

RESPOND WITH JSON ONLY, matching this shape:
{SYLLABUS_SCHEMA_DESCRIPTION}

RULES:
1. Create 3-7 modules based on the research
2. Each module has 2-5 learning objectives
3. Each learning objective has 5-6 questions across all 3 Bloom levels
4. mcq questions have exactly 4 options with exactly one correct
5. short and paragraph questions omit "options"
6. Apply questions must be scenario-based, using situations from the research
7. All content must come from the research report"""
