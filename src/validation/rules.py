# src/validation/rules.py — v1
"""Rule-based validators for curriculum, syllabus and roadmap documents."""

from __future__ import annotations

import re
from datetime import date

from acadimport.documents.curriculum import CurriculumDocument
from acadimport.documents.roadmap import RoadmapDocument, RoadmapNodeData
from acadimport.documents.syllabus import SyllabusDocument
from acadimport.validation.base_validator import (
    BaseDocumentValidator,
    RuleCollector,
    ValidationReport,
)

SUBJECT_CODE_RE = re.compile(r"^[A-Z0-9_-]+$")

MAX_SUBJECTS = 100
MAX_PREREQUISITES = 10
MAX_ROADMAP_DEPTH = 10


class CurriculumValidator(BaseDocumentValidator[CurriculumDocument]):
    """Program, version, subject and structure rules."""

    async def validate(self, document: CurriculumDocument) -> ValidationReport:
        rules = RuleCollector()

        program = rules.child("program")
        program.required(document.program.program_name, "programName", "Program name", 255)
        program.required(document.program.program_code, "programCode", "Program code", 50)
        program.max_length(document.program.description, "description", "Description", 1000)
        program.in_range(document.program.duration_years, "durationYears", "Duration years", 0, 10)
        program.in_range(document.program.total_credits, "totalCredits", "Total credits", 0, 300)

        version = rules.child("version")
        version.required(document.version.version_code, "versionCode", "Version code", 50)
        if document.version.effective_year is not None:
            year = document.version.effective_year
            version.check(year > 2000, "effectiveYear", "Effective year must be greater than 2000.")
            version.check(
                year <= date.today().year + 5,
                "effectiveYear",
                "Effective year cannot be more than 5 years in the future.",
            )
        version.max_length(document.version.description, "description", "Description", 500)

        rules.check(bool(document.subjects), "subjects", "At least one subject is required.")
        rules.check(
            len(document.subjects) <= MAX_SUBJECTS,
            "subjects",
            f"Cannot have more than {MAX_SUBJECTS} subjects.",
        )
        for i, subject in enumerate(document.subjects):
            sub = rules.child(f"subjects[{i}]")
            sub.required(subject.subject_code, "subjectCode", "Subject code", 50)
            sub.required(subject.subject_name, "subjectName", "Subject name", 255)
            sub.in_range(subject.credits, "credits", "Credits", 0, 10)
            sub.max_length(subject.description, "description", "Description", 1000)

        rules.check(bool(document.structure), "structure", "Curriculum structure is required.")
        for i, row in enumerate(document.structure):
            sub = rules.child(f"structure[{i}]")
            sub.required(row.subject_code, "subjectCode", "Subject code", 50)
            sub.in_range(row.term_number, "termNumber", "Term number", 0, 12)
            sub.check(
                len(row.prerequisite_subject_codes) <= MAX_PREREQUISITES,
                "prerequisiteSubjectCodes",
                f"Cannot have more than {MAX_PREREQUISITES} prerequisites.",
            )
            sub.max_length(row.prerequisites_text, "prerequisitesText", "Prerequisites text", 500)

        return ValidationReport.from_errors(rules.errors)


class SyllabusValidator(BaseDocumentValidator[SyllabusDocument]):
    """Subject code, version, dates and content rules."""

    async def validate(self, document: SyllabusDocument) -> ValidationReport:
        rules = RuleCollector()

        rules.required(document.subject_code, "subjectCode", "Subject code", 20)
        if document.subject_code:
            rules.check(
                bool(SUBJECT_CODE_RE.match(document.subject_code)),
                "subjectCode",
                "Subject code can only contain uppercase letters, numbers, underscores, and hyphens.",
            )
        rules.in_range(document.version_number, "versionNumber", "Version number", 0, 100)

        if document.effective_date is not None:
            today = date.today()
            rules.check(
                document.effective_date >= _shift_years(today, -10),
                "effectiveDate",
                "Effective date cannot be more than 10 years in the past.",
            )
            rules.check(
                document.effective_date <= _shift_years(today, 5),
                "effectiveDate",
                "Effective date cannot be more than 5 years in the future.",
            )

        content = document.content
        rules.check(content is not None, "content", "Syllabus content is required.")
        if content is not None:
            body = rules.child("content")
            body.max_length(content.course_description, "courseDescription", "Course description", 2000)
            for i, outcome in enumerate(content.learning_outcomes):
                body.check(
                    bool(outcome.strip()),
                    f"learningOutcomes[{i}]",
                    "Learning outcomes cannot contain empty or whitespace-only values.",
                )
                body.max_length(outcome, f"learningOutcomes[{i}]", "Each learning outcome", 500)
            for i, session in enumerate(content.session_schedule):
                row = body.child(f"sessionSchedule[{i}]")
                row.in_range(session.session_number, "sessionNumber", "Session number", 0, 200)
                row.required(session.topic, "topic", "Session topic", 200)
            for i, assessment in enumerate(content.assessments):
                row = body.child(f"assessments[{i}]")
                row.required(assessment.type, "type", "Assessment type", 50)
                row.in_range(assessment.weight_percentage, "weightPercentage", "Weight percentage", 0, 100)

        for i, skill in enumerate(document.skills):
            rules.required(skill, f"skills[{i}]", "Skill name", 255)

        return ValidationReport.from_errors(rules.errors)


class RoadmapValidator(BaseDocumentValidator[RoadmapDocument]):
    """Class name plus non-empty titles on every node."""

    async def validate(self, document: RoadmapDocument) -> ValidationReport:
        rules = RuleCollector()
        rules.child("class").required(document.roadmap_class.name, "name", "Class name", 255)
        for i, node in enumerate(document.nodes):
            _validate_node(rules.child(f"nodes[{i}]"), node, depth=1)
        return ValidationReport.from_errors(rules.errors)


def _validate_node(rules: RuleCollector, node: RoadmapNodeData, depth: int) -> None:
    rules.required(node.title, "title", "Node title", 255)
    rules.check(
        depth <= MAX_ROADMAP_DEPTH,
        "children",
        f"Roadmap nesting cannot exceed {MAX_ROADMAP_DEPTH} levels.",
    )
    if depth > MAX_ROADMAP_DEPTH:
        return
    for i, child in enumerate(node.children):
        _validate_node(rules.child(f"children[{i}]"), child, depth + 1)


def _shift_years(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # Feb 29 in a non-leap target year
        return day.replace(year=day.year + years, day=28)
