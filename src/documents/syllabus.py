# src/documents/syllabus.py — v1
"""Syllabus candidate document: one versioned syllabus of one subject."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from acadimport.documents.base import CandidateDocument


class SessionData(CandidateDocument):
    session_number: int = 0
    topic: str = ""
    activities: list[str] = Field(default_factory=list)
    readings: list[str] = Field(default_factory=list)


class AssessmentData(CandidateDocument):
    type: str = ""
    name: str = ""
    weight_percentage: int | None = None
    description: str | None = None


class SyllabusContent(CandidateDocument):
    course_description: str | None = None
    learning_outcomes: list[str] = Field(default_factory=list)
    session_schedule: list[SessionData] = Field(default_factory=list)
    assessments: list[AssessmentData] = Field(default_factory=list)


class SyllabusDocument(CandidateDocument):
    """Extracted syllabus. Versions are immutable once imported."""

    subject_code: str = ""
    subject_name: str = ""
    credits: int = 0
    description: str | None = None
    version_number: int = 1
    effective_date: date | None = None
    is_active: bool = True
    content: SyllabusContent | None = Field(default_factory=SyllabusContent)
    skills: list[str] = Field(default_factory=list)
