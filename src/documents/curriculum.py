# src/documents/curriculum.py — v1
"""Curriculum candidate document: program, version, subjects and term structure."""

from __future__ import annotations

from pydantic import Field

from acadimport.documents.base import CandidateDocument


class ProgramData(CandidateDocument):
    program_code: str = ""
    program_name: str = ""
    description: str | None = None
    degree_level: str | None = None
    total_credits: int | None = None
    duration_years: float | None = None


class CurriculumVersionData(CandidateDocument):
    version_code: str = ""
    effective_year: int | None = None
    description: str | None = None
    is_active: bool = True


class SubjectData(CandidateDocument):
    subject_code: str = ""
    subject_name: str = ""
    credits: int = 0
    description: str | None = None


class StructureData(CandidateDocument):
    """Placement of a subject in the program with its prerequisites."""

    subject_code: str = ""
    term_number: int = 0
    is_mandatory: bool = True
    prerequisite_subject_codes: list[str] = Field(default_factory=list)
    prerequisites_text: str | None = None


class CurriculumDocument(CandidateDocument):
    """Extracted curriculum for one program version."""

    program: ProgramData = Field(default_factory=ProgramData)
    version: CurriculumVersionData = Field(default_factory=CurriculumVersionData)
    subjects: list[SubjectData] = Field(default_factory=list)
    structure: list[StructureData] = Field(default_factory=list)

    def structure_for(self, subject_code: str) -> StructureData | None:
        """First structure row for a subject code."""
        for row in self.structure:
            if row.subject_code == subject_code:
                return row
        return None
