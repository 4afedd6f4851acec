# src/pipeline/importers/curriculum.py — v1
"""Curriculum import: program, version, subjects and program-subject links.

Subjects are created or updated first; prerequisite codes are resolved to
subject ids only once every subject of the document exists, so forward
references inside one curriculum resolve.
"""

from __future__ import annotations

import logging

from acadimport.core.models import ImportResult
from acadimport.documents.curriculum import CurriculumDocument
from acadimport.pipeline.importers.base import BaseImporter
from acadimport.reconcile.flat import FlatReconciler
from acadimport.validation.rules import CurriculumValidator

logger = logging.getLogger(__name__)

PROGRAM_FIELDS = ("program_name", "description", "degree_level", "total_credits", "duration_years")
SUBJECT_FIELDS = ("subject_name", "credits", "description", "semester")
LINK_FIELDS = ("term_number", "is_mandatory", "prerequisite_subject_ids")


class CurriculumImporter(BaseImporter[CurriculumDocument]):
    kind = "curriculum"
    document_model = CurriculumDocument

    @classmethod
    def default_validator(cls) -> CurriculumValidator:
        return CurriculumValidator()

    def cache_key(self, document: CurriculumDocument) -> tuple[str, str]:
        return document.program.program_code, document.version.version_code

    async def reconcile(self, document: CurriculumDocument) -> ImportResult:
        flat = FlatReconciler(self._store, self._locks)
        created = updated = 0
        errors: list[str] = []

        program_code = document.program.program_code
        program, was_created = await flat.upsert(
            "program",
            program_code,
            document.program.model_dump(include=set(PROGRAM_FIELDS)),
            mutable_fields=PROGRAM_FIELDS,
        )
        created, updated = _tally(was_created, created, updated)

        version, was_created = await flat.upsert(
            "curriculum_version",
            f"{program_code}:{document.version.version_code}",
            document.version.model_dump(),
            parent_id=program.id,
        )
        created, updated = _tally(was_created, created, updated)

        subject_ids: dict[str, str] = {}
        for subject in document.subjects:
            row = document.structure_for(subject.subject_code)
            fields = subject.model_dump(exclude={"subject_code"})
            fields["semester"] = row.term_number if row else None
            record, was_created = await flat.upsert(
                "subject", subject.subject_code, fields, mutable_fields=SUBJECT_FIELDS,
            )
            subject_ids[record.natural_key] = record.id
            created, updated = _tally(was_created, created, updated)

        for row in document.structure:
            code = row.subject_code.strip()
            subject_id = subject_ids.get(code) or await self._lookup_subject(code)
            if subject_id is None:
                errors.append(f"Structure references unknown subject '{code}'.")
                continue

            prerequisite_ids: list[str] = []
            for prereq_code in row.prerequisite_subject_codes:
                prereq_code = prereq_code.strip()
                prereq_id = subject_ids.get(prereq_code) or await self._lookup_subject(prereq_code)
                if prereq_id is None:
                    errors.append(
                        f"Unknown prerequisite subject '{prereq_code}' for '{code}'."
                    )
                elif prereq_id != subject_id and prereq_id not in prerequisite_ids:
                    prerequisite_ids.append(prereq_id)

            _, was_created = await flat.upsert(
                "program_subject",
                f"{program_code}:{code}",
                {
                    "subject_id": subject_id,
                    "subject_code": code,
                    "term_number": row.term_number,
                    "is_mandatory": row.is_mandatory,
                    "prerequisite_subject_ids": prerequisite_ids,
                },
                mutable_fields=LINK_FIELDS,
                parent_id=program.id,
            )
            created, updated = _tally(was_created, created, updated)

        for message in errors:
            logger.warning("Curriculum %s: %s", program_code, message)

        return ImportResult(
            outcome="success",
            message=(
                f"Curriculum '{program_code}' imported: "
                f"{created} created, {updated} updated."
            ),
            created_count=created,
            updated_count=updated,
            identifiers=self._identifiers(
                programId=program.id,
                curriculumVersionId=version.id,
                subjectIds=subject_ids,
            ),
            errors=errors,
        )

    async def _lookup_subject(self, code: str) -> str | None:
        if not code:
            return None
        record = await self._store.find_by_key("subject", code)
        return record.id if record else None


def _tally(was_created: bool, created: int, updated: int) -> tuple[int, int]:
    return (created + 1, updated) if was_created else (created, updated + 1)
