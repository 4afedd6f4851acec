# src/pipeline/importers/syllabus.py — v1
"""Syllabus import: one immutable version per (subject, version number).

Re-submitting a version that already exists is a skipped success and
performs no writes. Otherwise the owning subject is upserted, the
version inserted and the syllabus skills upserted under the subject.
"""

from __future__ import annotations

import logging

from acadimport.core.errors import DuplicateRecordError
from acadimport.core.models import ImportResult
from acadimport.documents.syllabus import SyllabusDocument
from acadimport.pipeline.importers.base import BaseImporter
from acadimport.reconcile.flat import FlatReconciler, normalize_key
from acadimport.validation.rules import SyllabusValidator

logger = logging.getLogger(__name__)

VERSION_RECORD = "syllabus_version"


def skill_key(subject_code: str, name: str) -> str:
    """Skills are unique per subject, case-insensitively."""
    return f"{subject_code}::{' '.join(name.split()).casefold()}"


class SyllabusImporter(BaseImporter[SyllabusDocument]):
    kind = "syllabus"
    document_model = SyllabusDocument

    @classmethod
    def default_validator(cls) -> SyllabusValidator:
        return SyllabusValidator()

    def cache_key(self, document: SyllabusDocument) -> tuple[str, int]:
        return document.subject_code, document.version_number

    async def reconcile(self, document: SyllabusDocument) -> ImportResult:
        code = normalize_key("subject", document.subject_code)
        version = document.version_number

        subject = await self._store.find_by_key("subject", code)
        if subject is not None:
            existing = await self._store.find_versioned(VERSION_RECORD, subject.id, version)
            if existing is not None:
                return self._skipped(code, version, subject.id, existing.id)

        flat = FlatReconciler(self._store, self._locks)
        created = updated = 0

        subject, was_created = await flat.upsert(
            "subject",
            code,
            {
                "subject_name": document.subject_name or None,
                "credits": document.credits or None,
                "description": document.description,
            },
        )
        if was_created:
            created += 1
        else:
            updated += 1

        try:
            syllabus = await flat.insert_versioned(
                VERSION_RECORD,
                f"{code}:v{version}",
                subject.id,
                version,
                {
                    "version_number": version,
                    "effective_date": (
                        document.effective_date.isoformat() if document.effective_date else None
                    ),
                    "is_active": document.is_active,
                    "content": (
                        document.content.model_dump(mode="json", by_alias=True)
                        if document.content
                        else None
                    ),
                },
            )
        except DuplicateRecordError:
            # Lost a race with a concurrent import of the same version
            existing = await self._store.find_versioned(VERSION_RECORD, subject.id, version)
            return self._skipped(code, version, subject.id, existing.id if existing else None)
        created += 1

        skill_ids: dict[str, str] = {}
        for name in document.skills:
            name = " ".join(name.split())
            key = skill_key(code, name)
            if not name or key in skill_ids:
                continue
            skill, was_created = await flat.upsert(
                "skill",
                key,
                {"name": name, "subject_code": code},
                parent_id=subject.id,
            )
            skill_ids[key] = skill.id
            if was_created:
                created += 1
            else:
                updated += 1

        return ImportResult(
            outcome="success",
            message=(
                f"Syllabus version '{version}' for subject '{code}' imported: "
                f"{created} created, {updated} updated."
            ),
            created_count=created,
            updated_count=updated,
            identifiers=self._identifiers(
                subjectId=subject.id,
                syllabusVersionId=syllabus.id,
                skillIds=list(skill_ids.values()),
            ),
        )

    def _skipped(
        self, code: str, version: int, subject_id: str, version_id: str | None
    ) -> ImportResult:
        message = (
            f"Syllabus version '{version}' for subject '{code}' already exists. "
            "Import skipped to prevent duplicates."
        )
        logger.info(message)
        return ImportResult(
            outcome="skipped",
            message=message,
            skipped_count=1,
            identifiers=self._identifiers(subjectId=subject_id, syllabusVersionId=version_id),
        )
