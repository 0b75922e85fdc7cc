"""Placing students into sections.

A move updates the student and recounts both the old and the new section in
one transaction with the student row locked, so `current_strength` never
drifts from the number of active students placed in a section.
"""
import logging

from django.db import transaction

from academics.exceptions import NotFoundError, ValidationError
from academics.models import Student
from academics.services.batch import run_batch
from academics.services.sections import get_section_for_college, refresh_section_strength

logger = logging.getLogger(__name__)


def get_student_for_college(college_id, student_id, for_update=False) -> Student:
    qs = Student.objects.filter(pk=student_id, college_id=college_id)
    if for_update:
        qs = qs.select_for_update()
    student = qs.first()
    if student is None:
        raise NotFoundError(f'Student {student_id} not found')
    return student


@transaction.atomic
def assign_student_to_section(college_id, student_id, section_id) -> dict:
    student = get_student_for_college(college_id, student_id, for_update=True)
    section = get_section_for_college(college_id, section_id)

    if not section.is_active:
        raise ValidationError(f'Section "{section.name}" is not active')
    if student.program_id != section.program_id:
        raise ValidationError(
            f'Student {student.roll_number} is enrolled in a different program than section "{section.name}"'
        )

    old_section_id = student.section_id
    if old_section_id != section.pk:
        student.section = section
        student.save(update_fields=['section', 'updated_at'])
    refresh_section_strength([old_section_id, section.pk])

    logger.info('Moved student %s from section %s to %s', student.pk, old_section_id, section.pk)
    return {
        'student_id': student.pk,
        'student_name': student.name,
        'roll_number': student.roll_number,
        'old_section': old_section_id,
        'new_section': section.pk,
    }


def bulk_assign_students_to_sections(college_id, assignments) -> dict:
    """Assign each `{student_id, section_id}` pair independently.

    Returns `{summary: {total, successful, failed}, results: {successful, failed}}`;
    one bad pair never prevents the others from being applied.
    """
    result = run_batch(
        assignments,
        lambda item: assign_student_to_section(college_id, item.get('student_id'), item.get('section_id')),
        describe=lambda item: {'student_id': item.get('student_id'), 'section_id': item.get('section_id')},
    )
    logger.info('Bulk assignment for college %s: %s', college_id, result.summary())
    return result.as_dict()


def move_students_to_section(college_id, student_ids, section_id) -> dict:
    """Move many students into one section, best effort per student."""
    # fail the whole call early when the target itself is unusable
    section = get_section_for_college(college_id, section_id)
    if not section.is_active:
        raise ValidationError(f'Section "{section.name}" is not active')

    result = run_batch(
        student_ids,
        lambda sid: assign_student_to_section(college_id, sid, section.pk),
        describe=lambda sid: {'student_id': sid},
    )
    return {
        'updated_count': len(result.successful),
        'total_requested': result.total,
        'errors': result.failed,
    }
