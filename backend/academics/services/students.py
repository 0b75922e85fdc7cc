"""Student registry for a college.

Roll numbers are unique among the active students of a college. Any change
of a student's section recounts the old and the new section in the same
transaction.
"""
import logging

from django.db import IntegrityError, transaction

from academics.exceptions import ConflictError, NotFoundError, ValidationError
from academics.models import Student
from academics.services.placement import get_student_for_college
from academics.services.sections import (
    get_college,
    get_program_for_college,
    get_section_for_college,
    refresh_section_strength,
)

logger = logging.getLogger(__name__)

UPDATABLE_STUDENT_FIELDS = (
    'name',
    'father_name',
    'contact_number',
    'roll_number',
    'program_id',
    'section_id',
    'status',
    'enrollment_date',
)


def get_student_for_user(college_id, user_id) -> Student:
    """The active student profile linked to a login."""
    student = Student.objects.filter(college_id=college_id, user_id=user_id, is_active=True).first()
    if student is None:
        raise NotFoundError('Student profile not found')
    return student


def _raise_if_roll_taken(college_id, roll_number, exclude_id=None):
    qs = Student.objects.filter(college_id=college_id, roll_number=roll_number, is_active=True)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise ConflictError(f'Roll number {roll_number} already exists in this college')


def _resolve_section(college_id, section_id, program_id):
    if section_id is None:
        return None
    section = get_section_for_college(college_id, section_id)
    if not section.is_active:
        raise ValidationError(f'Section "{section.name}" is not active')
    if section.program_id != program_id:
        raise ValidationError(f'Section "{section.name}" belongs to a different program')
    return section


def _save(student, **kwargs):
    try:
        with transaction.atomic():
            student.save(**kwargs)
    except IntegrityError:
        raise ConflictError(f'Roll number {student.roll_number} already exists in this college')


@transaction.atomic
def create_student(college_id, data) -> Student:
    get_college(college_id)
    roll_number = (data.get('roll_number') or '').strip()
    if not roll_number:
        raise ValidationError('roll_number is required')
    program = get_program_for_college(college_id, data.get('program_id'))
    section = _resolve_section(college_id, data.get('section_id'), program.pk)
    status = data.get('status') or Student.Status.ACTIVE
    if status not in Student.Status.values:
        raise ValidationError(f'Invalid student status "{status}"')
    _raise_if_roll_taken(college_id, roll_number)

    student = Student(
        college_id=college_id,
        roll_number=roll_number,
        name=data.get('name', ''),
        father_name=data.get('father_name', ''),
        contact_number=data.get('contact_number') or '',
        program=program,
        section=section,
        status=status,
    )
    if data.get('enrollment_date'):
        student.enrollment_date = data['enrollment_date']
    _save(student)
    if section is not None:
        refresh_section_strength([section.pk])
    logger.info('Created student %s (%s) in college %s', student.pk, roll_number, college_id)
    return student


@transaction.atomic
def update_student(college_id, student_id, data) -> Student:
    student = get_student_for_college(college_id, student_id, for_update=True)
    changes = {k: v for k, v in data.items() if k in UPDATABLE_STUDENT_FIELDS}

    if 'roll_number' in changes:
        changes['roll_number'] = (changes['roll_number'] or '').strip()
        if not changes['roll_number']:
            raise ValidationError('roll_number cannot be blank')
        if changes['roll_number'] != student.roll_number and student.is_active:
            _raise_if_roll_taken(college_id, changes['roll_number'], exclude_id=student.pk)
    if 'status' in changes and changes['status'] not in Student.Status.values:
        raise ValidationError(f'Invalid student status "{changes["status"]}"')

    program_id = student.program_id
    if 'program_id' in changes:
        program_id = get_program_for_college(college_id, changes['program_id']).pk

    old_section_id = student.section_id
    section_id = changes.get('section_id', old_section_id)
    if 'section_id' in changes or program_id != student.program_id:
        _resolve_section(college_id, section_id, program_id)

    for key, value in changes.items():
        setattr(student, key, value)
    _save(student)

    if student.section_id != old_section_id:
        refresh_section_strength([old_section_id, student.section_id])
        logger.info('Student %s moved from section %s to %s', student.pk, old_section_id, student.section_id)
    return student


@transaction.atomic
def delete_student(college_id, student_id) -> Student:
    """Soft delete; the student's section loses one from its strength."""
    student = get_student_for_college(college_id, student_id, for_update=True)
    student.is_active = False
    student.status = Student.Status.INACTIVE
    student.save(update_fields=['is_active', 'status', 'updated_at'])
    refresh_section_strength([student.section_id])
    logger.info('Deactivated student %s', student.pk)
    return student
