"""Teacher-of-record lookup and assignment management."""
import logging
from typing import Optional

from django.db import transaction

from academics.exceptions import ConflictError, NotFoundError, ValidationError
from academics.models import Subject, Teacher, TeacherAssignment
from academics.services.sections import get_college, get_section_for_college

logger = logging.getLogger(__name__)

UPDATABLE_ASSIGNMENT_FIELDS = ('academic_year', 'semester', 'is_active')


def find_teacher_for_section_subject(
    college_id, section_id, subject_id, academic_year=None, semester=None
) -> Optional[TeacherAssignment]:
    """Return the active assignment for (section, subject), or None.

    When several terms are active the most recently created one wins.
    """
    qs = TeacherAssignment.objects.filter(
        college_id=college_id,
        section_id=section_id,
        subject_id=subject_id,
        is_active=True,
    )
    if academic_year:
        qs = qs.filter(academic_year=academic_year)
    if semester:
        qs = qs.filter(semester=semester)
    return qs.select_related('teacher').order_by('-created_at', '-pk').first()


def teaches_section(college_id, user_id, section_id, subject_id=None) -> bool:
    """True when the teacher behind `user_id` holds an active assignment in the section."""
    qs = TeacherAssignment.objects.filter(
        college_id=college_id,
        section_id=section_id,
        teacher__user_id=user_id,
        is_active=True,
    )
    if subject_id is not None:
        qs = qs.filter(subject_id=subject_id)
    return qs.exists()


def get_assignment_for_college(college_id, assignment_id) -> TeacherAssignment:
    assignment = (
        TeacherAssignment.objects.filter(pk=assignment_id, college_id=college_id)
        .select_related('teacher', 'subject', 'section', 'program')
        .first()
    )
    if assignment is None:
        raise NotFoundError(f'Teacher assignment {assignment_id} not found')
    return assignment


def _assignment_exists(teacher_id, subject_id, section_id, academic_year, semester, exclude_id=None) -> bool:
    qs = TeacherAssignment.objects.filter(
        teacher_id=teacher_id,
        subject_id=subject_id,
        section_id=section_id,
        academic_year=academic_year,
        semester=semester,
    )
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


@transaction.atomic
def create_teacher_assignment(college_id, data) -> TeacherAssignment:
    get_college(college_id)
    section = get_section_for_college(college_id, data.get('section_id'))

    teacher = Teacher.objects.filter(pk=data.get('teacher_id'), college_id=college_id).first()
    if teacher is None:
        raise NotFoundError(f'Teacher {data.get("teacher_id")} not found')
    subject = Subject.objects.filter(pk=data.get('subject_id'), college_id=college_id).first()
    if subject is None:
        raise NotFoundError(f'Subject {data.get("subject_id")} not found')

    academic_year = data.get('academic_year')
    semester = data.get('semester')
    if not academic_year:
        raise ValidationError('academic_year is required')
    if semester not in TeacherAssignment.Semester.values:
        raise ValidationError(f'Invalid semester "{semester}"')

    if _assignment_exists(teacher.pk, subject.pk, section.pk, academic_year, semester):
        raise ConflictError(
            f'Teacher {teacher.name} is already assigned to {subject.code} in section '
            f'"{section.name}" for {academic_year} {semester}'
        )

    assignment = TeacherAssignment.objects.create(
        college_id=college_id,
        teacher=teacher,
        subject=subject,
        section=section,
        # program always follows the section
        program_id=section.program_id,
        academic_year=academic_year,
        semester=semester,
    )
    logger.info(
        'Assigned teacher %s to subject %s in section %s (%s %s)',
        teacher.pk, subject.pk, section.pk, academic_year, semester,
    )
    return assignment


def list_teacher_assignments(college_id, teacher_id=None, section_id=None, include_inactive=False):
    qs = TeacherAssignment.objects.filter(college_id=college_id)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if teacher_id is not None:
        qs = qs.filter(teacher_id=teacher_id)
    if section_id is not None:
        get_section_for_college(college_id, section_id)
        qs = qs.filter(section_id=section_id)
    return list(
        qs.select_related('teacher', 'subject', 'section', 'program')
        .order_by('-academic_year', 'section__name', 'subject__code')
    )


@transaction.atomic
def update_teacher_assignment(college_id, assignment_id, data) -> TeacherAssignment:
    assignment = get_assignment_for_college(college_id, assignment_id)
    changes = {k: v for k, v in data.items() if k in UPDATABLE_ASSIGNMENT_FIELDS}

    if 'semester' in changes and changes['semester'] not in TeacherAssignment.Semester.values:
        raise ValidationError(f'Invalid semester "{changes["semester"]}"')

    academic_year = changes.get('academic_year', assignment.academic_year)
    semester = changes.get('semester', assignment.semester)
    if _assignment_exists(
        assignment.teacher_id, assignment.subject_id, assignment.section_id,
        academic_year, semester, exclude_id=assignment.pk,
    ):
        raise ConflictError(f'An assignment for {academic_year} {semester} already exists')

    for key, value in changes.items():
        setattr(assignment, key, value)
    assignment.save()
    return assignment


def delete_teacher_assignment(college_id, assignment_id) -> TeacherAssignment:
    assignment = get_assignment_for_college(college_id, assignment_id)
    assignment.is_active = False
    assignment.save(update_fields=['is_active', 'updated_at'])
    logger.info('Deactivated teacher assignment %s', assignment.pk)
    return assignment
