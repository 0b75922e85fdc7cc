"""Section management: roll number ranges, lifecycle and strength counters.

Active sections of one (college, program, year) own pairwise disjoint,
inclusive roll number ranges. `Section.current_strength` is a stored copy of
the number of active students placed in a section and is only ever written by
`refresh_section_strength`, which recounts it from the student table inside
the caller's transaction.
"""
import logging
from typing import Iterable, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q

from academics.exceptions import ConflictError, NotFoundError, ValidationError
from academics.models import Program, Section, Student, Subject
from academics.utils import page_bounds, pagination_meta
from college.models import College

logger = logging.getLogger(__name__)

UPDATABLE_SECTION_FIELDS = (
    'name',
    'year',
    'shift',
    'roll_start',
    'roll_end',
    'capacity',
    'subject_ids',
    'is_active',
)


def get_college(college_id) -> College:
    college = College.objects.filter(pk=college_id).first()
    if college is None:
        raise NotFoundError('College not found')
    return college


def get_program_for_college(college_id, program_id) -> Program:
    program = Program.objects.filter(pk=program_id, college_id=college_id).first()
    if program is None:
        raise NotFoundError(f'Program {program_id} not found')
    return program


def get_section_for_college(college_id, section_id, for_update=False) -> Section:
    qs = Section.objects.filter(pk=section_id, college_id=college_id)
    if for_update:
        qs = qs.select_for_update()
    section = qs.first()
    if section is None:
        raise NotFoundError(f'Section {section_id} not found')
    return section


def _validate_year(year):
    if year not in Section.Year.values:
        raise ValidationError(f'Invalid year "{year}"')


def _validate_range(start, end, label='Roll number range'):
    if (start is None) != (end is None):
        raise ValidationError(f'{label} needs both a start and an end')
    if start is not None and start > end:
        raise ValidationError(f'{label} start ({start}) cannot be greater than end ({end})')


def _subjects_for_college(college_id, subject_ids):
    ids = set(subject_ids or [])
    subjects = list(Subject.objects.filter(college_id=college_id, pk__in=ids))
    missing = ids - {s.pk for s in subjects}
    if missing:
        raise ValidationError(f'Subjects not found in this college: {sorted(missing)}')
    return subjects


def ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    return start_a <= end_b and end_a >= start_b


def find_overlapping_section(college_id, program_id, year, start, end, exclude_id=None) -> Optional[Section]:
    """Return an active section of the cohort whose range intersects [start, end]."""
    qs = Section.objects.filter(
        college_id=college_id,
        program_id=program_id,
        year=year,
        is_active=True,
        roll_start__isnull=False,
        roll_end__isnull=False,
        roll_start__lte=end,
        roll_end__gte=start,
    )
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.order_by('roll_start').first()


def _raise_if_overlapping(college_id, program_id, year, start, end, exclude_id=None):
    other = find_overlapping_section(college_id, program_id, year, start, end, exclude_id=exclude_id)
    if other is not None:
        raise ConflictError(
            f'Roll number range {start}-{end} overlaps with section "{other.name}" '
            f'({other.roll_start}-{other.roll_end})'
        )


def refresh_section_strength(section_ids: Iterable) -> dict:
    """Recount `current_strength` for the given sections from their active students.

    Must run inside the transaction that moved the students. Returns a
    mapping of section id to the new strength.
    """
    ids = sorted({sid for sid in section_ids if sid is not None})
    if not ids:
        return {}
    # lock the counters so concurrent recounts serialise
    list(Section.objects.select_for_update().filter(pk__in=ids).values_list('pk', flat=True))
    counts = dict(
        Student.objects.filter(section_id__in=ids, is_active=True)
        .order_by()
        .values('section_id')
        .annotate(n=Count('id'))
        .values_list('section_id', 'n')
    )
    strengths = {}
    for sid in ids:
        strengths[sid] = counts.get(sid, 0)
        Section.objects.filter(pk=sid).update(current_strength=strengths[sid])
    return strengths


def live_strength_annotation():
    return Count('students', filter=Q(students__is_active=True), distinct=True)


@transaction.atomic
def create_section(college_id, data) -> Section:
    get_college(college_id)
    program = get_program_for_college(college_id, data.get('program_id'))

    year = data.get('year')
    _validate_year(year)
    start, end = data.get('roll_start'), data.get('roll_end')
    _validate_range(start, end)
    if start is not None:
        _raise_if_overlapping(college_id, program.pk, year, start, end)

    subjects = _subjects_for_college(college_id, data.get('subject_ids'))

    section = Section.objects.create(
        college_id=college_id,
        program=program,
        name=data['name'],
        year=year,
        shift=data.get('shift') or Section.Shift.FIRST,
        roll_start=start,
        roll_end=end,
        capacity=data.get('capacity') or settings.ROSTER_DEFAULT_SECTION_CAPACITY,
        current_strength=0,
    )
    if subjects:
        section.subjects.set(subjects)
    logger.info('Created section %s (%s) for college %s', section.pk, section.name, college_id)
    return section


@transaction.atomic
def update_section(college_id, section_id, data) -> Section:
    """Patch a section. Only the keys in UPDATABLE_SECTION_FIELDS are applied."""
    section = get_section_for_college(college_id, section_id, for_update=True)
    changes = {k: v for k, v in data.items() if k in UPDATABLE_SECTION_FIELDS}

    if 'year' in changes:
        _validate_year(changes['year'])

    start = changes.get('roll_start', section.roll_start)
    end = changes.get('roll_end', section.roll_end)
    year = changes.get('year', section.year)
    is_active = changes.get('is_active', section.is_active)
    _validate_range(start, end)

    range_touched = any(k in changes for k in ('roll_start', 'roll_end', 'year', 'is_active'))
    if range_touched and is_active and start is not None:
        _raise_if_overlapping(college_id, section.program_id, year, start, end, exclude_id=section.pk)

    if is_active is False and section.is_active:
        _raise_if_populated(section)

    subject_ids = changes.pop('subject_ids', None)
    for key, value in changes.items():
        setattr(section, key, value)
    section.save()
    if subject_ids is not None:
        section.subjects.set(_subjects_for_college(college_id, subject_ids))
    logger.info('Updated section %s fields=%s', section.pk, sorted(changes))
    return section


def _raise_if_populated(section):
    placed = Student.objects.filter(section=section, is_active=True).count()
    if placed > 0:
        raise ConflictError(
            f'Section "{section.name}" still has {placed} active students; reassign them first'
        )


@transaction.atomic
def delete_section(college_id, section_id) -> Section:
    """Deactivate a section that no active student references."""
    section = get_section_for_college(college_id, section_id, for_update=True)
    _raise_if_populated(section)
    section.is_active = False
    section.current_strength = 0
    section.save(update_fields=['is_active', 'current_strength', 'updated_at'])
    logger.info('Deactivated section %s', section.pk)
    return section


def get_section(college_id, section_id) -> Section:
    section = (
        Section.objects.filter(pk=section_id, college_id=college_id)
        .select_related('program')
        .prefetch_related('subjects')
        .annotate(live_strength=live_strength_annotation())
        .first()
    )
    if section is None:
        raise NotFoundError(f'Section {section_id} not found')
    return section


def list_sections(college_id, program_id=None, year=None, include_inactive=False, page=1, limit=20) -> dict:
    qs = Section.objects.filter(college_id=college_id)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if program_id is not None:
        qs = qs.filter(program_id=program_id)
    if year:
        qs = qs.filter(year=year)

    page, limit, offset = page_bounds(page, limit)
    total = qs.count()
    sections = list(
        qs.select_related('program')
        .prefetch_related('subjects')
        .annotate(live_strength=live_strength_annotation())
        .order_by('program__code', 'year', 'roll_start', 'name')[offset:offset + limit]
    )
    return {
        'sections': sections,
        'pagination': pagination_meta(total, page, limit),
    }


def _normalize_split_ranges(ranges):
    normalized = []
    for index, raw in enumerate(ranges):
        name = (raw.get('name') or '').strip()
        if not name:
            raise ValidationError(f'Range #{index + 1} needs a section name')
        start, end = raw.get('start'), raw.get('end')
        if start is None or end is None:
            raise ValidationError(f'Range "{name}" needs both a start and an end')
        _validate_range(start, end, label=f'Range "{name}"')
        normalized.append({
            'name': name,
            'start': start,
            'end': end,
            'shift': raw.get('shift') or Section.Shift.FIRST,
            'capacity': raw.get('capacity') or settings.ROSTER_SPLIT_DEFAULT_CAPACITY,
            'subject_ids': raw.get('subject_ids') or [],
        })
    return normalized


@transaction.atomic
def split_section_by_roll_ranges(college_id, program_id, year, ranges) -> dict:
    """Create one section per roll range and place matching students in them.

    Students considered are the active students of the program that are
    either unplaced or placed in a section of the same year. A student whose
    roll number is not numeric is reported in `skipped` and left where it is.
    Strength is recounted for every created section and every section a
    student was taken from, so repeating a split never double counts.
    """
    get_college(college_id)
    program = get_program_for_college(college_id, program_id)
    _validate_year(year)

    wanted = _normalize_split_ranges(ranges or [])
    if not wanted:
        raise ValidationError('At least one roll number range is required')

    for i, first in enumerate(wanted):
        for second in wanted[i + 1:]:
            if ranges_overlap(first['start'], first['end'], second['start'], second['end']):
                raise ConflictError(
                    f'Roll number ranges overlap: {first["name"]} ({first["start"]}-{first["end"]}) '
                    f'and {second["name"]} ({second["start"]}-{second["end"]})'
                )

    for r in wanted:
        _raise_if_overlapping(college_id, program.pk, year, r['start'], r['end'])

    created = []
    for r in wanted:
        section = Section.objects.create(
            college_id=college_id,
            program=program,
            name=r['name'],
            year=year,
            shift=r['shift'],
            roll_start=r['start'],
            roll_end=r['end'],
            capacity=r['capacity'],
            current_strength=0,
        )
        if r['subject_ids']:
            section.subjects.set(_subjects_for_college(college_id, r['subject_ids']))
        created.append(section)

    same_year_sections = Section.objects.filter(
        college_id=college_id, program=program, year=year,
    ).values('pk')
    students = (
        Student.objects.select_for_update()
        .filter(college_id=college_id, program=program, is_active=True)
        .filter(Q(section_id__isnull=True) | Q(section_id__in=same_year_sections))
        .order_by('pk')
    )

    assignments = []
    skipped = []
    touched = {s.pk for s in created}
    for student in students:
        roll = student.numeric_roll_number
        if roll is None:
            skipped.append({
                'student_id': student.pk,
                'roll_number': student.roll_number,
                'reason': 'Roll number is not numeric',
            })
            continue
        target = next((s for s in created if s.contains_roll(roll)), None)
        if target is None or student.section_id == target.pk:
            continue
        old_section_id = student.section_id
        student.section = target
        student.save(update_fields=['section', 'updated_at'])
        touched.add(old_section_id)
        assignments.append({
            'student_id': student.pk,
            'student_name': student.name,
            'roll_number': student.roll_number,
            'old_section_id': old_section_id,
            'new_section_id': target.pk,
            'section_name': target.name,
        })

    refresh_section_strength(touched)
    for section in created:
        section.refresh_from_db()

    logger.info(
        'Split program %s %s into %d sections, reassigned %d students (%d skipped)',
        program.pk, year, len(created), len(assignments), len(skipped),
    )
    return {
        'sections_created': len(created),
        'students_reassigned': len(assignments),
        'sections': created,
        'assignments': assignments,
        'skipped': skipped,
    }
