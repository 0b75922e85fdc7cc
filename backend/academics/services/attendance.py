"""Attendance marking, corrections and aggregates.

Marking inserts one row per submitted record, each in its own savepoint.
The (student, section, subject, date, period) unique constraint is the
authoritative duplicate guard: a record that loses to it, or that names a
student outside the college, is reported back as skipped and the other
records of the call are still stored.
"""
import logging
from datetime import date as date_type
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q

from accounts.context import CallerContext
from academics.exceptions import ConflictError, NotFoundError, ValidationError
from academics.models import Attendance, Student, Subject, TeacherAssignment
from academics.services.placement import get_student_for_college
from academics.services.sections import get_college, get_section_for_college
from academics.services.teacher_assignments import find_teacher_for_section_subject, teaches_section
from academics.utils import page_bounds, pagination_meta, roll_sort_key

logger = logging.getLogger(__name__)

UPDATABLE_ATTENDANCE_FIELDS = ('status', 'remarks', 'period')

STATUS_KEYS = {
    Attendance.Status.PRESENT: 'present',
    Attendance.Status.ABSENT: 'absent',
    Attendance.Status.LATE: 'late',
    Attendance.Status.LEAVE: 'leave',
    Attendance.Status.EXCUSED: 'excused',
}


def attendance_percentage(present, total) -> float:
    if not total:
        return 0
    return round(present / total * 100, 2)


def _get_subject_for_college(college_id, subject_id) -> Subject:
    subject = Subject.objects.filter(pk=subject_id, college_id=college_id).first()
    if subject is None:
        raise NotFoundError(f'Subject {subject_id} not found')
    return subject


def _validate_period(period):
    if period is None:
        return
    if not isinstance(period, int) or not 1 <= period <= 10:
        raise ValidationError(f'Period must be between 1 and 10, got {period!r}')


def _validate_status(status):
    if status not in Attendance.Status.values:
        raise ValidationError(f'Invalid attendance status "{status}"')


def period_already_marked(college_id, section, subject, day, period) -> bool:
    return Attendance.objects.filter(
        college_id=college_id, section=section, subject=subject, date=day, period=period,
    ).exists()


def ensure_section_access(caller: CallerContext, section_id, subject_id=None):
    """Teachers only read sections (and subjects) they are assigned to."""
    if not caller.is_teacher:
        return
    if not teaches_section(caller.college_id, caller.user_id, section_id, subject_id):
        raise NotFoundError(f'Section {section_id} not found')


def ensure_student_access(caller: CallerContext, student_id, subject_id=None):
    """Teachers only read students placed in a section they teach."""
    if not caller.is_teacher:
        return
    student = get_student_for_college(caller.college_id, student_id)
    if student.section_id is None or not teaches_section(
        caller.college_id, caller.user_id, student.section_id, subject_id,
    ):
        raise NotFoundError(f'Student {student_id} not found')


@transaction.atomic
def mark_attendance(caller: CallerContext, data) -> dict:
    """Record attendance for one class session.

    `data` holds `section_id`, `subject_id`, `date`, optional `period` and
    `records`, a list of `{student_id, status, remarks}`. Returns the number
    of rows stored and the records that were skipped.
    """
    college_id = caller.college_id
    if college_id is None:
        raise NotFoundError('College not found')
    get_college(college_id)

    section = get_section_for_college(college_id, data.get('section_id'))
    subject = _get_subject_for_college(college_id, data.get('subject_id'))
    day = data.get('date')
    if not isinstance(day, date_type):
        raise ValidationError('A valid date is required')
    period = data.get('period')
    _validate_period(period)

    records = data.get('records') or []
    if not records:
        raise ValidationError('At least one attendance record is required')

    assignment = find_teacher_for_section_subject(college_id, section.pk, subject.pk)
    if assignment is None:
        raise NotFoundError(
            f'No teacher assigned to section "{section.name}" for subject {subject.code}'
        )

    if caller.is_teacher and assignment.teacher.user_id != caller.user_id:
        raise NotFoundError(
            f'You are not assigned to section "{section.name}" for subject {subject.code}'
        )

    if period is not None and period_already_marked(college_id, section, subject, day, period):
        raise ConflictError(f'Attendance for period {period} on {day.isoformat()} is already marked')

    known_students = set(
        Student.objects.filter(
            college_id=college_id, pk__in=[r.get('student_id') for r in records],
        ).values_list('pk', flat=True)
    )

    created = []
    skipped = []
    for record in records:
        student_id = record.get('student_id')
        status = record.get('status') or Attendance.Status.ABSENT
        if student_id not in known_students:
            skipped.append({'student_id': student_id, 'reason': 'Student not found in this college'})
            continue
        if status not in Attendance.Status.values:
            skipped.append({'student_id': student_id, 'reason': f'Invalid status "{status}"'})
            continue
        try:
            with transaction.atomic():
                row = Attendance.objects.create(
                    college_id=college_id,
                    student_id=student_id,
                    section=section,
                    subject=subject,
                    teacher_id=assignment.teacher_id,
                    date=day,
                    period=period,
                    status=status,
                    remarks=record.get('remarks') or '',
                    marked_by_id=caller.user_id,
                )
        except IntegrityError:
            skipped.append({'student_id': student_id, 'reason': 'Attendance already marked'})
            continue
        created.append(row)

    logger.info(
        'Marked attendance section=%s subject=%s date=%s period=%s inserted=%d skipped=%d',
        section.pk, subject.pk, day, period, len(created), len(skipped),
    )
    return {
        'count': len(created),
        'skipped': skipped,
        'attendance': created,
        'date': day,
        'period': period,
        'section': section.name,
        'subject': subject.code,
    }


def get_attendance_by_section_date(college_id, section_id, subject_id, day, page=1, limit=None) -> dict:
    section = get_section_for_college(college_id, section_id)
    qs = Attendance.objects.filter(college_id=college_id, section=section, date=day)
    if subject_id is not None:
        qs = qs.filter(subject_id=subject_id)

    rows = sorted(
        qs.select_related('student', 'subject', 'teacher'),
        key=lambda a: (roll_sort_key(a.student.roll_number), a.period or 0, a.pk),
    )
    page, limit, offset = page_bounds(page, limit, settings.ROSTER_ATTENDANCE_PAGE_SIZE)
    total = len(rows)
    rows = rows[offset:offset + limit]
    return {
        'attendance': rows,
        'section': section.name,
        'date': day,
        'count': len(rows),
        'pagination': pagination_meta(total, page, limit),
    }


def _apply_filters(qs, subject_id=None, start_date=None, end_date=None):
    if subject_id is not None:
        qs = qs.filter(subject_id=subject_id)
    if start_date is not None:
        qs = qs.filter(date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(date__lte=end_date)
    return qs


def get_attendance_by_student(college_id, student_id, filters=None, page=1, limit=None) -> dict:
    filters = filters or {}
    student = get_student_for_college(college_id, student_id)
    qs = _apply_filters(
        Attendance.objects.filter(college_id=college_id, student=student),
        subject_id=filters.get('subject_id'),
        start_date=filters.get('start_date'),
        end_date=filters.get('end_date'),
    )
    page, limit, offset = page_bounds(page, limit, settings.ROSTER_STUDENT_ATTENDANCE_PAGE_SIZE)
    total = qs.count()
    rows = list(
        qs.select_related('subject', 'section', 'teacher')
        .order_by('-date', '-period', '-pk')[offset:offset + limit]
    )
    return {'attendance': rows, 'pagination': pagination_meta(total, page, limit)}


def _get_attendance_for_college(college_id, attendance_id) -> Attendance:
    row = Attendance.objects.filter(pk=attendance_id, college_id=college_id).first()
    if row is None:
        raise NotFoundError(f'Attendance record {attendance_id} not found')
    return row


@transaction.atomic
def update_attendance(college_id, attendance_id, data) -> Attendance:
    """Correct a mark. Only status, remarks and period can change."""
    row = _get_attendance_for_college(college_id, attendance_id)
    changes = {k: v for k, v in data.items() if k in UPDATABLE_ATTENDANCE_FIELDS}
    if 'status' in changes:
        _validate_status(changes['status'])
    if 'period' in changes:
        _validate_period(changes['period'])
    if 'remarks' in changes:
        changes['remarks'] = changes['remarks'] or ''

    for key, value in changes.items():
        setattr(row, key, value)
    try:
        with transaction.atomic():
            row.save()
    except IntegrityError:
        raise ConflictError(f'Attendance for period {row.period} on {row.date} is already marked')
    return row


def delete_attendance(college_id, attendance_id) -> int:
    row = _get_attendance_for_college(college_id, attendance_id)
    pk = row.pk
    row.delete()
    logger.info('Deleted attendance record %s', pk)
    return pk


def get_student_attendance_stats(
    college_id, student_id, subject_id=None, start_date=None, end_date=None
) -> dict:
    """Per-status counts for a student, with every status present.

    `total` is the sum of the five counts and `percentage` is
    present / total * 100 rounded to 2 decimals, or 0 without any rows.
    """
    student = get_student_for_college(college_id, student_id)
    qs = _apply_filters(
        Attendance.objects.filter(college_id=college_id, student=student),
        subject_id=subject_id,
        start_date=start_date,
        end_date=end_date,
    )
    grouped = dict(qs.order_by().values('status').annotate(n=Count('id')).values_list('status', 'n'))

    stats = {key: grouped.get(status, 0) for status, key in STATUS_KEYS.items()}
    total = sum(stats.values())
    return {
        'total': total,
        **stats,
        'percentage': attendance_percentage(stats['present'], total),
    }


def get_section_attendance_stats(
    college_id, section_id, subject_id=None, start_date=None, end_date=None
) -> dict:
    section = get_section_for_college(college_id, section_id)
    subject: Optional[Subject] = None
    if subject_id is not None:
        subject = _get_subject_for_college(college_id, subject_id)

    qs = _apply_filters(
        Attendance.objects.filter(college_id=college_id, section=section),
        subject_id=subject_id,
        start_date=start_date,
        end_date=end_date,
    )
    grouped = (
        qs.order_by()
        .values('student_id', 'student__name', 'student__roll_number')
        .annotate(
            total=Count('id'),
            present=Count('id', filter=Q(status=Attendance.Status.PRESENT)),
            absent=Count('id', filter=Q(status=Attendance.Status.ABSENT)),
            late=Count('id', filter=Q(status=Attendance.Status.LATE)),
        )
    )
    students = [
        {
            'student_id': row['student_id'],
            'student_name': row['student__name'],
            'roll_number': row['student__roll_number'],
            'total': row['total'],
            'present': row['present'],
            'absent': row['absent'],
            'late': row['late'],
            'percentage': attendance_percentage(row['present'], row['total']),
        }
        for row in grouped
    ]
    students.sort(key=lambda s: roll_sort_key(s['roll_number']))
    return {
        'section': {'id': section.pk, 'name': section.name},
        'subject': {'id': subject.pk, 'code': subject.code, 'name': subject.name} if subject else None,
        'date_range': {'start': start_date, 'end': end_date},
        'students': students,
    }


def generate_attendance_sheet(college_id, section_id) -> dict:
    """Active roster of a section, every student pre-filled as Present."""
    section = get_section_for_college(college_id, section_id)
    roster = sorted(
        Student.objects.filter(college_id=college_id, section=section, is_active=True)
        .only('pk', 'roll_number', 'name', 'father_name'),
        key=lambda s: roll_sort_key(s.roll_number),
    )
    return {
        'section': section.name,
        'section_id': section.pk,
        'program_name': section.program.name,
        'year': section.year,
        'shift': section.shift,
        'total_students': len(roster),
        'students': [
            {
                'student_id': s.pk,
                'roll_number': s.roll_number,
                'name': s.name,
                'father_name': s.father_name,
                'status': Attendance.Status.PRESENT.value,
                'remarks': '',
            }
            for s in roster
        ],
    }


def get_student_attendance_summary(college_id, student_id) -> dict:
    """Per-subject attendance of a student across the subjects of their section.

    Subjects are those linked to the section plus those with an active
    teacher assignment there. `overall` adds the per-subject counts up.
    """
    student = get_student_for_college(college_id, student_id)
    overall = {key: 0 for key in STATUS_KEYS.values()}
    if student.section_id is None:
        return {
            'section': None,
            'total_subjects': 0,
            'subjects': [],
            'overall': {'total': 0, **overall, 'percentage': 0},
        }

    section = student.section
    assignments = (
        TeacherAssignment.objects.filter(college_id=college_id, section=section, is_active=True)
        .select_related('teacher')
        .order_by('-created_at', '-pk')
    )
    teacher_of = {}
    for a in assignments:
        # newest active assignment is the teacher of record
        teacher_of.setdefault(a.subject_id, a.teacher.name)

    subjects = Subject.objects.filter(
        Q(sections=section) | Q(pk__in=list(teacher_of)),
        college_id=college_id,
    ).distinct().order_by('code')

    rows = []
    for subject in subjects:
        stats = get_student_attendance_stats(college_id, student.pk, subject_id=subject.pk)
        for key in overall:
            overall[key] += stats[key]
        rows.append({
            'subject': {'id': subject.pk, 'code': subject.code, 'name': subject.name},
            'teacher': teacher_of.get(subject.pk),
            **stats,
        })

    total = sum(overall.values())
    return {
        'section': {'id': section.pk, 'name': section.name, 'year': section.year},
        'total_subjects': len(rows),
        'subjects': rows,
        'overall': {
            'total': total,
            **overall,
            'percentage': attendance_percentage(overall['present'], total),
        },
    }
