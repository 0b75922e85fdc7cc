from datetime import date
from unittest import mock

from django.test import TestCase

from accounts.context import CallerContext
from academics.exceptions import ConflictError, NotFoundError, ValidationError
from academics.models import Attendance, Program
from academics.services import attendance
from academics.tests.fixtures import CollegeFixtureMixin


class AttendanceFixtureMixin(CollegeFixtureMixin):
    def setUp(self):
        super().setUp()
        self.section = self.make_section('B', 51, 100)
        self.assign_teacher(self.section, self.math)
        self.s1 = self.make_student(55, section=self.section)
        self.s2 = self.make_student(52, section=self.section)
        self.s10 = self.make_student(100, section=self.section)
        self.caller = CallerContext(user_id=self.teacher_user.pk, role='Teacher', college_id=self.college.pk)
        self.day = date(2025, 1, 10)

    def mark(self, records, period=1, subject=None, day=None):
        return attendance.mark_attendance(self.caller, {
            'section_id': self.section.pk,
            'subject_id': (subject or self.math).pk,
            'date': day or self.day,
            'period': period,
            'records': records,
        })


class MarkAttendanceTests(AttendanceFixtureMixin, TestCase):
    def test_mark_stamps_teacher_and_caller(self):
        result = self.mark([{'student_id': self.s1.pk, 'status': 'Present'}])
        self.assertEqual(result['count'], 1)
        self.assertEqual(result['skipped'], [])
        row = Attendance.objects.get()
        self.assertEqual(row.teacher_id, self.teacher.pk)
        self.assertEqual(row.marked_by_id, self.teacher_user.pk)
        self.assertEqual(row.college_id, self.college.pk)
        self.assertEqual(row.remarks, '')

    def test_unassigned_teacher_cannot_mark(self):
        _, other_user = self.make_teacher('bilal', 2)
        self.caller = CallerContext(user_id=other_user.pk, role='Teacher', college_id=self.college.pk)
        with self.assertRaises(NotFoundError):
            self.mark([{'student_id': self.s1.pk, 'status': 'Present'}])
        self.assertFalse(Attendance.objects.exists())

    def test_college_admin_marks_for_teacher_of_record(self):
        self.caller = CallerContext(user_id=self.admin_user.pk, role='CollegeAdmin', college_id=self.college.pk)
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}])
        row = Attendance.objects.get()
        self.assertEqual((row.teacher_id, row.marked_by_id), (self.teacher.pk, self.admin_user.pk))

    def test_status_defaults_to_absent(self):
        self.mark([{'student_id': self.s1.pk}])
        self.assertEqual(Attendance.objects.get().status, Attendance.Status.ABSENT)

    def test_same_period_twice_is_rejected_before_insert(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}])
        with self.assertRaises(ConflictError):
            self.mark([{'student_id': self.s1.pk, 'status': 'Present'}])
        self.assertEqual(Attendance.objects.filter(student=self.s1, period=1).count(), 1)

    def test_duplicate_in_payload_is_skipped_not_fatal(self):
        result = self.mark([
            {'student_id': self.s1.pk, 'status': 'Present'},
            {'student_id': self.s1.pk, 'status': 'Absent'},
            {'student_id': self.s2.pk, 'status': 'Late'},
        ], period=2)
        self.assertEqual(result['count'], 2)
        self.assertEqual(result['skipped'], [{'student_id': self.s1.pk, 'reason': 'Attendance already marked'}])
        self.assertEqual(Attendance.objects.filter(student=self.s1, period=2).count(), 1)
        self.assertTrue(Attendance.objects.filter(student=self.s2, period=2).exists())

    def test_losing_race_row_is_skipped_and_siblings_inserted(self):
        # a concurrent request stored s1 after this call passed its pre-check
        Attendance.objects.create(
            college=self.college, student=self.s1, section=self.section, subject=self.math,
            teacher=self.teacher, date=self.day, period=3, marked_by=self.teacher_user,
        )
        with mock.patch.object(attendance, 'period_already_marked', return_value=False):
            result = self.mark([
                {'student_id': self.s1.pk, 'status': 'Present'},
                {'student_id': self.s2.pk, 'status': 'Present'},
            ], period=3)
        self.assertEqual(result['count'], 1)
        self.assertEqual(result['skipped'][0]['student_id'], self.s1.pk)
        self.assertEqual(Attendance.objects.filter(student=self.s1, period=3).count(), 1)
        self.assertTrue(Attendance.objects.filter(student=self.s2, period=3).exists())

    def test_different_periods_same_day_are_allowed(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=1)
        self.mark([{'student_id': self.s1.pk, 'status': 'Absent'}], period=2)
        self.assertEqual(Attendance.objects.filter(student=self.s1, date=self.day).count(), 2)

    def test_rows_without_period_are_not_deduplicated(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=None)
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=None)
        self.assertEqual(Attendance.objects.filter(student=self.s1, period__isnull=True).count(), 2)

    def test_unassigned_subject_fails_with_not_found(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], subject=self.physics)
        self.assertIn('No teacher assigned', str(ctx.exception))

    def test_student_of_other_college_is_skipped(self):
        other_college, _ = self.make_college('GC02')
        program = Program.objects.create(college=other_college, name='CS', code='BSCS')
        outsider = self.make_student(55, program=program, college=other_college)
        result = self.mark([
            {'student_id': outsider.pk, 'status': 'Present'},
            {'student_id': self.s2.pk, 'status': 'Present'},
        ])
        self.assertEqual(result['count'], 1)
        self.assertEqual(result['skipped'][0]['student_id'], outsider.pk)
        self.assertFalse(Attendance.objects.filter(student=outsider).exists())

    def test_section_of_other_college_is_not_found(self):
        other_college, _ = self.make_college('GC02')
        caller = CallerContext(user_id=self.teacher_user.pk, role='Teacher', college_id=other_college.pk)
        with self.assertRaises(NotFoundError):
            attendance.mark_attendance(caller, {
                'section_id': self.section.pk, 'subject_id': self.math.pk,
                'date': self.day, 'period': 1, 'records': [{'student_id': self.s1.pk}],
            })

    def test_empty_records_are_invalid(self):
        with self.assertRaises(ValidationError):
            self.mark([])


class AttendanceQueryTests(AttendanceFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.mark([
            {'student_id': self.s10.pk, 'status': 'Present'},
            {'student_id': self.s1.pk, 'status': 'Absent'},
            {'student_id': self.s2.pk, 'status': 'Present'},
        ])

    def test_section_date_rows_sorted_by_roll_number(self):
        result = attendance.get_attendance_by_section_date(self.college.pk, self.section.pk, self.math.pk, self.day)
        self.assertEqual([a.student.roll_number for a in result['attendance']], ['52', '55', '100'])
        self.assertEqual(result['count'], 3)
        self.assertEqual(result['section'], 'B')

    def test_section_date_pagination_reports_day_total(self):
        result = attendance.get_attendance_by_section_date(
            self.college.pk, self.section.pk, self.math.pk, self.day, page=2, limit=2,
        )
        self.assertEqual([a.student.roll_number for a in result['attendance']], ['100'])
        self.assertEqual(result['count'], 1)
        self.assertEqual(result['pagination'], {'total': 3, 'page': 2, 'limit': 2, 'pages': 2})

    def test_student_history_is_paginated_newest_first(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Late'}], day=date(2025, 1, 11))
        result = attendance.get_attendance_by_student(self.college.pk, self.s1.pk, page=1, limit=1)
        self.assertEqual(result['pagination']['total'], 2)
        self.assertEqual(result['pagination']['pages'], 2)
        self.assertEqual(result['attendance'][0].date, date(2025, 1, 11))

    def test_student_history_date_filter(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Late'}], day=date(2025, 2, 1))
        result = attendance.get_attendance_by_student(
            self.college.pk, self.s1.pk, filters={'start_date': date(2025, 1, 15)},
        )
        self.assertEqual(len(result['attendance']), 1)

    def test_update_strips_identity_fields(self):
        row = Attendance.objects.get(student=self.s1)
        attendance.update_attendance(self.college.pk, row.pk, {
            'status': 'Leave',
            'remarks': 'medical',
            'student_id': self.s2.pk,
            'date': date(2030, 1, 1),
            'college_id': 42,
            'section_id': 42,
            'subject_id': 42,
        })
        row.refresh_from_db()
        self.assertEqual(row.status, 'Leave')
        self.assertEqual(row.remarks, 'medical')
        self.assertEqual(row.student_id, self.s1.pk)
        self.assertEqual(row.date, self.day)
        self.assertEqual(row.subject_id, self.math.pk)

    def test_update_into_taken_period_conflicts(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=2)
        row = Attendance.objects.get(student=self.s1, period=2)
        with self.assertRaises(ConflictError):
            attendance.update_attendance(self.college.pk, row.pk, {'period': 1})

    def test_update_and_delete_are_college_scoped(self):
        other_college, _ = self.make_college('GC02')
        row = Attendance.objects.get(student=self.s1)
        with self.assertRaises(NotFoundError):
            attendance.update_attendance(other_college.pk, row.pk, {'status': 'Present'})
        with self.assertRaises(NotFoundError):
            attendance.delete_attendance(other_college.pk, row.pk)
        attendance.delete_attendance(self.college.pk, row.pk)
        self.assertFalse(Attendance.objects.filter(pk=row.pk).exists())


class AttendanceStatsTests(AttendanceFixtureMixin, TestCase):
    def test_student_stats_zero_filled(self):
        stats = attendance.get_student_attendance_stats(self.college.pk, self.s1.pk)
        self.assertEqual(stats, {
            'total': 0, 'present': 0, 'absent': 0, 'late': 0, 'leave': 0, 'excused': 0, 'percentage': 0,
        })

    def test_student_stats_percentage(self):
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=1)
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=2)
        self.mark([{'student_id': self.s1.pk, 'status': 'Late'}], period=3)
        stats = attendance.get_student_attendance_stats(self.college.pk, self.s1.pk)
        self.assertEqual(stats['total'], 3)
        self.assertEqual(stats['present'], 2)
        self.assertEqual(stats['late'], 1)
        self.assertEqual(stats['excused'], 0)
        self.assertEqual(stats['percentage'], 66.67)
        self.assertEqual(
            stats['total'],
            sum(stats[k] for k in ('present', 'absent', 'late', 'leave', 'excused')),
        )

    def test_student_stats_subject_filter(self):
        self.assign_teacher(self.section, self.physics)
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=1)
        self.mark([{'student_id': self.s1.pk, 'status': 'Absent'}], period=2, subject=self.physics)
        stats = attendance.get_student_attendance_stats(self.college.pk, self.s1.pk, subject_id=self.physics.pk)
        self.assertEqual(stats['total'], 1)
        self.assertEqual(stats['percentage'], 0)

    def test_section_stats_per_student_sorted(self):
        self.mark([
            {'student_id': self.s10.pk, 'status': 'Present'},
            {'student_id': self.s1.pk, 'status': 'Absent'},
        ], period=1)
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=2)
        stats = attendance.get_section_attendance_stats(
            self.college.pk, self.section.pk, self.math.pk, date(2025, 1, 1), date(2025, 1, 31),
        )
        self.assertEqual([s['roll_number'] for s in stats['students']], ['55', '100'])
        first = stats['students'][0]
        self.assertEqual((first['total'], first['present'], first['absent'], first['percentage']), (2, 1, 1, 50.0))
        self.assertEqual(stats['subject']['code'], 'MATH-101')

    def test_sheet_defaults_everyone_to_present(self):
        dropped = self.make_student(60, section=self.section, is_active=False)
        sheet = attendance.generate_attendance_sheet(self.college.pk, self.section.pk)
        self.assertEqual(sheet['total_students'], 3)
        self.assertEqual([s['roll_number'] for s in sheet['students']], ['52', '55', '100'])
        self.assertTrue(all(s['status'] == 'Present' and s['remarks'] == '' for s in sheet['students']))
        self.assertNotIn(dropped.pk, [s['student_id'] for s in sheet['students']])
        self.assertEqual(sheet['program_name'], self.program.name)

    def test_sheet_orders_non_decimal_digits_after_numbers(self):
        self.make_student('²', section=self.section)
        sheet = attendance.generate_attendance_sheet(self.college.pk, self.section.pk)
        self.assertEqual([s['roll_number'] for s in sheet['students']], ['52', '55', '100', '²'])


class TeacherReadAccessTests(AttendanceFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        _, other_user = self.make_teacher('bilal', 2)
        self.outsider = CallerContext(user_id=other_user.pk, role='Teacher', college_id=self.college.pk)

    def test_assigned_teacher_reads_section_and_students(self):
        attendance.ensure_section_access(self.caller, self.section.pk)
        attendance.ensure_section_access(self.caller, self.section.pk, self.math.pk)
        attendance.ensure_student_access(self.caller, self.s1.pk)

    def test_teacher_is_limited_to_assigned_subject(self):
        with self.assertRaises(NotFoundError):
            attendance.ensure_section_access(self.caller, self.section.pk, self.physics.pk)

    def test_unassigned_teacher_sees_nothing(self):
        with self.assertRaises(NotFoundError):
            attendance.ensure_section_access(self.outsider, self.section.pk)
        with self.assertRaises(NotFoundError):
            attendance.ensure_student_access(self.outsider, self.s1.pk)

    def test_unplaced_student_is_hidden_from_teachers(self):
        loose = self.make_student(7)
        with self.assertRaises(NotFoundError):
            attendance.ensure_student_access(self.caller, loose.pk)

    def test_admin_is_not_restricted(self):
        admin = CallerContext(user_id=self.admin_user.pk, role='CollegeAdmin', college_id=self.college.pk)
        attendance.ensure_section_access(admin, self.section.pk, self.physics.pk)


class StudentSummaryTests(AttendanceFixtureMixin, TestCase):
    def test_summary_per_subject_with_overall(self):
        self.section.subjects.set([self.physics])
        self.mark([{'student_id': self.s1.pk, 'status': 'Present'}], period=1)
        self.mark([{'student_id': self.s1.pk, 'status': 'Absent'}], period=2)
        summary = attendance.get_student_attendance_summary(self.college.pk, self.s1.pk)
        self.assertEqual(summary['section']['name'], 'B')
        self.assertEqual(summary['total_subjects'], 2)
        by_code = {row['subject']['code']: row for row in summary['subjects']}
        self.assertEqual(by_code['MATH-101']['teacher'], self.teacher.name)
        self.assertEqual((by_code['MATH-101']['total'], by_code['MATH-101']['percentage']), (2, 50.0))
        self.assertIsNone(by_code['PHY-101']['teacher'])
        self.assertEqual(by_code['PHY-101']['total'], 0)
        self.assertEqual(summary['overall']['total'], 2)
        self.assertEqual(summary['overall']['present'], 1)
        self.assertEqual(summary['overall']['percentage'], 50.0)

    def test_unplaced_student_has_empty_summary(self):
        loose = self.make_student(7)
        summary = attendance.get_student_attendance_summary(self.college.pk, loose.pk)
        self.assertIsNone(summary['section'])
        self.assertEqual(summary['subjects'], [])
        self.assertEqual(summary['overall']['percentage'], 0)
