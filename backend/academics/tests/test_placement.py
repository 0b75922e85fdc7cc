from django.test import TestCase

from academics.exceptions import NotFoundError, ValidationError
from academics.models import Program, Section, Student
from academics.services import placement
from academics.tests.fixtures import CollegeFixtureMixin


def assert_strength_consistent(test):
    for section in Section.objects.all():
        live = Student.objects.filter(section=section, is_active=True).count()
        test.assertEqual(section.current_strength, live, f'section {section.name} drifted')


class AssignStudentTests(CollegeFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.a = self.make_section('A', 1, 50)
        self.b = self.make_section('B', 51, 100)
        self.student = self.make_student(45)

    def test_assign_then_reassign_moves_strength(self):
        result = placement.assign_student_to_section(self.college.pk, self.student.pk, self.a.pk)
        self.assertIsNone(result['old_section'])
        self.assertEqual(result['new_section'], self.a.pk)
        self.a.refresh_from_db()
        self.assertEqual(self.a.current_strength, 1)

        result = placement.assign_student_to_section(self.college.pk, self.student.pk, self.b.pk)
        self.assertEqual(result['old_section'], self.a.pk)
        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual(self.a.current_strength, 0)
        self.assertEqual(self.b.current_strength, 1)

    def test_reassigning_to_same_section_does_not_double_count(self):
        placement.assign_student_to_section(self.college.pk, self.student.pk, self.a.pk)
        placement.assign_student_to_section(self.college.pk, self.student.pk, self.a.pk)
        self.a.refresh_from_db()
        self.assertEqual(self.a.current_strength, 1)

    def test_cross_program_assignment_is_rejected(self):
        other = Program.objects.create(college=self.college, name='Other', code='OTH')
        foreign_section = self.make_section('X', program=other)
        with self.assertRaises(ValidationError):
            placement.assign_student_to_section(self.college.pk, self.student.pk, foreign_section.pk)
        self.student.refresh_from_db()
        self.assertIsNone(self.student.section_id)

    def test_inactive_section_is_rejected(self):
        self.a.is_active = False
        self.a.save()
        with self.assertRaises(ValidationError):
            placement.assign_student_to_section(self.college.pk, self.student.pk, self.a.pk)

    def test_other_college_student_is_not_found(self):
        other_college, _ = self.make_college('GC02')
        other_program = Program.objects.create(college=other_college, name='CS', code='BSCS')
        outsider = self.make_student(7, program=other_program, college=other_college)
        with self.assertRaises(NotFoundError):
            placement.assign_student_to_section(self.college.pk, outsider.pk, self.a.pk)


class BulkAssignTests(CollegeFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.a = self.make_section('A', 1, 50)
        self.b = self.make_section('B', 51, 100)
        self.students = [self.make_student(roll) for roll in (1, 2, 3, 4)]

    def test_one_bad_item_does_not_abort_the_batch(self):
        items = [
            {'student_id': self.students[0].pk, 'section_id': self.a.pk},
            {'student_id': self.students[1].pk, 'section_id': self.b.pk},
            {'student_id': 999999, 'section_id': self.a.pk},
            {'student_id': self.students[2].pk, 'section_id': self.a.pk},
            {'student_id': self.students[3].pk, 'section_id': 888888},
        ]
        result = placement.bulk_assign_students_to_sections(self.college.pk, items)

        self.assertEqual(result['summary'], {'total': 5, 'successful': 3, 'failed': 2})
        self.assertEqual(
            len(result['results']['successful']) + len(result['results']['failed']),
            len(items),
        )
        failed_students = [f['student_id'] for f in result['results']['failed']]
        self.assertEqual(failed_students, [999999, self.students[3].pk])
        self.assertIn('not found', result['results']['failed'][0]['error'])

        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual(self.a.current_strength, 2)
        self.assertEqual(self.b.current_strength, 1)
        assert_strength_consistent(self)

    def test_all_items_failing_still_returns_tally(self):
        result = placement.bulk_assign_students_to_sections(
            self.college.pk, [{'student_id': 123456, 'section_id': self.a.pk}],
        )
        self.assertEqual(result['summary'], {'total': 1, 'successful': 0, 'failed': 1})

    def test_strength_consistent_after_mixed_moves(self):
        items = [{'student_id': s.pk, 'section_id': self.a.pk} for s in self.students]
        placement.bulk_assign_students_to_sections(self.college.pk, items)
        items = [{'student_id': s.pk, 'section_id': self.b.pk} for s in self.students[:3]]
        placement.bulk_assign_students_to_sections(self.college.pk, items)
        placement.assign_student_to_section(self.college.pk, self.students[0].pk, self.a.pk)
        assert_strength_consistent(self)
        self.a.refresh_from_db()
        self.assertEqual(self.a.current_strength, 2)


class MoveStudentsTests(CollegeFixtureMixin, TestCase):
    def test_move_reports_each_failure(self):
        a = self.make_section('A', 1, 50)
        b = self.make_section('B', 51, 100)
        s1 = self.make_student(1, section=a)
        s2 = self.make_student(2, section=a)
        result = placement.move_students_to_section(self.college.pk, [s1.pk, s2.pk, 424242], b.pk)
        self.assertEqual(result['updated_count'], 2)
        self.assertEqual(result['total_requested'], 3)
        self.assertEqual(result['errors'][0]['student_id'], 424242)
        assert_strength_consistent(self)

    def test_missing_target_fails_whole_call(self):
        s1 = self.make_student(1)
        with self.assertRaises(NotFoundError):
            placement.move_students_to_section(self.college.pk, [s1.pk], 31337)
