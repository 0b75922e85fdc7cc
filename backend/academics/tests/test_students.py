from django.test import TestCase

from academics.exceptions import ConflictError, ValidationError
from academics.models import Program, Student
from academics.services import students
from academics.tests.fixtures import CollegeFixtureMixin


class StudentRegistryTests(CollegeFixtureMixin, TestCase):
    def setUp(self):
        super().setUp()
        self.a = self.make_section('A', 1, 50)
        self.b = self.make_section('B', 51, 100)

    def _create(self, roll, **extra):
        data = {'roll_number': str(roll), 'name': f'Student {roll}', 'father_name': 'F', 'program_id': self.program.pk}
        data.update(extra)
        return students.create_student(self.college.pk, data)

    def test_create_in_section_counts_strength(self):
        self._create(10, section_id=self.a.pk)
        self.a.refresh_from_db()
        self.assertEqual(self.a.current_strength, 1)

    def test_duplicate_active_roll_number_conflicts(self):
        self._create(10)
        with self.assertRaises(ConflictError):
            self._create(10)
        self.assertEqual(Student.objects.filter(roll_number='10').count(), 1)

    def test_roll_number_reusable_after_soft_delete(self):
        first = self._create(10, section_id=self.a.pk)
        students.delete_student(self.college.pk, first.pk)
        self.a.refresh_from_db()
        self.assertEqual(self.a.current_strength, 0)
        second = self._create(10)
        self.assertNotEqual(first.pk, second.pk)

    def test_same_roll_number_in_other_college(self):
        self._create(10)
        other_college, _ = self.make_college('GC02')
        program = Program.objects.create(college=other_college, name='CS', code='BSCS')
        students.create_student(other_college.pk, {
            'roll_number': '10', 'name': 'Other', 'father_name': 'F', 'program_id': program.pk,
        })

    def test_section_of_other_program_is_rejected(self):
        other = Program.objects.create(college=self.college, name='Other', code='OTH')
        foreign_section = self.make_section('X', program=other)
        with self.assertRaises(ValidationError):
            self._create(10, section_id=foreign_section.pk)

    def test_update_section_recounts_both(self):
        student = self._create(10, section_id=self.a.pk)
        students.update_student(self.college.pk, student.pk, {'section_id': self.b.pk, 'college_id': 77})
        self.a.refresh_from_db()
        self.b.refresh_from_db()
        self.assertEqual((self.a.current_strength, self.b.current_strength), (0, 1))
        student.refresh_from_db()
        self.assertEqual(student.college_id, self.college.pk)

    def test_update_roll_number_to_taken_conflicts(self):
        self._create(10)
        other = self._create(11)
        with self.assertRaises(ConflictError):
            students.update_student(self.college.pk, other.pk, {'roll_number': '10'})
