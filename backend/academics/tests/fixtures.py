"""Shared setUp helpers for the academics tests."""
from django.contrib.auth import get_user_model

from academics.models import Program, Section, Student, Subject, Teacher, TeacherAssignment
from college.models import College, Region


class CollegeFixtureMixin:
    """Builds a college with one program, two subjects and an assigned teacher."""

    def make_college(self, code='GC01'):
        User = get_user_model()
        region = Region.objects.create(name=f'Region {code}', code=f'R-{code}')
        admin_user = User.objects.create_user(username=f'admin-{code}', role=User.Role.COLLEGE_ADMIN)
        college = College.objects.create(code=code, name=f'College {code}', region=region, admin_user=admin_user)
        return college, admin_user

    def setUp(self):
        User = get_user_model()
        self.college, self.admin_user = self.make_college()
        self.program = Program.objects.create(college=self.college, name='Computer Science', code='BSCS')
        self.math = Subject.objects.create(college=self.college, name='Mathematics', code='MATH-101')
        self.physics = Subject.objects.create(college=self.college, name='Physics', code='PHY-101')
        self.teacher_user = User.objects.create_user(username='teacher1', role=User.Role.TEACHER)
        self.teacher = Teacher.objects.create(
            college=self.college,
            user=self.teacher_user,
            name='Ayesha Khan',
            designation='Lecturer',
            cnic='35202-0000000-1',
            personal_number='P-001',
            contact_email='ayesha@example.com',
        )

    def make_teacher(self, username, number):
        User = get_user_model()
        user = User.objects.create_user(username=username, role=User.Role.TEACHER)
        teacher = Teacher.objects.create(
            college=self.college,
            user=user,
            name=username.title(),
            cnic=f'35202-0000000-{number}',
            personal_number=f'P-{number:03d}',
            contact_email=f'{username}@example.com',
        )
        return teacher, user

    def make_section(self, name, start=None, end=None, year=Section.Year.FIRST, program=None, **extra):
        return Section.objects.create(
            college=self.college,
            program=program or self.program,
            name=name,
            year=year,
            roll_start=start,
            roll_end=end,
            **extra,
        )

    def make_student(self, roll_number, section=None, program=None, college=None, **extra):
        return Student.objects.create(
            college=college or self.college,
            roll_number=str(roll_number),
            name=extra.pop('name', f'Student {roll_number}'),
            father_name=extra.pop('father_name', 'Father'),
            program=program or self.program,
            section=section,
            **extra,
        )

    def assign_teacher(self, section, subject, teacher=None, academic_year='2024-2025', semester='Fall'):
        return TeacherAssignment.objects.create(
            college=self.college,
            teacher=teacher or self.teacher,
            subject=subject,
            section=section,
            program=section.program,
            academic_year=academic_year,
            semester=semester,
        )
