from datetime import date

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q

from academics.utils import parse_roll_number


class Subject(models.Model):
    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='subjects')
    name = models.CharField(max_length=128)
    code = models.CharField(max_length=32)
    is_active = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['college', 'code'], name='unique_subject_code_per_college'),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"


class Program(models.Model):
    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='programs')
    name = models.CharField(max_length=128)
    code = models.CharField(max_length=32)
    # Duration in years
    duration = models.PositiveSmallIntegerField(default=4)
    subjects = models.ManyToManyField(Subject, blank=True, related_name='programs')
    is_active = models.BooleanField(default=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['college', 'code'], name='unique_program_code_per_college'),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"


class Section(models.Model):
    """A class section of a program year, optionally owning a roll number range.

    Active sections of the same (college, program, year) never have
    overlapping ranges. `current_strength` is a stored copy of the number of
    active students placed in the section; it is reconciled from the live
    count whenever a placement changes (see academics.services.sections).
    """

    class Year(models.TextChoices):
        FIRST = '1st Year', '1st Year'
        SECOND = '2nd Year', '2nd Year'
        THIRD = '3rd Year', '3rd Year'
        FOURTH = '4th Year', '4th Year'

    class Shift(models.TextChoices):
        FIRST = '1st Shift', '1st Shift'
        SECOND = '2nd Shift', '2nd Shift'
        MORNING = 'Morning', 'Morning'
        EVENING = 'Evening', 'Evening'

    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='sections')
    program = models.ForeignKey(Program, on_delete=models.PROTECT, related_name='sections')
    name = models.CharField(max_length=100)
    year = models.CharField(max_length=16, choices=Year.choices)
    shift = models.CharField(max_length=16, choices=Shift.choices, default=Shift.FIRST)
    roll_start = models.PositiveIntegerField(null=True, blank=True)
    roll_end = models.PositiveIntegerField(null=True, blank=True)
    subjects = models.ManyToManyField(Subject, blank=True, related_name='sections')
    capacity = models.PositiveIntegerField(default=50)
    current_strength = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['college', 'program', 'year', 'shift'], name='section_cohort_idx'),
            models.Index(fields=['college', 'is_active'], name='section_active_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.year}, {self.shift})"

    @property
    def has_roll_range(self) -> bool:
        return self.roll_start is not None and self.roll_end is not None

    def contains_roll(self, roll: int) -> bool:
        return self.has_roll_range and self.roll_start <= roll <= self.roll_end


class Teacher(models.Model):
    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='teachers')
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='teacher_profile',
    )
    name = models.CharField(max_length=128)
    designation = models.CharField(max_length=128, blank=True)
    cnic = models.CharField(max_length=32, unique=True)
    personal_number = models.CharField(max_length=32, unique=True)
    contact_email = models.EmailField(unique=True)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} ({self.personal_number})"


class Student(models.Model):
    class Status(models.TextChoices):
        ACTIVE = 'Active', 'Active'
        INACTIVE = 'Inactive', 'Inactive'
        GRADUATED = 'Graduated', 'Graduated'
        DROPPED = 'Dropped', 'Dropped'

    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='students')
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='student_profile',
    )
    roll_number = models.CharField(max_length=32)
    name = models.CharField(max_length=128)
    father_name = models.CharField(max_length=128)
    contact_number = models.CharField(max_length=32, blank=True)
    program = models.ForeignKey(Program, on_delete=models.PROTECT, related_name='students')
    section = models.ForeignKey(Section, on_delete=models.SET_NULL, null=True, blank=True, related_name='students')
    enrollment_date = models.DateField(default=date.today)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            # roll numbers may be reused once the previous holder is soft-deleted
            models.UniqueConstraint(
                fields=['college', 'roll_number'],
                condition=Q(is_active=True),
                name='unique_active_roll_number_per_college',
            ),
        ]
        indexes = [
            models.Index(fields=['college', 'section', 'is_active'], name='student_section_idx'),
            models.Index(fields=['college', 'program', 'is_active'], name='student_program_idx'),
        ]

    def __str__(self):
        return f"{self.roll_number} - {self.name}"

    @property
    def numeric_roll_number(self):
        """Roll number as an int, or None when it is not purely numeric."""
        return parse_roll_number(self.roll_number)


class TeacherAssignment(models.Model):
    """Teacher-of-record for a (section, subject) in an academic term."""

    class Semester(models.TextChoices):
        FALL = 'Fall', 'Fall'
        SPRING = 'Spring', 'Spring'
        SUMMER = 'Summer', 'Summer'

    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='teacher_assignments')
    teacher = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name='assignments')
    subject = models.ForeignKey(Subject, on_delete=models.CASCADE, related_name='teacher_assignments')
    section = models.ForeignKey(Section, on_delete=models.CASCADE, related_name='teacher_assignments')
    program = models.ForeignKey(Program, on_delete=models.CASCADE, related_name='teacher_assignments')
    academic_year = models.CharField(max_length=16, help_text='e.g. 2025-2026')
    semester = models.CharField(max_length=8, choices=Semester.choices)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=['teacher', 'subject', 'section', 'academic_year', 'semester'],
                name='unique_teacher_subject_section_term',
            ),
        ]
        indexes = [
            models.Index(fields=['college', 'section', 'subject'], name='assignment_lookup_idx'),
            models.Index(fields=['college', 'teacher', 'is_active'], name='assignment_teacher_idx'),
        ]

    def __str__(self):
        return f"{self.teacher} -> {self.subject.code} ({self.section} | {self.academic_year} {self.semester})"


class Attendance(models.Model):
    """One attendance mark for a student in a subject class on a date.

    When `period` is set the (student, section, subject, date, period) tuple
    is unique; rows without a period are not deduplicated.
    """

    class Status(models.TextChoices):
        PRESENT = 'Present', 'Present'
        ABSENT = 'Absent', 'Absent'
        LATE = 'Late', 'Late'
        LEAVE = 'Leave', 'Leave'
        EXCUSED = 'Excused', 'Excused'

    college = models.ForeignKey('college.College', on_delete=models.CASCADE, related_name='attendance_records')
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='attendance_records')
    section = models.ForeignKey(Section, on_delete=models.PROTECT, related_name='attendance_records')
    subject = models.ForeignKey(Subject, on_delete=models.PROTECT, related_name='attendance_records')
    teacher = models.ForeignKey(Teacher, on_delete=models.PROTECT, related_name='attendance_records')
    date = models.DateField()
    period = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(10)],
    )
    status = models.CharField(max_length=8, choices=Status.choices, default=Status.ABSENT)
    remarks = models.CharField(max_length=500, blank=True, default='')
    marked_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name='+')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Attendance'
        verbose_name_plural = 'Attendance'
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'section', 'subject', 'date', 'period'],
                condition=Q(period__isnull=False),
                name='unique_attendance_per_period',
            ),
        ]
        indexes = [
            models.Index(fields=['college', 'section', 'subject', 'date'], name='attendance_class_day_idx'),
            models.Index(fields=['college', 'student', 'date'], name='attendance_student_idx'),
        ]

    def __str__(self):
        period = f" P{self.period}" if self.period else ''
        return f"{self.student.roll_number} -> {self.status} @ {self.date}{period}"
