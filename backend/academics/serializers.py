from rest_framework import serializers

from academics.models import Attendance, Section, Student, TeacherAssignment


class SectionSerializer(serializers.ModelSerializer):
    program_name = serializers.CharField(source='program.name', read_only=True)
    roll_number_range = serializers.SerializerMethodField()
    live_strength = serializers.SerializerMethodField()

    class Meta:
        model = Section
        fields = (
            'id', 'name', 'program', 'program_name', 'year', 'shift',
            'roll_start', 'roll_end', 'roll_number_range', 'subjects',
            'capacity', 'current_strength', 'live_strength', 'is_active',
            'created_at', 'updated_at',
        )
        read_only_fields = fields

    def get_roll_number_range(self, obj):
        if not obj.has_roll_range:
            return None
        return {'start': obj.roll_start, 'end': obj.roll_end}

    def get_live_strength(self, obj):
        # only list/detail queries annotate it
        return getattr(obj, 'live_strength', None)


class SectionWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    program_id = serializers.IntegerField()
    year = serializers.ChoiceField(choices=Section.Year.choices)
    shift = serializers.ChoiceField(choices=Section.Shift.choices, required=False)
    roll_start = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    roll_end = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    capacity = serializers.IntegerField(min_value=1, required=False)
    subject_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    is_active = serializers.BooleanField(required=False)


class SplitRangeSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    start = serializers.IntegerField(min_value=0)
    end = serializers.IntegerField(min_value=0)
    shift = serializers.ChoiceField(choices=Section.Shift.choices, required=False)
    capacity = serializers.IntegerField(min_value=1, required=False)
    subject_ids = serializers.ListField(child=serializers.IntegerField(), required=False)


class SplitSectionsSerializer(serializers.Serializer):
    program_id = serializers.IntegerField()
    year = serializers.ChoiceField(choices=Section.Year.choices)
    ranges = SplitRangeSerializer(many=True, allow_empty=False)


class AssignStudentSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    section_id = serializers.IntegerField()


class BulkAssignSerializer(serializers.Serializer):
    assignments = AssignStudentSerializer(many=True, allow_empty=False)


class MoveStudentsSerializer(serializers.Serializer):
    student_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    section_id = serializers.IntegerField()


class StudentSerializer(serializers.ModelSerializer):
    program_name = serializers.CharField(source='program.name', read_only=True)
    section_name = serializers.CharField(source='section.name', read_only=True, default=None)

    class Meta:
        model = Student
        fields = (
            'id', 'roll_number', 'name', 'father_name', 'contact_number',
            'program', 'program_name', 'section', 'section_name',
            'enrollment_date', 'status', 'is_active', 'created_at', 'updated_at',
        )
        read_only_fields = fields


class StudentWriteSerializer(serializers.Serializer):
    roll_number = serializers.CharField(max_length=32)
    name = serializers.CharField(max_length=128)
    father_name = serializers.CharField(max_length=128)
    contact_number = serializers.CharField(max_length=32, required=False, allow_blank=True)
    program_id = serializers.IntegerField()
    section_id = serializers.IntegerField(required=False, allow_null=True)
    enrollment_date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=Student.Status.choices, required=False)


class TeacherAssignmentSerializer(serializers.ModelSerializer):
    teacher_name = serializers.CharField(source='teacher.name', read_only=True)
    subject_code = serializers.CharField(source='subject.code', read_only=True)
    section_name = serializers.CharField(source='section.name', read_only=True)

    class Meta:
        model = TeacherAssignment
        fields = (
            'id', 'teacher', 'teacher_name', 'subject', 'subject_code',
            'section', 'section_name', 'program', 'academic_year', 'semester',
            'is_active', 'created_at', 'updated_at',
        )
        read_only_fields = fields


class TeacherAssignmentWriteSerializer(serializers.Serializer):
    teacher_id = serializers.IntegerField()
    subject_id = serializers.IntegerField()
    section_id = serializers.IntegerField()
    academic_year = serializers.CharField(max_length=16)
    semester = serializers.ChoiceField(choices=TeacherAssignment.Semester.choices)
    is_active = serializers.BooleanField(required=False)


class AttendanceSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.name', read_only=True)
    roll_number = serializers.CharField(source='student.roll_number', read_only=True)
    subject_code = serializers.CharField(source='subject.code', read_only=True)

    class Meta:
        model = Attendance
        fields = (
            'id', 'student', 'student_name', 'roll_number', 'section', 'subject',
            'subject_code', 'teacher', 'date', 'period', 'status', 'remarks',
            'marked_by', 'created_at', 'updated_at',
        )
        read_only_fields = fields


class AttendanceRecordSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    status = serializers.ChoiceField(choices=Attendance.Status.choices, default=Attendance.Status.ABSENT)
    remarks = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class MarkAttendanceSerializer(serializers.Serializer):
    section_id = serializers.IntegerField()
    subject_id = serializers.IntegerField()
    date = serializers.DateField()
    period = serializers.IntegerField(min_value=1, max_value=10, required=False, allow_null=True)
    records = AttendanceRecordSerializer(many=True, allow_empty=False)


class AttendanceUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Attendance.Status.choices, required=False)
    remarks = serializers.CharField(max_length=500, required=False, allow_blank=True)
    period = serializers.IntegerField(min_value=1, max_value=10, required=False, allow_null=True)


class SectionDayQuerySerializer(serializers.Serializer):
    section_id = serializers.IntegerField()
    subject_id = serializers.IntegerField(required=False)
    date = serializers.DateField()
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)


class AttendanceRangeQuerySerializer(serializers.Serializer):
    subject_id = serializers.IntegerField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and start > end:
            raise serializers.ValidationError('start_date cannot be after end_date')
        return attrs
