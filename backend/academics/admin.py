from django import forms
from django.contrib import admin, messages
from django.db import transaction

from .models import Attendance, Program, Section, Student, Subject, Teacher, TeacherAssignment
from .services.sections import refresh_section_strength


class StudentForm(forms.ModelForm):
    class Meta:
        model = Student
        fields = '__all__'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        if self.instance and self.instance.pk:
            # placement goes through the assignment endpoints so strength stays in sync
            if 'section' in self.fields:
                self.fields['section'].disabled = True


@admin.register(Subject)
class SubjectAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'college', 'is_active')
    list_filter = ('college', 'is_active')
    search_fields = ('code', 'name')


@admin.register(Program)
class ProgramAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'college', 'duration', 'is_active')
    list_filter = ('college', 'is_active')
    search_fields = ('code', 'name')
    filter_horizontal = ('subjects',)


@admin.register(Section)
class SectionAdmin(admin.ModelAdmin):
    list_display = ('name', 'program', 'year', 'shift', 'roll_start', 'roll_end', 'capacity', 'current_strength', 'is_active')
    list_filter = ('college', 'program', 'year', 'shift', 'is_active')
    search_fields = ('name', 'program__code')
    readonly_fields = ('current_strength', 'created_at', 'updated_at')
    filter_horizontal = ('subjects',)
    actions = ('recount_strength',)

    def recount_strength(self, request, queryset):
        with transaction.atomic():
            strengths = refresh_section_strength(queryset.values_list('pk', flat=True))
        messages.success(request, f'Recounted strength for {len(strengths)} section(s).')
    recount_strength.short_description = 'Recount strength from active students'


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    form = StudentForm
    list_display = ('roll_number', 'name', 'program', 'section', 'status', 'is_active')
    list_filter = ('college', 'program', 'status', 'is_active')
    search_fields = ('roll_number', 'name', 'father_name')

    @transaction.atomic
    def save_model(self, request, obj, form, change):
        old_section_id = None
        if change:
            old_section_id = Student.objects.filter(pk=obj.pk).values_list('section_id', flat=True).first()
        super().save_model(request, obj, form, change)
        refresh_section_strength([old_section_id, obj.section_id])

    @transaction.atomic
    def delete_model(self, request, obj):
        section_id = obj.section_id
        super().delete_model(request, obj)
        refresh_section_strength([section_id])

    @transaction.atomic
    def delete_queryset(self, request, queryset):
        section_ids = list(queryset.values_list('section_id', flat=True))
        super().delete_queryset(request, queryset)
        refresh_section_strength(section_ids)


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ('name', 'personal_number', 'designation', 'college', 'is_active')
    list_filter = ('college', 'is_active')
    search_fields = ('name', 'personal_number', 'cnic', 'contact_email')


@admin.register(TeacherAssignment)
class TeacherAssignmentAdmin(admin.ModelAdmin):
    list_display = ('teacher', 'subject', 'section', 'academic_year', 'semester', 'is_active')
    list_filter = ('college', 'academic_year', 'semester', 'is_active')
    search_fields = ('teacher__name', 'subject__code', 'section__name')


@admin.register(Attendance)
class AttendanceAdmin(admin.ModelAdmin):
    list_display = ('student', 'section', 'subject', 'date', 'period', 'status', 'teacher')
    list_filter = ('college', 'status', 'date')
    search_fields = ('student__roll_number', 'student__name')
    date_hierarchy = 'date'
