"""Thin HTTP views over academics.services.

Every view resolves the caller's college once, validates the payload with a
serializer and hands plain values to a service function. Service errors are
DRF exceptions and are rendered by the project exception handler.
"""
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .permissions import IsCollegeAdmin, IsCollegeStaff, IsCollegeStudent, caller_context
from .serializers import (
    AssignStudentSerializer,
    AttendanceRangeQuerySerializer,
    AttendanceSerializer,
    AttendanceUpdateSerializer,
    BulkAssignSerializer,
    MarkAttendanceSerializer,
    MoveStudentsSerializer,
    SectionDayQuerySerializer,
    SectionSerializer,
    SectionWriteSerializer,
    SplitSectionsSerializer,
    StudentSerializer,
    StudentWriteSerializer,
    TeacherAssignmentSerializer,
    TeacherAssignmentWriteSerializer,
)
from .services import attendance as attendance_service
from .services import placement, sections, statistics, students, teacher_assignments


def _int_param(request, name):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SectionListCreateView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def get(self, request):
        college_id = caller_context(request).college_id
        result = sections.list_sections(
            college_id,
            program_id=_int_param(request, 'program_id'),
            year=request.query_params.get('year') or None,
            include_inactive=request.query_params.get('include_inactive') == '1',
            page=_int_param(request, 'page') or 1,
            limit=_int_param(request, 'limit') or 20,
        )
        return Response({
            'sections': SectionSerializer(result['sections'], many=True).data,
            'pagination': result['pagination'],
        })

    def post(self, request):
        ser = SectionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        section = sections.create_section(caller_context(request).college_id, ser.validated_data)
        return Response(SectionSerializer(section).data, status=status.HTTP_201_CREATED)


class SectionDetailView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def get(self, request, section_id):
        section = sections.get_section(caller_context(request).college_id, section_id)
        return Response(SectionSerializer(section).data)

    def patch(self, request, section_id):
        ser = SectionWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        section = sections.update_section(caller_context(request).college_id, section_id, ser.validated_data)
        return Response(SectionSerializer(section).data)

    def delete(self, request, section_id):
        section = sections.delete_section(caller_context(request).college_id, section_id)
        return Response({'detail': 'Section deleted', 'section_id': section.pk})


class SplitSectionsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def post(self, request):
        ser = SplitSectionsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        result = sections.split_section_by_roll_ranges(
            caller_context(request).college_id, data['program_id'], data['year'], data['ranges'],
        )
        result['sections'] = SectionSerializer(result['sections'], many=True).data
        return Response(result, status=status.HTTP_201_CREATED)


class AssignStudentView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def post(self, request):
        ser = AssignStudentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = placement.assign_student_to_section(
            caller_context(request).college_id,
            ser.validated_data['student_id'],
            ser.validated_data['section_id'],
        )
        return Response(result)


class BulkAssignStudentsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def post(self, request):
        ser = BulkAssignSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = placement.bulk_assign_students_to_sections(
            caller_context(request).college_id, ser.validated_data['assignments'],
        )
        # the tally, not the status code, reports per-item failures
        return Response(result, status=status.HTTP_200_OK)


class MoveStudentsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def post(self, request):
        ser = MoveStudentsSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = placement.move_students_to_section(
            caller_context(request).college_id,
            ser.validated_data['student_ids'],
            ser.validated_data['section_id'],
        )
        return Response(result)


class SectionStatsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def get(self, request):
        stats = statistics.get_section_wise_stats(
            caller_context(request).college_id, program_id=_int_param(request, 'program_id'),
        )
        return Response({'sections': stats})


class CapacityUtilizationView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def get(self, request):
        return Response(statistics.get_capacity_utilization(caller_context(request).college_id))


class StudentCreateView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def post(self, request):
        ser = StudentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        student = students.create_student(caller_context(request).college_id, ser.validated_data)
        return Response(StudentSerializer(student).data, status=status.HTTP_201_CREATED)


class StudentDetailView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def patch(self, request, student_id):
        ser = StudentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        student = students.update_student(caller_context(request).college_id, student_id, ser.validated_data)
        return Response(StudentSerializer(student).data)

    def delete(self, request, student_id):
        student = students.delete_student(caller_context(request).college_id, student_id)
        return Response({'detail': 'Student deleted', 'student_id': student.pk})


class TeacherAssignmentListCreateView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def get(self, request):
        rows = teacher_assignments.list_teacher_assignments(
            caller_context(request).college_id,
            teacher_id=_int_param(request, 'teacher_id'),
            section_id=_int_param(request, 'section_id'),
        )
        return Response({'assignments': TeacherAssignmentSerializer(rows, many=True).data})

    def post(self, request):
        ser = TeacherAssignmentWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        assignment = teacher_assignments.create_teacher_assignment(
            caller_context(request).college_id, ser.validated_data,
        )
        return Response(TeacherAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)


class TeacherAssignmentDetailView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def patch(self, request, assignment_id):
        ser = TeacherAssignmentWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        assignment = teacher_assignments.update_teacher_assignment(
            caller_context(request).college_id, assignment_id, ser.validated_data,
        )
        return Response(TeacherAssignmentSerializer(assignment).data)

    def delete(self, request, assignment_id):
        assignment = teacher_assignments.delete_teacher_assignment(
            caller_context(request).college_id, assignment_id,
        )
        return Response({'detail': 'Teacher assignment deleted', 'assignment_id': assignment.pk})


class MarkAttendanceView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStaff)

    def post(self, request):
        ser = MarkAttendanceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = attendance_service.mark_attendance(caller_context(request), ser.validated_data)
        result['attendance'] = AttendanceSerializer(result['attendance'], many=True).data
        return Response(result, status=status.HTTP_201_CREATED)


class SectionAttendanceView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStaff)

    def get(self, request):
        q = SectionDayQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        ctx = caller_context(request)
        attendance_service.ensure_section_access(ctx, params['section_id'], params.get('subject_id'))
        result = attendance_service.get_attendance_by_section_date(
            ctx.college_id,
            params['section_id'],
            params.get('subject_id'),
            params['date'],
            page=params['page'],
            limit=params.get('limit'),
        )
        result['attendance'] = AttendanceSerializer(result['attendance'], many=True).data
        return Response(result)


class StudentAttendanceView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStaff)

    def get(self, request, student_id):
        q = AttendanceRangeQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        ctx = caller_context(request)
        attendance_service.ensure_student_access(ctx, student_id, params.get('subject_id'))
        result = attendance_service.get_attendance_by_student(
            ctx.college_id,
            student_id,
            filters={k: params.get(k) for k in ('subject_id', 'start_date', 'end_date')},
            page=params['page'],
            limit=params.get('limit'),
        )
        result['attendance'] = AttendanceSerializer(result['attendance'], many=True).data
        return Response(result)


class AttendanceDetailView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeAdmin)

    def patch(self, request, attendance_id):
        ser = AttendanceUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        row = attendance_service.update_attendance(
            caller_context(request).college_id, attendance_id, ser.validated_data,
        )
        return Response(AttendanceSerializer(row).data)

    def delete(self, request, attendance_id):
        pk = attendance_service.delete_attendance(caller_context(request).college_id, attendance_id)
        return Response({'detail': 'Attendance record deleted', 'attendance_id': pk})


class StudentAttendanceStatsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStaff)

    def get(self, request, student_id):
        q = AttendanceRangeQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        ctx = caller_context(request)
        attendance_service.ensure_student_access(ctx, student_id, params.get('subject_id'))
        stats = attendance_service.get_student_attendance_stats(
            ctx.college_id,
            student_id,
            subject_id=params.get('subject_id'),
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
        return Response(stats)


class SectionAttendanceStatsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStaff)

    def get(self, request, section_id):
        q = AttendanceRangeQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        ctx = caller_context(request)
        attendance_service.ensure_section_access(ctx, section_id, params.get('subject_id'))
        stats = attendance_service.get_section_attendance_stats(
            ctx.college_id,
            section_id,
            subject_id=params.get('subject_id'),
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        )
        return Response(stats)


class AttendanceSheetView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStaff)

    def get(self, request, section_id):
        ctx = caller_context(request)
        attendance_service.ensure_section_access(ctx, section_id)
        return Response(attendance_service.generate_attendance_sheet(ctx.college_id, section_id))


class MyAttendanceView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStudent)

    def get(self, request):
        q = AttendanceRangeQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        ctx = caller_context(request)
        student = students.get_student_for_user(ctx.college_id, ctx.user_id)
        result = attendance_service.get_attendance_by_student(
            ctx.college_id,
            student.pk,
            filters={k: params.get(k) for k in ('subject_id', 'start_date', 'end_date')},
            page=params['page'],
            limit=params.get('limit'),
        )
        result['attendance'] = AttendanceSerializer(result['attendance'], many=True).data
        return Response(result)


class MyAttendanceStatsView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStudent)

    def get(self, request):
        q = AttendanceRangeQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        params = q.validated_data
        ctx = caller_context(request)
        student = students.get_student_for_user(ctx.college_id, ctx.user_id)
        return Response(attendance_service.get_student_attendance_stats(
            ctx.college_id,
            student.pk,
            subject_id=params.get('subject_id'),
            start_date=params.get('start_date'),
            end_date=params.get('end_date'),
        ))


class MyAttendanceSummaryView(APIView):
    permission_classes = (IsAuthenticated, IsCollegeStudent)

    def get(self, request):
        ctx = caller_context(request)
        student = students.get_student_for_user(ctx.college_id, ctx.user_id)
        return Response(attendance_service.get_student_attendance_summary(ctx.college_id, student.pk))
