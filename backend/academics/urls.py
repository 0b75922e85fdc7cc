from django.urls import path

from .views import (
    AssignStudentView,
    AttendanceDetailView,
    AttendanceSheetView,
    BulkAssignStudentsView,
    CapacityUtilizationView,
    MarkAttendanceView,
    MoveStudentsView,
    MyAttendanceStatsView,
    MyAttendanceSummaryView,
    MyAttendanceView,
    SectionAttendanceStatsView,
    SectionAttendanceView,
    SectionDetailView,
    SectionListCreateView,
    SectionStatsView,
    SplitSectionsView,
    StudentAttendanceStatsView,
    StudentAttendanceView,
    StudentCreateView,
    StudentDetailView,
    TeacherAssignmentDetailView,
    TeacherAssignmentListCreateView,
)

# Mounted under `/api/academics/` by roster.urls.
urlpatterns = [
    # Sections and placement
    path('sections/', SectionListCreateView.as_view()),
    path('sections/split/', SplitSectionsView.as_view()),
    path('sections/assign-student/', AssignStudentView.as_view()),
    path('sections/bulk-assign/', BulkAssignStudentsView.as_view()),
    path('sections/move-students/', MoveStudentsView.as_view()),
    path('sections/stats/', SectionStatsView.as_view()),
    path('sections/capacity/', CapacityUtilizationView.as_view()),
    path('sections/<int:section_id>/', SectionDetailView.as_view()),

    # Students
    path('students/', StudentCreateView.as_view()),
    path('students/<int:student_id>/', StudentDetailView.as_view()),

    # Teacher assignments
    path('teacher-assignments/', TeacherAssignmentListCreateView.as_view()),
    path('teacher-assignments/<int:assignment_id>/', TeacherAssignmentDetailView.as_view()),

    # Attendance
    path('attendance/mark/', MarkAttendanceView.as_view()),
    path('attendance/section/', SectionAttendanceView.as_view()),
    path('attendance/section/<int:section_id>/stats/', SectionAttendanceStatsView.as_view()),
    path('attendance/section/<int:section_id>/sheet/', AttendanceSheetView.as_view()),
    path('attendance/student/<int:student_id>/', StudentAttendanceView.as_view()),
    path('attendance/student/<int:student_id>/stats/', StudentAttendanceStatsView.as_view()),
    path('attendance/<int:attendance_id>/', AttendanceDetailView.as_view()),

    # Student self-service
    path('me/attendance/', MyAttendanceView.as_view()),
    path('me/attendance/stats/', MyAttendanceStatsView.as_view()),
    path('me/attendance/summary/', MyAttendanceSummaryView.as_view()),
]
