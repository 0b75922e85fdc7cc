"""Service layer for sections, placement, teacher assignments and attendance.

Every function takes the tenant `college_id` explicitly and raises one of
the errors in `academics.exceptions`; none of them read request state.
"""
