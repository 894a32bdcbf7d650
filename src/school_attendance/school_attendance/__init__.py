"""School Attendance package.

This package is organized by feature modules (students, schedules, attendance,
reports, users) with a thin Flask controller layer over service classes and a
document-store repository.
"""
