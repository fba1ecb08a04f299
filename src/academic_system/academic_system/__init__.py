"""Academic System package.

Organized by feature modules (courses, enrollments, grades, attendance, reports)
with a thin Flask controller layer and service/repository layers underneath.
"""
