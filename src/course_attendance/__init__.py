"""Course attendance package.

Organized by feature modules (users, courses, enrollments, attendance, reports)
with a thin Flask JSON controller layer on top of service/repository layers.
"""
