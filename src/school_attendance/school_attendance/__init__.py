"""School Attendance engine package.

This package is organized by feature modules (roster, attendance, statistics,
cache) with SOLID service/repository layers. HTTP, auth and report rendering
live outside and talk to the services exposed by ``container.Container``.
"""
