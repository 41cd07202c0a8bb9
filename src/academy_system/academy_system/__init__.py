"""Academy System package.

Feature modules (users, sedes, groups, grading, attendance) follow the same
layout: domain model, repository interface, MySQL adapter, service and a thin
Flask controller. Role-based scoping lives in ``access``.
"""
