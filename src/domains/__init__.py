# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for CampusBoard.

This package contains domain services that encapsulate business logic.
Every service takes an AsyncSession and checks the caller's organization
role through the access package before touching tenant data.

Domains:
    access: Roles, the permission table, memberships and the scoped gate.
    query: Paginated search and sort over SQLAlchemy selects.
    auth: Sign-up, sign-in and session resolution.
    organization, member, invitation: Tenants and who belongs to them.
    classroom, student, teacher, parent: School records.
    attendance, grade: Daily attendance and graded work.
    quiz: Quizzes, scoring and response export.
    dashboard: Counters for the landing page.
    user: Cross-organization user administration.
"""
