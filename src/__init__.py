"""CampusBoard Backend.

Multi-tenant school administration API: organizations and their members,
classrooms, attendance, grades and quizzes.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
