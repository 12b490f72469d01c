"""
Permission classes for the notifications API.

- IsTeacherOrAdmin: Analytics endpoints are limited to staff roles
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsTeacherOrAdmin(permissions.BasePermission):
    """
    Allows access only to users with the teacher or admin role.

    Students get 403; anonymous users are rejected by IsAuthenticated first.
    """

    message = "Only teachers and admins can view notification statistics."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        return bool(user and user.is_authenticated and user.is_teacher_or_admin)
