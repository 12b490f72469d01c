"""
Authentication models.

This module defines the custom user model. Students, teachers and admins
share one table and are told apart by ``role``; students carry the section
they are enrolled in.

Related files:
    - managers.py: Custom user manager for email-based creation
    - notifications/roster.py: Reads users as notification recipients

Security:
    - User passwords hashed with Django's PBKDF2
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """Platform roles. Doubles as the recipient type for notifications."""

    STUDENT = "student", "Student"
    TEACHER = "teacher", "Teacher"
    ADMIN = "admin", "Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login and email delivery
        name: Display name used in notification greetings
        role: student, teacher or admin
        section: Class section for students (blank for staff)
        reg_no: Student registration number, shown to teachers
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified

    Usage:
        student = User.objects.create_user(
            email="ada@school.test",
            password="securepassword",
            name="Ada",
            role=UserRole.STUDENT,
            section="CSE-A",
        )
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="Display name",
    )

    role = models.CharField(
        max_length=10,
        choices=UserRole.choices,
        default=UserRole.STUDENT,
        db_index=True,
        help_text="Platform role, also used as notification recipient type",
    )

    section = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Class section (students only)",
    )

    reg_no = models.CharField(
        max_length=50,
        blank=True,
        default="",
        help_text="Student registration number",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]
        indexes = [
            # Case-insensitive section roster lookups
            models.Index(Lower("section"), "role", name="user_section_role_idx"),
        ]

    def __str__(self):
        return self.email

    def get_full_name(self):
        """Return the display name, falling back to the email address."""
        return self.name or self.email

    def get_short_name(self):
        """Return the first word of the name, or the email local part."""
        if self.name:
            return self.name.split()[0]
        return self.email.split("@")[0]

    @property
    def is_teacher_or_admin(self) -> bool:
        return self.role in (UserRole.TEACHER, UserRole.ADMIN)
