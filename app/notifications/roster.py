"""
Recipient lookups over the user table.

UserRosterDirectory implements toolkit.protocols.RosterDirectory on top of
authentication.User. Sections match case-insensitively.

Usage:
    from notifications.roster import UserRosterDirectory

    roster = UserRosterDirectory()
    students = roster.get_students_in_section("cse-a")
    reachable = roster.get_students_in_section("CSE-A", event_code="TEST_ASSIGNED")
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Exists, OuterRef, Q

from authentication.models import UserRole

from notifications.dispatch import Recipient
from notifications.models import NotificationEvent, NotificationPreference, RecipientType


class UserRosterDirectory:
    """
    Roster backed by authentication.User rows.
    """

    def get_students_in_section(
        self,
        section: str,
        event_code: str | None = None,
    ) -> list[Recipient]:
        """
        Active students of a section.

        When event_code is given, students whose effective email preference
        for that event is off are left out: a stored opt-out, or no stored
        row and a catalog default of off.
        """
        students = get_user_model().objects.students_in_section(section)

        if event_code is not None:
            stored = NotificationPreference.objects.filter(
                user=OuterRef("pk"),
                user_type=RecipientType.STUDENT,
                event_id=event_code,
            )
            opted_in = Exists(stored.filter(email_enabled=True))
            opted_out = Exists(stored.filter(email_enabled=False))

            event = NotificationEvent.objects.filter(code=event_code).first()
            if event is not None and event.default_enabled:
                students = students.exclude(opted_out)
            else:
                students = students.filter(opted_in)

        return [Recipient.from_user(user) for user in students.order_by("name", "id")]

    def get_teacher_by_id(self, teacher_id: int) -> Recipient | None:
        teacher = (
            get_user_model()
            .objects.filter(
                Q(role=UserRole.TEACHER) | Q(role=UserRole.ADMIN),
                pk=teacher_id,
                is_active=True,
            )
            .first()
        )
        if teacher is None:
            return None
        return Recipient.from_user(teacher)
