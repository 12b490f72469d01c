"""
Tests for UserRosterDirectory.
"""

from authentication.tests.factories import AdminFactory, StudentFactory
from notifications.catalog import EventCode
from notifications.roster import UserRosterDirectory
from notifications.tests.factories import NotificationPreferenceFactory


class TestGetStudentsInSection:
    def test_matches_case_insensitively(self, section_students):
        students = UserRosterDirectory().get_students_in_section("cse-a")

        assert {r.id for r in students} == {s.id for s in section_students}
        assert all(r.type == "student" for r in students)

    def test_excludes_other_sections_and_inactive(self, section_students):
        StudentFactory(section="CSE-B")
        StudentFactory(section="CSE-A", is_active=False)

        students = UserRosterDirectory().get_students_in_section("CSE-A")

        assert len(students) == 3

    def test_excludes_staff_with_matching_section(self, section_students, teacher):
        teacher.section = "CSE-A"
        teacher.save()

        students = UserRosterDirectory().get_students_in_section("CSE-A")

        assert teacher.id not in {r.id for r in students}

    def test_event_code_excludes_email_opt_outs(self, section_students):
        opted_out = section_students[0]
        NotificationPreferenceFactory(
            user=opted_out, event_id=EventCode.TEST_ASSIGNED, email_enabled=False
        )

        students = UserRosterDirectory().get_students_in_section(
            "CSE-A", event_code=EventCode.TEST_ASSIGNED
        )

        assert opted_out.id not in {r.id for r in students}
        assert len(students) == 2

    def test_default_off_event_requires_opt_in(self, section_students):
        opted_in = section_students[1]
        NotificationPreferenceFactory(
            user=opted_in, event_id=EventCode.WEEKLY_PROGRESS_SUMMARY, email_enabled=True
        )

        students = UserRosterDirectory().get_students_in_section(
            "CSE-A", event_code=EventCode.WEEKLY_PROGRESS_SUMMARY
        )

        assert [r.id for r in students] == [opted_in.id]

    def test_empty_section(self, db):
        assert UserRosterDirectory().get_students_in_section("NOWHERE") == []


class TestGetTeacherById:
    def test_teacher(self, teacher):
        recipient = UserRosterDirectory().get_teacher_by_id(teacher.id)

        assert recipient.id == teacher.id
        assert recipient.type == "teacher"
        assert recipient.name == "Grace Hopper"

    def test_admin_counts_as_teacher(self, db):
        admin = AdminFactory()

        assert UserRosterDirectory().get_teacher_by_id(admin.id).type == "admin"

    def test_student_is_not_a_teacher(self, student):
        assert UserRosterDirectory().get_teacher_by_id(student.id) is None

    def test_missing(self, db):
        assert UserRosterDirectory().get_teacher_by_id(999999) is None
