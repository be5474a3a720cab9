from datetime import date

from app.models.user import UserRole
from app.services.period_schedule import assign_period_faculty, day_name, resolve_periods

MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)


def test_day_name_uses_weekday_index():
    assert day_name(MONDAY) == "Monday"
    assert day_name(date(2030, 1, 13)) == "Sunday"


def test_resolve_periods_walks_each_date_and_class(db_session, make_department, make_user, make_timetable):
    department = make_department(class_names=["CSE-A", "CSE-B"])
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    other = make_user("Vikram Shah", UserRole.teaching, department)
    make_timetable(
        department,
        "CSE-B",
        [
            {"day": "Monday", "period": 3, "subject_id": "sub-db", "faculty_id": teacher.id},
            {"day": "Tuesday", "period": 1, "subject_id": "sub-os", "faculty_id": other.id},
        ],
    )
    make_timetable(
        department,
        "CSE-A",
        [
            {"day": "Monday", "period": 1, "subject_id": "sub-ds", "faculty_id": teacher.id},
            {"day": "Tuesday", "period": 2, "subject_id": "sub-ds", "faculty_id": teacher.id},
        ],
    )

    periods = resolve_periods(db_session, teacher.id, MONDAY, TUESDAY)

    assert [(item.date, item.class_name, item.period) for item in periods] == [
        (MONDAY, "CSE-A", 1),
        (MONDAY, "CSE-B", 3),
        (TUESDAY, "CSE-A", 2),
    ]
    assert all(item.department_id == department.id for item in periods)
    assert periods[0].day == "Monday"
    assert periods[1].subject_id == "sub-db"


def test_resolve_periods_without_department_or_timetable(db_session, make_department, make_user):
    loner = make_user("No Department", UserRole.teaching)
    assert resolve_periods(db_session, loner.id, MONDAY, TUESDAY) == []

    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    assert resolve_periods(db_session, teacher.id, MONDAY, TUESDAY) == []
    assert resolve_periods(db_session, "missing-user", MONDAY, TUESDAY) == []


def test_assign_period_faculty_overwrites_matching_cell(db_session, make_department, make_user, make_timetable):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    substitute = make_user("Vikram Shah", UserRole.teaching, department)
    timetable = make_timetable(
        department,
        "CSE-A",
        [
            {"day": "Monday", "period": 1, "subject_id": "sub-ds", "faculty_id": teacher.id},
            {"day": "Monday", "period": 2, "subject_id": "sub-os", "faculty_id": teacher.id},
        ],
    )

    updated = assign_period_faculty(
        db_session,
        department_id=department.id,
        class_name="CSE-A",
        day="Monday",
        period=2,
        faculty_id=substitute.id,
        updated_by_id=teacher.id,
    )

    assert updated is True
    db_session.expire_all()
    assert [cell["faculty_id"] for cell in timetable.entries] == [teacher.id, substitute.id]


def test_assign_period_faculty_reports_missing_cell(db_session, make_department, make_user, make_timetable):
    department = make_department()
    teacher = make_user("Asha Rao", UserRole.teaching, department)
    make_timetable(department, "CSE-A", [{"day": "Monday", "period": 1, "faculty_id": teacher.id}])

    assert (
        assign_period_faculty(
            db_session,
            department_id=department.id,
            class_name="CSE-A",
            day="Friday",
            period=1,
            faculty_id=teacher.id,
        )
        is False
    )
