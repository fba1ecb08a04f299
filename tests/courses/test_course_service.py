import pytest

from src.academic_system.academic_system.core.exceptions import BusinessRuleError, NotFoundError, ValidationError


def test_create_course_normalises_code(container, repos):
    cid = container.course_service.create_course({"course_code": " ma101 ", "course_name": "Calculus I", "credits": "4"})

    course = repos["courses"].courses[cid]
    assert course.course_code == "MA101"
    assert course.credits == 4
    assert course.department is None
    assert [c.course_code for c in container.course_service.list_courses()] == ["CS201", "MA101"]


def test_create_course_field_errors(container):
    with pytest.raises(ValidationError) as exc:
        container.course_service.create_course({"course_code": "", "course_name": "", "credits": 12})

    assert set(exc.value.field_errors) == {"course_code", "course_name", "credits"}


def test_duplicate_course_code(container):
    with pytest.raises(BusinessRuleError, match="already exists"):
        container.course_service.create_course({"course_code": "cs201", "course_name": "Again"})


def test_update_and_delete_course(container, repos):
    container.course_service.update_course(1, {"course_code": "CS201", "course_name": "Algorithms", "credits": 4})
    assert container.course_service.get_course(1).course_name == "Algorithms"

    container.course_service.delete_course(1)
    with pytest.raises(NotFoundError):
        container.course_service.get_course(1)
    with pytest.raises(NotFoundError):
        container.course_service.delete_course(1)


def test_list_courses_is_cached_until_write(container, repos):
    container.course_service.list_courses()
    container.course_service.list_courses()
    calls = repos["courses"].calls

    container.course_service.create_course({"course_code": "PH100", "course_name": "Physics"})
    container.course_service.list_courses()

    assert calls == 1
    assert repos["courses"].calls == 2


def test_assignment_lifecycle(container):
    svc = container.course_service
    aid = svc.create_assignment(
        1, {"program_id": "2", "academic_year_id": "1", "semester_id": "1", "year_level": "", "max_students": "40"}
    )

    created = next(a for a in svc.list_assignments(1) if a.assignment_id == aid)
    assert created.year_level is None
    assert created.max_students == 40

    with pytest.raises(BusinessRuleError):
        svc.create_assignment(1, {"program_id": 2, "academic_year_id": 1, "semester_id": 1})

    svc.update_assignment(aid, {"year_level": "3", "is_mandatory": "0"})
    updated = next(a for a in svc.list_assignments(1) if a.assignment_id == aid)
    assert updated.year_level == 3
    assert updated.is_mandatory is False

    svc.delete_assignment(aid)
    assert [a.assignment_id for a in svc.list_assignments(1)] == [2]


def test_assignment_field_errors(container):
    with pytest.raises(ValidationError) as exc:
        container.course_service.create_assignment(
            1, {"program_id": "x", "academic_year_id": 1, "semester_id": 1, "year_level": 7, "max_students": 0}
        )

    assert set(exc.value.field_errors) == {"program_id", "year_level", "max_students"}


def test_assign_lecturer(container):
    svc = container.course_service
    data = {
        "lecturer_id": 8,
        "program_id": 1,
        "academic_year_id": 1,
        "semester_id": 1,
        "section_id": 2,
        "teaching_hours_per_week": 3,
        "start_date": "2025-09-01",
        "end_date": "2025-12-20",
    }

    lid = svc.assign_lecturer(1, data)

    assert svc.is_lecturer_of(8, 1)
    assert [c.course_code for c in svc.courses_for_lecturer(8)] == ["CS201"]
    with pytest.raises(BusinessRuleError):
        svc.assign_lecturer(1, data)

    svc.unassign_lecturer(lid)
    assert not svc.is_lecturer_of(8, 1)


def test_assign_lecturer_checks_hours_and_dates(container):
    with pytest.raises(ValidationError) as exc:
        container.course_service.assign_lecturer(
            1,
            {
                "lecturer_id": 8,
                "program_id": 1,
                "academic_year_id": 1,
                "semester_id": 1,
                "teaching_hours_per_week": 40,
                "start_date": "2025-12-20",
                "end_date": "2025-09-01",
            },
        )

    assert set(exc.value.field_errors) == {"teaching_hours_per_week", "end_date"}
