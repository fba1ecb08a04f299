import pytest

from src.academic_system.academic_system.core.exceptions import NotFoundError, ValidationError


def _category_ids(repos):
    return {c.name: c.category_id for c in repos["grades"].list_categories(1)}


def test_final_grade_for_reference_student(container, repos):
    ids = _category_ids(repos)
    svc = container.gradebook_service
    svc.record_grade(3, 1, ids["Homework"], 80)
    svc.record_grade(3, 1, ids["Midterm"], 70)
    svc.record_grade(3, 1, ids["Final"], 90)

    final = svc.final_grade(3, 1)

    assert final.percentage == 81.0
    assert final.letter == "B-"


def test_record_grade_upserts_and_refreshes(container, repos):
    ids = _category_ids(repos)
    svc = container.gradebook_service
    first = svc.record_grade(3, 1, ids["Final"], 50)
    assert svc.final_grade(3, 1).percentage == 20.0

    second = svc.record_grade(3, 1, ids["Final"], "75")

    assert first == second
    assert svc.final_grade(3, 1).percentage == 30.0


@pytest.mark.parametrize("value", [-1, 100.5, "abc", None])
def test_record_grade_rejects_out_of_range(container, repos, value):
    ids = _category_ids(repos)

    with pytest.raises(ValidationError) as exc:
        container.gradebook_service.record_grade(3, 1, ids["Final"], value)

    assert "percentage" in exc.value.field_errors


def test_record_grade_rejects_foreign_category(container):
    with pytest.raises(ValidationError) as exc:
        container.gradebook_service.record_grade(3, 1, 999, 50)

    assert "category_id" in exc.value.field_errors


def test_course_gradebook_lists_resolved_students(container, repos):
    ids = _category_ids(repos)
    container.gradebook_service.record_grade(4, 1, ids["Homework"], 100)

    book = container.gradebook_service.course_gradebook(1)

    assert book.loaded is True
    assert book.warning is None
    assert [r.student.student_id for r in book.rows] == [3, 4]
    binh = book.rows[1]
    assert binh.scores[ids["Homework"]] == 100.0
    assert binh.scores[ids["Final"]] is None
    assert binh.final.percentage == 30.0
    assert binh.passing is False


def test_save_categories_warns_when_weights_do_not_total_100(container, repos):
    ids = _category_ids(repos)

    warning = container.gradebook_service.save_categories(
        1,
        [
            {"category_id": ids["Homework"], "name": "Homework", "percentage": 20},
            {"category_id": ids["Final"], "name": "Final exam", "percentage": 50},
            {"name": "Project", "percentage": 20},
        ],
    )

    assert "90" in warning
    names = sorted(c.name for c in repos["grades"].list_categories(1))
    assert names == ["Final exam", "Homework", "Project"]
    assert container.gradebook_service.course_gradebook(1).warning is not None


def test_save_categories_balanced_returns_no_warning(container, repos):
    ids = _category_ids(repos)

    warning = container.gradebook_service.save_categories(
        1,
        [
            {"category_id": ids["Homework"], "name": "Homework", "percentage": 40},
            {"category_id": ids["Final"], "name": "Final", "percentage": 60},
        ],
    )

    assert warning is None


def test_save_categories_reports_field_errors(container):
    with pytest.raises(ValidationError) as exc:
        container.gradebook_service.save_categories(
            1,
            [{"name": "", "percentage": 30}, {"name": "Quiz", "percentage": 130}, {"name": "quiz", "percentage": 10}],
        )

    errors = exc.value.field_errors
    assert "categories[0].name" in errors
    assert "categories[1].percentage" in errors
    assert "categories[2].name" in errors


def test_save_categories_unknown_course(container):
    with pytest.raises(NotFoundError):
        container.gradebook_service.save_categories(42, [{"name": "Exam", "percentage": 100}])


def test_delete_grade(container, repos):
    ids = _category_ids(repos)
    gid = container.gradebook_service.record_grade(3, 1, ids["Final"], 90)

    container.gradebook_service.delete_grade(gid)

    assert container.gradebook_service.final_grade(3, 1).percentage == 0.0
    with pytest.raises(NotFoundError):
        container.gradebook_service.delete_grade(gid)


def test_student_summary_gpa(container, repos):
    ids = _category_ids(repos)
    for name, score in (("Homework", 95), ("Midterm", 95), ("Final", 95)):
        container.gradebook_service.record_grade(3, 1, ids[name], score)

    summary = container.gradebook_service.student_summary(3)

    assert [c.course.course_code for c in summary.courses] == ["CS201"]
    assert summary.courses[0].final.letter == "A"
    assert summary.gpa == 4.0
