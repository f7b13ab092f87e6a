"""Tests for completeness checks over response trees."""

from form_reconciler.validation import (
    check_completeness,
    check_critical_fields,
    find_unanswered,
    find_unanswered_required,
)

from helpers.builders import answered, container, display, group, leaf


def _schema():
    return [
        display("intro"),
        leaf("patientName", required=True),
        group("vitals", leaf("heartRate", "integer", required=True), leaf("comment")),
        leaf("followUp", "date"),
    ]


# =====================================================================
# find_unanswered / find_unanswered_required
# =====================================================================


class TestFindUnanswered:

    def test_empty_response_lists_every_leaf_in_schema_order(self):
        assert find_unanswered(_schema(), []) == ["patientName", "heartRate", "comment", "followUp"]

    def test_required_only(self):
        assert find_unanswered_required(_schema(), []) == ["patientName", "heartRate"]

    def test_answers_inside_container_count(self):
        response = [container("vitals", answered("heartRate", 72)), answered("patientName", "")]
        assert find_unanswered(_schema(), response) == ["comment", "followUp"]

    def test_node_without_answer_is_missing(self):
        """A node that exists but carries no answer is still unanswered."""
        response = [answered("patientName", None)]
        assert "patientName" in find_unanswered(_schema(), response)

    def test_answer_in_wrong_group_does_not_count(self):
        schema = [leaf("note"), group("exam", leaf("note"))]
        response = [container("exam", answered("note", "x"))]
        assert find_unanswered(schema, response) == ["note"]


# =====================================================================
# check_completeness
# =====================================================================


class TestCompletenessReport:

    def test_counts_and_flags(self):
        response = [answered("patientName", "Jane Doe"), answered("followUp", "2026-04-01")]
        report = check_completeness(_schema(), response)

        assert report.total_leaves == 4
        assert report.answered == 2
        assert report.missing_required == ["heartRate"]
        assert report.missing_optional == ["comment"]
        assert report.complete is False

    def test_complete_when_only_optional_missing(self):
        response = [answered("patientName", "Jane Doe"), container("vitals", answered("heartRate", 60))]
        report = check_completeness(_schema(), response)
        assert report.complete is True
        assert report.missing_optional == ["comment", "followUp"]

    def test_serializes_with_camel_case(self):
        dumped = check_completeness(_schema(), []).model_dump(by_alias=True)
        assert dumped["totalLeaves"] == 4
        assert dumped["missingRequired"] == ["patientName", "heartRate"]
        assert dumped["complete"] is False


# =====================================================================
# check_critical_fields
# =====================================================================


class TestCriticalFields:

    def test_missing_patient_name(self):
        warnings = check_critical_fields(_schema(), [])
        assert len(warnings) == 1
        assert "patientName" in warnings[0]

    def test_empty_patient_name(self):
        assert check_critical_fields(_schema(), [answered("patientName", "")])

    def test_filled_patient_name(self):
        assert check_critical_fields(_schema(), [answered("patientName", "Jane Doe")]) == []

    def test_form_without_name_field(self):
        schema = [leaf("emergencyContactName"), leaf("comment")]
        assert check_critical_fields(schema, []) == []
