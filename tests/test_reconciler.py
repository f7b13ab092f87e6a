"""Tests for ReconciliationEngine.

The engine's contract, checked here property by property:
  - every non-display leaf has an answer afterwards
  - existing answers come back unchanged
  - a second pass over a complete response changes nothing
  - choice answers always come from the declared options
  - safety-check fields get the negative answer
  - real context beats every synthesized source
  - malformed input is passed through with a warning, never raised
"""

import copy

import pytest

from form_reconciler.models import (
    Coding,
    FieldKind,
    ReconcileContext,
    ResponseNode,
    Urgency,
    ValueSource,
)
from form_reconciler.reconciler import ReconciliationEngine, reconcile
from form_reconciler.validation import find_unanswered

from helpers.builders import (
    answered,
    answers_by_id,
    choice,
    container,
    count_nodes,
    display,
    group,
    leaf,
)


@pytest.fixture
def imaging_schema():
    """Small imaging-order shaped form with groups, choices and safety fields."""
    return [
        display("intro"),
        group(
            "patient-info",
            leaf("patientName", required=True),
            leaf("patientDob", "date"),
            leaf("patientPhone"),
        ),
        group(
            "exam-details",
            leaf("examType", required=True),
            leaf("bodyRegion"),
            choice("priority", ("routine", "Routine"), ("urgent", "Urgent"), ("stat", "STAT")),
        ),
        group(
            "safety",
            leaf("contrastAllergy", "boolean"),
            leaf("pregnancyStatus", "boolean"),
            leaf("metalImplants", "boolean"),
            choice("contrast", ("with", "With contrast"), ("without", "Without contrast")),
        ),
        leaf("insurance"),
    ]


# =====================================================================
# Reference scenarios
# =====================================================================


class TestScenarios:

    def test_stat_priority_and_empty_exam_type(self, engine):
        """Empty partial + STAT urgency: priority is the STAT option, examType is empty text."""
        schema = [leaf("examType"), choice("priority", ("routine", "Routine"), ("stat", "STAT"))]
        result = engine.reconcile(schema, [], ReconcileContext(urgency=Urgency.STAT))

        assert [n.link_id for n in result.response] == ["examType", "priority"]
        assert result.response[0].answer == ""
        assert result.response[1].answer == Coding(code="stat", display="STAT")

    def test_group_container_is_created(self, engine):
        """A missing group container is created around the synthesized child."""
        schema = [group("exam-details", leaf("bodyRegion"))]
        result = engine.reconcile(schema, [], ReconcileContext())

        assert len(result.response) == 1
        node = result.response[0]
        assert node.link_id == "exam-details"
        assert [c.link_id for c in node.children] == ["bodyRegion"]
        assert node.children[0].has_answer

    def test_existing_answer_beats_context(self, engine):
        """A caller's answer is kept even when the context disagrees."""
        schema = [leaf("insurance")]
        partial = [answered("insurance", "Aetna")]
        result = engine.reconcile(schema, partial, ReconcileContext(insurance="Blue Cross"))

        assert result.response == [answered("insurance", "Aetna")]
        assert result.statistics.already_filled == 1
        assert result.statistics.auto_filled == 0


# =====================================================================
# Core properties
# =====================================================================


class TestProperties:

    def test_every_leaf_is_answered(self, engine, imaging_schema):
        result = engine.reconcile(imaging_schema, [], ReconcileContext())
        assert find_unanswered(imaging_schema, result.response) == []

    def test_existing_answers_preserved(self, engine, imaging_schema):
        partial = [
            container("patient-info", answered("patientName", "Ana Lima"), answered("patientPhone", "")),
            container("safety", answered("contrastAllergy", True)),
        ]
        result = engine.reconcile(imaging_schema, partial, ReconcileContext(patient_name="Jane Doe"))
        got = answers_by_id(result.response)

        assert got["patientName"] == "Ana Lima", "caller answer must not be replaced by context"
        assert got["patientPhone"] == "", "an empty-string answer is still an answer"
        assert got["contrastAllergy"] is True, "safety default must not override a real answer"

    def test_existing_order_kept_and_new_nodes_appended(self, engine, imaging_schema):
        partial = [
            container("safety", answered("metalImplants", False)),
            answered("insurance", "Aetna"),
        ]
        result = engine.reconcile(imaging_schema, partial)
        root_ids = [n.link_id for n in result.response]

        assert root_ids[:2] == ["safety", "insurance"]
        assert root_ids[2:] == ["patient-info", "exam-details"]
        safety_ids = [c.link_id for c in result.response[0].children]
        assert safety_ids[0] == "metalImplants"
        assert count_nodes(result.response, "safety") == 1, "existing container must be reused"

    def test_idempotent(self, engine, imaging_schema):
        first = engine.reconcile(imaging_schema, [], ReconcileContext(urgency=Urgency.URGENT))
        second = engine.reconcile(imaging_schema, first.response, ReconcileContext(urgency=Urgency.URGENT))

        assert second.response == first.response
        assert second.statistics.auto_filled == 0
        assert second.statistics.already_filled == second.statistics.total_fields

    def test_choice_answers_come_from_options(self, engine, imaging_schema):
        result = engine.reconcile(imaging_schema, [], ReconcileContext(urgency=Urgency.STAT))
        got = answers_by_id(result.response)
        for root in imaging_schema:
            for field in root.iter_leaves():
                if field.kind is FieldKind.CHOICE:
                    allowed = [o.as_answer() for o in field.options]
                    assert got[field.link_id] in allowed, f"{field.link_id} answer not a declared option"

    def test_safety_fields_are_negative(self, engine, imaging_schema):
        result = engine.reconcile(imaging_schema, [], ReconcileContext(clinical_context="head trauma"))
        got = answers_by_id(result.response)

        assert got["contrastAllergy"] is False
        assert got["pregnancyStatus"] is False
        assert got["metalImplants"] is False
        assert got["contrast"] == Coding(code="without", display="Without contrast")

    def test_real_context_wins(self, engine, imaging_schema):
        ctx = ReconcileContext(
            patient_name="Jane Doe",
            patient_dob="1980-05-01",
            patient_phone="(555) 010-0100",
            insurance="Blue Cross",
            clinical_context="chest pain",
        )
        result = engine.reconcile(imaging_schema, [], ctx)
        got = answers_by_id(result.response)

        assert got["patientName"] == "Jane Doe"
        assert got["patientDob"] == "1980-05-01"
        assert got["patientPhone"] == "(555) 010-0100"
        assert got["insurance"] == "Blue Cross"
        assert got["examType"] == "Chest X-ray"
        assert got["bodyRegion"] == "Chest"
        for link_id in ("patientName", "patientDob", "patientPhone", "insurance"):
            assert result.provenance[link_id] is ValueSource.CONTEXT, link_id

    def test_caller_input_not_mutated(self, engine, imaging_schema):
        partial = [container("patient-info", answered("patientName", "Ana Lima"))]
        snapshot = copy.deepcopy(partial)
        schema_snapshot = copy.deepcopy(imaging_schema)

        engine.reconcile(imaging_schema, partial)

        assert partial == snapshot
        assert imaging_schema == schema_snapshot

    def test_display_fields_are_skipped(self, engine, imaging_schema):
        result = engine.reconcile(imaging_schema, [])
        assert count_nodes(result.response, "intro") == 0


# =====================================================================
# Tree walk details
# =====================================================================


class TestTreeWalk:

    def test_deeply_nested_groups(self, engine):
        schema = [group("a", group("b", group("c", leaf("deep", "integer"))))]
        result = engine.reconcile(schema, [])

        node = result.response[0]
        for link_id in ("a", "b", "c"):
            assert node.link_id == link_id
            node = node.children[0]
        assert node.link_id == "deep"
        assert node.answer == 0

    def test_group_whose_children_are_all_display_is_not_created(self, engine):
        schema = [group("notes", display("hint")), leaf("flag", "boolean")]
        result = engine.reconcile(schema, [])
        assert [n.link_id for n in result.response] == ["flag"]

    def test_answer_nested_deeper_counts_as_present(self, engine):
        """A matching answer anywhere in the level's subtree is not duplicated."""
        schema = [group("exam", leaf("bodyRegion"))]
        partial = [container("exam", container("extra", answered("bodyRegion", "Knee")))]
        result = engine.reconcile(schema, partial)

        assert count_nodes(result.response, "bodyRegion") == 1
        assert result.statistics.auto_filled == 0

    def test_sibling_group_answer_does_not_count(self, engine):
        """The same linkId answered inside a sibling group is a different field."""
        schema = [leaf("note"), group("exam", leaf("note"))]
        partial = [container("exam", answered("note", "see chart"))]
        result = engine.reconcile(schema, partial)

        root_notes = [n for n in result.response if n.link_id == "note"]
        assert len(root_notes) == 1, "root-level note must be synthesized"
        assert result.statistics.already_filled == 1
        assert result.statistics.auto_filled == 1

    def test_answerless_node_is_filled_in_place(self, engine):
        """An existing node without an answer is completed, not duplicated."""
        schema = [leaf("comment"), leaf("seen", "boolean")]
        partial = [ResponseNode(link_id="comment"), answered("seen", True)]
        result = engine.reconcile(schema, partial)

        assert count_nodes(result.response, "comment") == 1
        assert [n.link_id for n in result.response] == ["comment", "seen"]
        assert result.response[0].answer == ""
        assert result.statistics.auto_filled == 1
        assert partial[0].answer is None, "caller input must not be mutated"

    def test_dict_input_is_accepted(self, engine):
        schema = [{"linkId": "seen", "kind": "boolean"}, {"linkId": "count", "kind": "integer"}]
        partial = [{"linkId": "seen", "answer": True}]
        result = engine.reconcile(schema, partial)

        assert result.response[0] == ResponseNode(link_id="seen", answer=True)
        assert result.response[1] == ResponseNode(link_id="count", answer=0)
        assert partial == [{"linkId": "seen", "answer": True}]

    def test_module_level_shorthand(self):
        result = reconcile([leaf("flag", "boolean")], [])
        assert result.response == [ResponseNode(link_id="flag", answer=False)]


# =====================================================================
# Statistics and provenance
# =====================================================================


class TestStatistics:

    def test_counts(self, engine, imaging_schema):
        partial = [answered("insurance", "Aetna")]
        result = engine.reconcile(imaging_schema, partial)
        stats = result.statistics

        assert stats.total_fields == 11, "display and group nodes are not counted"
        assert stats.already_filled == 1
        assert stats.auto_filled == 10
        assert stats.completion_rate == 100.0

    def test_identity_real_vs_generic(self, engine):
        schema = [leaf("patientName"), leaf("patientPhone")]
        result = engine.reconcile(schema, [], ReconcileContext(patient_name="Jane Doe"))

        assert result.statistics.used_real_data == 1
        assert result.statistics.used_generic_data == 1
        assert result.placeholder_fields == ["patientPhone"]

    def test_provenance_covers_only_synthesized_fields(self, engine):
        schema = [leaf("insurance"), leaf("allergies", "text"), leaf("comment")]
        result = engine.reconcile(schema, [answered("insurance", "Aetna")])

        assert result.provenance == {
            "allergies": ValueSource.SAFE_DEFAULT,
            "comment": ValueSource.TYPE_DEFAULT,
        }

    def test_empty_patient_name_warns(self, engine):
        schema = [leaf("patientName")]
        result = engine.reconcile(schema, [answered("patientName", "")])
        assert any("patientName" in w for w in result.statistics.warnings)

    def test_placeholder_name_does_not_warn(self, engine):
        result = engine.reconcile([leaf("patientName")], [])
        assert result.statistics.warnings == []

    def test_safety_choice_without_negative_option_warns(self, engine):
        schema = [choice("allergyType", ("iodine", "Iodine"), ("latex", "Latex"))]
        result = engine.reconcile(schema, [])
        assert any("allergyType" in w for w in result.statistics.warnings)

    def test_context_value_that_does_not_fit_warns(self, engine):
        schema = [choice("patientGender", ("male", "Male"), ("female", "Female"))]
        result = engine.reconcile(schema, [], ReconcileContext(patient_gender="X"))

        assert result.provenance["patientGender"] is ValueSource.TYPE_DEFAULT
        assert result.placeholder_fields == []
        assert any("patientGender" in w for w in result.statistics.warnings)


# =====================================================================
# Degraded mode
# =====================================================================


class TestMalformedInput:
    """Bad input comes back untouched with a warning; nothing raises."""

    @pytest.mark.parametrize("schema,partial", [(None, []), ([leaf("x")], None), ("form", [])])
    def test_missing_or_non_list_input(self, schema, partial):
        engine = ReconciliationEngine()
        result = engine.reconcile(schema, partial)

        assert result.response is partial
        assert result.statistics.total_fields == 0
        assert result.statistics.warnings, "a degraded call must carry a warning"
        assert result.statistics.completion_rate is None

    def test_invalid_field_dict(self, engine):
        partial = [{"linkId": "x", "answer": "kept"}]
        result = engine.reconcile([{"linkId": "x"}], partial)

        assert result.response is partial
        assert result.statistics.warnings

    def test_invalid_response_node(self, engine):
        partial = [42]
        result = engine.reconcile([leaf("x")], partial)
        assert result.response is partial
