import copy

import pytest

from durkheim_app.research.schema import (
    DEFAULT_COMPLETED_HTML,
    QuestionNotFound,
    SurveySchemaError,
    add_option,
    add_question,
    build_survey_json,
    default_questions,
    delete_question,
    move_question,
    new_question,
    normalize_questions,
    normalize_survey,
    remove_option,
    reorder_questions,
    update_option,
    update_question,
)


def _questions():
    return [
        {"id": "a", "type": "text", "title": "Name", "required": True},
        {"id": "b", "type": "radio", "title": "Colour", "options": ["Red", "Blue"]},
        {"id": "c", "type": "rating", "title": "Mood"},
    ]


class TestNewQuestion:
    def test_choice_types_get_default_options(self):
        for qtype in ("radio", "checkbox", "select"):
            q = new_question(qtype)
            assert q["options"] == ["Option 1", "Option 2"]
            assert q["title"] == f"New {qtype} question"
            assert q["required"] is False

    def test_plain_types_have_no_options(self):
        for qtype in ("text", "textarea", "rating"):
            assert "options" not in new_question(qtype)

    def test_ids_do_not_collide(self):
        questions = []
        for _ in range(20):
            questions, _q = add_question(questions, "text")
        assert len({q["id"] for q in questions}) == 20

    def test_unknown_type_rejected(self):
        with pytest.raises(SurveySchemaError):
            new_question("matrix")


def test_default_questions_is_single_sample():
    questions = default_questions()
    assert len(questions) == 1
    assert questions[0]["title"] == "Sample Question"
    assert questions[0]["type"] == "text"


class TestNormalize:
    def test_missing_options_on_choice_question(self):
        with pytest.raises(SurveySchemaError) as exc:
            normalize_questions([{"id": "x", "type": "select", "title": "Pick"}])
        assert exc.value.question_id == "x"

    def test_blank_title_rejected(self):
        with pytest.raises(SurveySchemaError):
            normalize_questions([{"id": "x", "type": "text", "title": "   "}])

    def test_duplicate_ids_rejected(self):
        with pytest.raises(SurveySchemaError):
            normalize_questions(
                [
                    {"id": "x", "type": "text", "title": "One"},
                    {"id": "x", "type": "text", "title": "Two"},
                ]
            )

    def test_missing_id_is_generated(self):
        questions = normalize_questions([{"type": "text", "title": "No id"}])
        assert questions[0]["id"]

    def test_options_dropped_for_plain_types(self):
        questions = normalize_questions(
            [{"id": "x", "type": "text", "title": "T", "options": ["a"]}]
        )
        assert "options" not in questions[0]

    def test_unknown_keys_survive(self):
        questions = normalize_questions(
            [{"id": "x", "type": "text", "title": "T", "placeholder": "Type here"}]
        )
        assert questions[0]["placeholder"] == "Type here"

    def test_survey_must_be_object(self):
        with pytest.raises(SurveySchemaError):
            normalize_survey(["not", "a", "survey"])


def test_build_and_normalize_round_trip():
    base = {"locale": "fr", "showProgressBar": False}
    survey = build_survey_json("Study", "About it", _questions(), base=base)
    assert survey["title"] == "Study"
    assert survey["description"] == "About it"
    assert survey["showProgressBar"] is False
    assert survey["completedHtml"] == DEFAULT_COMPLETED_HTML
    assert normalize_survey(survey) == survey
    assert survey["locale"] == "fr"


class TestBuilderOperations:
    def test_operations_do_not_mutate_input(self):
        original = _questions()
        snapshot = copy.deepcopy(original)
        update_question(original, "a", title="Full name")
        delete_question(original, "b")
        move_question(original, "c", 0)
        add_option(original, "b")
        remove_option(original, "b", 0)
        assert original == snapshot

    def test_update_question(self):
        result = update_question(_questions(), "a", title="Full name", required=False)
        assert result[0]["title"] == "Full name"
        assert result[0]["required"] is False

    def test_switch_to_choice_seeds_options(self):
        result = update_question(_questions(), "a", type="select")
        assert result[0]["options"] == ["Option 1", "Option 2"]

    def test_explicit_empty_options_rejected(self):
        with pytest.raises(SurveySchemaError):
            update_question(_questions(), "b", options=[])
        with pytest.raises(SurveySchemaError):
            update_question(_questions(), "a", type="radio", options=[])

    def test_switch_to_plain_drops_options(self):
        result = update_question(_questions(), "b", type="textarea")
        assert "options" not in result[1]

    def test_update_rejects_id_change(self):
        with pytest.raises(SurveySchemaError):
            update_question(_questions(), "a", id="z")

    def test_unknown_question(self):
        with pytest.raises(QuestionNotFound):
            delete_question(_questions(), "nope")

    def test_move_question_clamps(self):
        result = move_question(_questions(), "a", 99)
        assert [q["id"] for q in result] == ["b", "c", "a"]
        result = move_question(_questions(), "c", -5)
        assert [q["id"] for q in result] == ["c", "a", "b"]

    def test_reorder_requires_permutation(self):
        assert [q["id"] for q in reorder_questions(_questions(), ["c", "b", "a"])] == [
            "c",
            "b",
            "a",
        ]
        with pytest.raises(SurveySchemaError):
            reorder_questions(_questions(), ["a", "b"])

    def test_add_option_numbers_next(self):
        result = add_option(_questions(), "b")
        assert result[1]["options"] == ["Red", "Blue", "Option 3"]

    def test_update_option(self):
        result = update_option(_questions(), "b", 1, "Green")
        assert result[1]["options"] == ["Red", "Green"]
        with pytest.raises(SurveySchemaError):
            update_option(_questions(), "b", 5, "Green")

    def test_remove_last_option_refused(self):
        questions = remove_option(_questions(), "b", 0)
        assert questions[1]["options"] == ["Blue"]
        with pytest.raises(SurveySchemaError):
            remove_option(questions, "b", 0)

    def test_options_only_on_choice_questions(self):
        with pytest.raises(SurveySchemaError):
            add_option(_questions(), "a")
