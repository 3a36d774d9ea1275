from datetime import timedelta

import pytest

from app.results.aggregator import aggregate, aggregate_survey, last_response_at, tally
from app.surveys.schemas import Question

from conftest import BASE_TIME, make_response, make_survey


def _question(qtype: str, qid: str = "q") -> Question:
    return Question(id=qid, title="Pregunta", type=qtype)


def _responses(qid: str, *values: list[str]):
    return [make_response(f"r{i}", {qid: v}) for i, v in enumerate(values)]


def _entries(result):
    return [(a.value, a.count, a.percentage) for a in result.answers]


def test_one_result_per_question_in_survey_order(survey, responses) -> None:
    results = aggregate_survey(survey, responses)
    assert [r.question_id for r in results] == ["q1", "q2", "q3", "q4", "q5"]


def test_empty_response_set_gives_zeroed_results(survey) -> None:
    results = aggregate_survey(survey, [])
    assert len(results) == len(survey.questions)
    for r in results:
        assert r.total_responses == 0
        assert r.answers == []
    assert results[3].text_responses == []


def test_survey_without_questions() -> None:
    assert aggregate_survey(make_survey(questions=[]), []) == []


def test_scale_sorted_ascending_by_numeric_value() -> None:
    result = aggregate(_question("SCALE"), _responses("q", ["3"], ["1"], ["2"], ["1"]))
    assert result.question_type == "scale"
    assert result.total_responses == 4
    assert _entries(result) == [("1", 2, 50.0), ("2", 1, 25.0), ("3", 1, 25.0)]


def test_scale_sorts_numerically_not_lexically() -> None:
    result = aggregate(_question("scale"), _responses("q", ["10"], ["9"], ["2"]))
    assert [a.value for a in result.answers] == ["2", "9", "10"]


def test_multiple_choice_sorted_by_count_descending() -> None:
    result = aggregate(_question("MULTIPLE_CHOICE"), _responses("q", ["A"], ["B"], ["A"], ["A"]))
    assert result.question_type == "multiple-choice"
    assert _entries(result) == [("A", 3, 75.0), ("B", 1, 25.0)]


def test_ties_keep_first_seen_order() -> None:
    result = aggregate(_question("DROPDOWN"), _responses("q", ["MX"], ["ES"], ["ES"], ["MX"], ["AR"]))
    assert [a.value for a in result.answers] == ["MX", "ES", "AR"]


def test_checkbox_total_counts_selections_not_respondents() -> None:
    # Two respondents, two options each: the total is 4 selections.
    result = aggregate(_question("CHECKBOX"), _responses("q", ["Café", "Té"], ["Té", "Agua"]))
    assert result.total_responses == 4
    assert _entries(result) == [("Té", 2, 50.0), ("Café", 1, 25.0), ("Agua", 1, 25.0)]


def test_text_collects_raw_answers() -> None:
    result = aggregate(_question("TEXT"), _responses("q", ["Muy bien"], ["Regular"]))
    assert result.answers == []
    assert result.text_responses == ["Muy bien", "Regular"]
    assert result.total_responses == 2


def test_unanswered_question_yields_zero_result() -> None:
    result = aggregate(_question("MULTIPLE_CHOICE", qid="q9"), _responses("q", ["A"]))
    assert result.question_id == "q9"
    assert result.total_responses == 0
    assert result.answers == []
    assert result.text_responses is None


def test_unknown_type_is_tallied_and_labelled_as_stored() -> None:
    result = aggregate(_question("RANKING"), _responses("q", ["x"], ["y"], ["y"]))
    assert result.question_type == "ranking"
    assert [a.value for a in result.answers] == ["y", "x"]


def test_answers_to_deleted_questions_are_ignored(survey) -> None:
    responses = [make_response("r1", {"gone": ["A"], "q1": ["A"]})]
    results = aggregate_survey(survey, responses)
    assert results[0].total_responses == 1
    assert all(r.question_id != "gone" for r in results)


def test_full_survey_aggregation(survey, responses) -> None:
    by_id = {r.question_id: r for r in aggregate_survey(survey, responses)}
    assert _entries(by_id["q1"]) == [("A", 3, 75.0), ("B", 1, 25.0)]
    assert [(a.value, a.count) for a in by_id["q2"].answers] == [("Café", 2), ("Té", 2), ("Agua", 1)]
    assert [a.percentage for a in by_id["q2"].answers] == pytest.approx([40.0, 40.0, 20.0])
    assert _entries(by_id["q3"]) == [("1", 2, 50.0), ("2", 1, 25.0), ("3", 1, 25.0)]
    assert by_id["q4"].text_responses == ["Muy bien", "Regular"]
    assert _entries(by_id["q5"]) == [("ES", 1, 50.0), ("MX", 1, 50.0)]


def test_aggregation_does_not_mutate_inputs(survey, responses) -> None:
    before = [r.model_dump() for r in responses]
    aggregate_survey(survey, responses)
    assert [r.model_dump() for r in responses] == before


def test_tally_of_nothing_is_empty() -> None:
    assert tally([]) == []


@pytest.mark.parametrize("values", [["a"], ["a", "b", "b"], ["x"] * 7])
def test_percentages_sum_to_100(values) -> None:
    assert sum(e.percentage for e in tally(values)) == pytest.approx(100.0)


def test_last_response_at_ignores_undated_responses() -> None:
    responses = [
        make_response("r1", {}, minutes=5),
        make_response("r2", {}, minutes=9).model_copy(update={"completed_at": None}),
        make_response("r3", {}, minutes=2),
    ]
    assert last_response_at(responses) == BASE_TIME + timedelta(minutes=5)
    assert last_response_at([]) is None
