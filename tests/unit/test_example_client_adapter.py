import json

from docstudy.generation.example_client_adapter import ExampleClientAdapter


def _complete(json_mode: bool) -> str:
    return ExampleClientAdapter().create_completion(
        model="example",
        temperature=0.0,
        system_prompt="",
        user_prompt="anything",
        json_mode=json_mode,
    )


class TestExampleClientAdapter:
    def test_json_mode_returns_fifteen_terms(self) -> None:
        data = json.loads(_complete(json_mode=True))
        assert len(data["terms"]) == 15
        assert len(data["questions"]) == 15

    def test_every_question_answers_a_term(self) -> None:
        data = json.loads(_complete(json_mode=True))
        terms = {t["term"] for t in data["terms"]}
        assert all(q["answer"] in terms for q in data["questions"])

    def test_text_mode_returns_category_name(self) -> None:
        assert _complete(json_mode=False) == "General"
