from __future__ import annotations

import json
import logging

import pytest

from fixtures import ChatClientFactory, fenced_json, question_payload
from quizmaster.provider import generation
from quizmaster.provider.fallback import FALLBACK_TABLE
from quizmaster.provider.generation import (
    GenerationError,
    build_prompt,
    build_stages,
    chat_completion_stage,
    generate_questions,
    parse_questions,
    strip_code_fences,
)


def test_build_prompt_mentions_subject_difficulty_and_count():
    prompt = build_prompt("History", "Hard", 7)
    assert (
        "Generate 7 multiple-choice questions about History at a Hard "
        "difficulty level" in prompt
    )
    assert '"correctAnswer"' in prompt


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('```\n[1]\n```', "[1]"),
        ('  {"a": 1}  ', '{"a": 1}'),
        ("", ""),
    ],
)
def test_strip_code_fences(raw, expected):
    assert strip_code_fences(raw) == expected


def test_parse_questions_accepts_fenced_object():
    questions = parse_questions(fenced_json({"questions": question_payload(2)}))
    assert [q.question for q in questions] == ["Q1?", "Q2?"]


def test_parse_questions_truncates_to_limit():
    questions = parse_questions(
        json.dumps({"questions": question_payload(5)}), limit=3
    )
    assert len(questions) == 3


def test_parse_questions_rejects_bare_list():
    with pytest.raises(GenerationError, match="not a JSON object"):
        parse_questions(json.dumps(question_payload(2)))


def test_parse_questions_skips_invalid_items():
    items = question_payload(2)
    items.insert(1, {"question": "broken", "options": ["a"], "correctAnswer": "a"})
    questions = parse_questions(json.dumps({"questions": items}))
    assert [q.question for q in questions] == ["Q1?", "Q2?"]


@pytest.mark.parametrize(
    "content, message",
    [
        ("", "empty"),
        ("not json at all", "not valid JSON"),
        ('{"items": []}', "no questions"),
        ('{"questions": []}', "no questions"),
        ('{"questions": [{"question": "x"}]}', "no valid questions"),
    ],
)
def test_parse_questions_errors(content, message):
    with pytest.raises(GenerationError, match=message):
        parse_questions(content)


def test_chat_completion_stage_sends_prompt(chat_client):
    chat_client.queue_response("  payload  ")
    generate = chat_completion_stage(
        chat_client, model="m-1", temperature=0.2, max_tokens=99
    )

    assert generate("the prompt") == "payload"
    call = chat_client.calls[0]
    assert call["model"] == "m-1"
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 99
    assert call["messages"][-1] == {"role": "user", "content": "the prompt"}


def test_chat_completion_stage_rejects_empty_content(chat_client):
    chat_client.queue_response(None)
    generate = chat_completion_stage(chat_client, model="m-1")
    with pytest.raises(GenerationError, match="empty"):
        generate("prompt")


def test_generate_uses_primary_when_it_succeeds(make_stage):
    prompts: list[str] = []
    primary = make_stage(
        "primary",
        text=json.dumps({"questions": question_payload(4)}),
        prompts=prompts,
    )
    secondary = make_stage("secondary", error=AssertionError("not reached"))

    result = generate_questions("Science", "Easy", 3, [primary, secondary])

    assert result.source == "primary-service"
    assert len(result.questions) == 3
    assert "about Science at a Easy difficulty" in prompts[0]


def test_generate_falls_through_to_secondary(make_stage, caplog):
    primary = make_stage("primary", error=TimeoutError("slow"))
    secondary = make_stage(
        "secondary", text=fenced_json({"questions": question_payload(2)})
    )

    with caplog.at_level(logging.WARNING, logger=generation.__name__):
        result = generate_questions("History", "Hard", 2, [primary, secondary])

    assert result.source == "secondary-service"
    assert [q.question for q in result.questions] == ["Q1?", "Q2?"]
    assert any("primary" in rec.getMessage() for rec in caplog.records)


def test_generate_treats_unparseable_output_as_failure(make_stage):
    primary = make_stage("primary", text="Sorry, I cannot help with that.")
    secondary = make_stage(
        "secondary", text=json.dumps({"questions": question_payload(1)})
    )

    result = generate_questions("History", "Hard", 1, [primary, secondary])

    assert result.source == "secondary-service"


def test_generate_treats_bare_array_as_stage_failure(make_stage):
    bare = json.dumps(question_payload(3))
    assert (
        generate_questions("History", "Easy", 3, [make_stage("primary", text=bare)]).source
        == "fallback"
    )

    result = generate_questions(
        "History",
        "Easy",
        3,
        [
            make_stage("primary", text=bare),
            make_stage(
                "secondary", text=json.dumps({"questions": question_payload(3)})
            ),
        ],
    )
    assert result.source == "secondary-service"


def test_generate_uses_fallback_when_all_stages_fail(make_stage):
    stages = [
        make_stage("primary", error=RuntimeError("down")),
        make_stage("secondary", text=""),
    ]

    result = generate_questions("Mathematics", "Medium", 4, stages)

    assert result.source == "fallback"
    assert result.questions == list(FALLBACK_TABLE["Mathematics"][:4])


def test_generate_without_stages_uses_fallback():
    result = generate_questions("Chemistry", "Easy", 2, [])
    assert result.source == "fallback"
    assert result.to_dict()["questions"][0]["correctAnswer"] == "Au"


def test_build_stages_skips_disabled_and_unconfigured(monkeypatch, settings):
    factory = ChatClientFactory()
    monkeypatch.setattr("quizmaster.core.ai.OpenAI", factory)

    stages = build_stages(settings.generation, env={"GEMINI_API_KEY": "g"})

    assert [stage.name for stage in stages] == ["secondary"]
    assert stages[0].source == "secondary-service"
    client = factory.last
    assert client.init_kwargs["api_key"] == "g"
    assert client.init_kwargs["base_url"].startswith(
        "https://generativelanguage.googleapis.com"
    )

    client.queue_response(json.dumps({"questions": question_payload(1)}))
    result = generate_questions("Science", "Easy", 1, stages)
    assert result.source == "secondary-service"
    assert client.calls[0]["model"] == "gemini-1.5-flash"


def test_build_stages_orders_primary_first(monkeypatch, settings):
    monkeypatch.setattr("quizmaster.core.ai.OpenAI", ChatClientFactory())
    stages = build_stages(
        settings.generation,
        env={"OPENAI_API_KEY": "o", "GEMINI_API_KEY": "g"},
    )
    assert [stage.source for stage in stages] == [
        "primary-service",
        "secondary-service",
    ]
