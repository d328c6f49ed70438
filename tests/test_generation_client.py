"""
Tests for the generation services and the client adapter around them.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from chapterbook.ai_generation import ReplicateImageGenerator, normalize_image_outputs
from chapterbook.common import (
    ChatResult,
    CompletionResponseError,
    FailureKind,
    GenerationResult,
    call_chat_completion,
    prompt_messages,
)
from chapterbook.pipeline import BookGenerationClient
from chapterbook.story_generation import (
    ArtStyle,
    BookOutlineGenerator,
    ChapterTextGenerator,
    parse_outline_json,
)

from conftest import make_outline

OUTLINE_JSON = json.dumps(
    [
        {"chapter_title": "L'Arrivo", "image_prompt": "A ship docking at dawn, watercolor."},
        {"chapter_title": "La Tempesta", "image_prompt": "A storm over the sea, watercolor."},
    ]
)


def chat(text):
    return MagicMock(return_value=ChatResult(text=text, raw={}))


def make_client(completion_fn=None, image_generator=None):
    return BookGenerationClient(
        completion_fn=completion_fn or chat(OUTLINE_JSON),
        text_model="test-model",
        text_api_key="key",
        image_generator=image_generator or MagicMock(),
    )


class TestOutlineParsing:
    def test_plain_array(self):
        assert len(parse_outline_json(OUTLINE_JSON)) == 2

    def test_fenced_json(self):
        assert len(parse_outline_json(f"```json\n{OUTLINE_JSON}\n```")) == 2

    def test_wrapped_object(self):
        payload = json.dumps({"chapters": json.loads(OUTLINE_JSON)})
        assert len(parse_outline_json(payload)) == 2

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_outline_json("not json")


class TestBookGenerationClient:
    def test_outline_success_without_count_validation(self):
        client = make_client()

        result = client.synthesize_outline("Il Faro", "Avventura", 5, ArtStyle.WATERCOLOR, "Italiano")

        assert result.ok
        assert [entry.chapter_title for entry in result.value] == ["L'Arrivo", "La Tempesta"]

    def test_outline_prompt_carries_parameters(self):
        completion = chat(OUTLINE_JSON)
        make_client(completion_fn=completion).synthesize_outline(
            "Il Faro", "Avventura", 2, ArtStyle.WATERCOLOR, "Italiano"
        )

        kwargs = completion.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["api_key"] == "key"
        user_prompt = kwargs["messages"][1]["content"]
        assert "Il Faro" in user_prompt
        assert "Watercolor" in user_prompt
        assert "Italiano" in user_prompt

    def test_outline_unparseable_response_is_failure(self):
        result = make_client(completion_fn=chat("sorry, no")).synthesize_outline(
            "T", "G", 2, ArtStyle.ANIME, "English"
        )
        assert not result.ok
        assert result.failure.stage == "outline"
        assert result.failure.kind is FailureKind.INVALID_RESPONSE

    def test_backend_exception_becomes_failure(self):
        completion = MagicMock(side_effect=RuntimeError("service unavailable"))
        result = make_client(completion_fn=completion).synthesize_chapter_text(
            "T", "Chapter", make_outline(2), 0, 500, "English"
        )
        assert not result.ok
        assert result.failure.kind is FailureKind.BACKEND_ERROR
        assert "service unavailable" in result.failure.message

    def test_timeout_is_classified(self):
        completion = MagicMock(side_effect=TimeoutError("slow"))
        result = make_client(completion_fn=completion).synthesize_chapter_text(
            "T", "Chapter", make_outline(2), 0, 500, "English"
        )
        assert result.failure.kind is FailureKind.TIMEOUT

    def test_blank_chapter_text_is_failure(self):
        result = make_client(completion_fn=chat("   ")).synthesize_chapter_text(
            "T", "Chapter", make_outline(2), 0, 500, "English"
        )
        assert result.failure.kind is FailureKind.EMPTY_RESPONSE

    def test_chapter_prompt_only_mentions_earlier_titles(self):
        completion = chat("It was a dark night.")
        outline = make_outline(4)
        result = make_client(completion_fn=completion).synthesize_chapter_text(
            "T", outline[2].chapter_title, outline, 2, 1148, "Deutsch"
        )

        assert result.value == "It was a dark night."
        user_prompt = completion.call_args.kwargs["messages"][1]["content"]
        assert "Chapter 3" in user_prompt
        assert "Chapter Title 1" in user_prompt
        assert "Chapter Title 2" in user_prompt
        assert "Chapter Title 4" not in user_prompt
        assert "1148 words" in user_prompt

    def test_first_chapter_has_no_continuity_block(self):
        completion = chat("Text.")
        outline = make_outline(3)
        make_client(completion_fn=completion).synthesize_chapter_text(
            "T", outline[0].chapter_title, outline, 0, 574, "English"
        )
        assert "Previous chapters" not in completion.call_args.kwargs["messages"][1]["content"]

    def test_image_success_and_failures(self):
        images = MagicMock()
        images.generate_image.side_effect = ["https://img/1.jpg", None, RuntimeError("nsfw")]
        client = make_client(image_generator=images)

        assert client.synthesize_chapter_image("p").value == "https://img/1.jpg"
        assert client.synthesize_chapter_image("p").failure.kind is FailureKind.EMPTY_RESPONSE
        assert client.synthesize_chapter_image("p").failure.kind is FailureKind.BACKEND_ERROR


class TestGenerationResult:
    def test_requires_exactly_one_side(self):
        with pytest.raises(ValueError):
            GenerationResult()

    def test_empty_list_is_a_value(self):
        assert GenerationResult.success([]).ok


class TestServices:
    def test_outline_generator_env_fallbacks(self, monkeypatch):
        monkeypatch.setenv("CHAPTERBOOK_OUTLINE_MODEL", "env-model")
        assert BookOutlineGenerator(completion_fn=chat("[]")).model == "env-model"

    def test_chapter_generator_forwards_timeout(self):
        completion = chat("Body")
        ChapterTextGenerator(completion_fn=completion, model="m", request_timeout=12.5).write_chapter(
            book_title="T",
            chapter_title="C",
            outline=make_outline(1),
            chapter_index=0,
            target_word_count=574,
            language="English",
        )
        assert completion.call_args.kwargs["timeout"] == 12.5

    def test_call_chat_completion_payload(self):
        response = {
            "model": "m-2024",
            "choices": [{"message": {"content": "  hello  "}, "finish_reason": "stop"}],
        }
        with patch("chapterbook.common.llm.completion", return_value=response) as completion:
            result = call_chat_completion(
                model="m", messages=prompt_messages("sys", "hi"), temperature=0.5, timeout=3.0
            )

        assert result.text == "hello"
        assert result.model == "m-2024"
        assert not result.truncated
        assert completion.call_args.kwargs == {
            "model": "m",
            "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
            "temperature": 0.5,
            "timeout": 3.0,
        }

    def test_call_chat_completion_bad_response(self):
        with patch("chapterbook.common.llm.completion", return_value={"choices": []}):
            with pytest.raises(CompletionResponseError):
                call_chat_completion(model="m", messages=[])

    def test_malformed_reply_is_an_invalid_response(self):
        completion = MagicMock(side_effect=CompletionResponseError("no message"))
        client = make_client(completion_fn=completion)

        result = client.synthesize_chapter_text("T", "C", make_outline(1), 0, 574, "English")

        assert result.failure.kind is FailureKind.INVALID_RESPONSE

    def test_truncated_chapter_is_logged(self, caplog):
        completion = MagicMock(return_value=ChatResult(text="Cut off", raw={}, finish_reason="length"))
        writer = ChapterTextGenerator(completion_fn=completion, model="m")

        with caplog.at_level("WARNING", logger="chapterbook.story_generation.chapter_writer"):
            text = writer.write_chapter(
                book_title="T",
                chapter_title="The Storm",
                outline=make_outline(1),
                chapter_index=0,
                target_word_count=574,
                language="English",
            )

        assert text == "Cut off"
        assert "token limit" in caplog.text


class TestReplicateImageGenerator:
    def test_runs_model_and_returns_first_url(self):
        replicate_client = MagicMock()
        replicate_client.run.return_value = ["https://img/a.jpg", "https://img/b.jpg"]
        generator = ReplicateImageGenerator(
            client=replicate_client, model_identifier="black-forest-labs/flux-schnell"
        )

        url = generator.generate_image("A castle on a cloud.", seed=7)

        assert url == "https://img/a.jpg"
        model, = replicate_client.run.call_args.args
        payload = replicate_client.run.call_args.kwargs["input"]
        assert model == "black-forest-labs/flux-schnell"
        assert payload["prompt"].startswith("A castle on a cloud.")
        assert payload["aspect_ratio"] == "16:9"
        assert payload["seed"] == 7

    def test_unknown_model_rejected(self):
        generator = ReplicateImageGenerator(client=MagicMock(), model_identifier="someone/unknown")
        with pytest.raises(ValueError, match="not configured"):
            generator.generate_image("prompt")

    def test_empty_output(self):
        replicate_client = MagicMock()
        replicate_client.run.return_value = []
        generator = ReplicateImageGenerator(client=replicate_client, model_identifier="google/imagen-3")
        assert generator.generate_image("prompt") is None

    def test_requires_token_without_client(self, monkeypatch):
        monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
        with pytest.raises(ValueError):
            ReplicateImageGenerator()

    def test_normalize_outputs(self):
        file_output = MagicMock()
        file_output.url = "https://img/file.png"
        assert normalize_image_outputs([file_output]) == ["https://img/file.png"]
        assert normalize_image_outputs("https://img/x.png") == ["https://img/x.png"]
        assert normalize_image_outputs(None) == []
