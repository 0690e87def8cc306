import json

import pytest

from bula_service.errors import InternalError
from bula_service.schemas.bula import SUMMARY_KEYS
from bula_service.services.summarizer import (
    MISSING_KEY_PLACEHOLDER,
    NOT_IN_LEAFLET,
    SummaryParseError,
    SummaryProvider,
    build_summary_prompt,
    finalize_summary,
    normalize_cached_summary,
    parse_summary_json,
)

from conftest import FULL_TEXT, GENERATED_SUMMARY, FakeChatClient, InMemoryLeafletStore, make_record


def test_fenced_and_plain_json_parse_identically():
    plain = json.dumps(GENERATED_SUMMARY, ensure_ascii=False)
    fenced = "```json\n" + plain + "\n```"

    assert parse_summary_json(fenced) == parse_summary_json(plain) == GENERATED_SUMMARY


def test_fenced_block_surrounded_by_prose():
    text = "Aqui está o resumo:\n```json\n{\"usage\": \"Via oral.\"}\n```\nEspero ter ajudado."
    assert parse_summary_json(text) == {"usage": "Via oral."}


@pytest.mark.parametrize("text", ["", "Desculpe, não consegui.", "```json\n{broken\n```", "[1, 2, 3]"])
def test_unparseable_answers_raise_parse_error(text):
    with pytest.raises(SummaryParseError):
        parse_summary_json(text)


def test_finalize_backfills_drops_and_stringifies():
    summary = finalize_summary({
        "contraindications": "Alergia.",
        "usage": None,
        "dosage": ["1 comprimido", "a cada 8 horas"],
        "adverseReactions": "Náuseas.",
        "extra": "ignored",
    })

    assert list(summary) == list(SUMMARY_KEYS)
    assert summary["usage"] == MISSING_KEY_PLACEHOLDER
    assert summary["risksAndPrecautions"] == MISSING_KEY_PLACEHOLDER
    assert summary["dosage"] == '["1 comprimido", "a cada 8 horas"]'
    assert "extra" not in summary


def test_prompt_embeds_leaflet_text_and_default_phrase():
    prompt = build_summary_prompt(FULL_TEXT)

    assert FULL_TEXT in prompt
    assert NOT_IN_LEAFLET in prompt
    for key in SUMMARY_KEYS:
        assert f'"{key}"' in prompt


def test_cached_summary_is_returned_without_generation():
    cached = dict(GENERATED_SUMMARY)
    record = make_record(summary=cached)
    client = FakeChatClient()
    store = InMemoryLeafletStore([record])

    result = SummaryProvider(client, store).get_summary(record)

    assert result.source == "cached"
    assert result.summary == cached
    assert client.calls == []
    assert store.saved == []


def test_generates_persists_then_hits_cache(record, store):
    client = FakeChatClient(json.dumps(GENERATED_SUMMARY))
    provider = SummaryProvider(client, store, model="test-model")

    first = provider.get_summary(record)
    second = provider.get_summary(record)

    assert first.source == "generated"
    assert second.source == "cached"
    assert json.dumps(second.summary) == json.dumps(first.summary)
    assert len(client.calls) == 1
    assert client.calls[0]["model"] == "test-model"
    assert store.saved == [("doc-paracetamol", GENERATED_SUMMARY)]
    assert store.records["doc-paracetamol"].summary == GENERATED_SUMMARY


def test_missing_key_is_backfilled_and_request_succeeds(record, store):
    partial = {key: value for key, value in GENERATED_SUMMARY.items() if key != "dosage"}
    client = FakeChatClient("```json\n" + json.dumps(partial) + "\n```")

    result = SummaryProvider(client, store).get_summary(record)

    assert result.source == "generated"
    assert result.summary["dosage"] == MISSING_KEY_PLACEHOLDER
    assert store.saved[0][1]["dosage"] == MISSING_KEY_PLACEHOLDER


@pytest.mark.parametrize("full_text", [None, "", "   "])
def test_missing_full_text_is_internal(full_text):
    record = make_record(full_text=full_text)
    client = FakeChatClient()

    with pytest.raises(InternalError):
        SummaryProvider(client, InMemoryLeafletStore([record])).get_summary(record)
    assert client.calls == []


def test_non_json_answer_is_internal_and_nothing_saved(record, store):
    with pytest.raises(InternalError):
        SummaryProvider(FakeChatClient("Não consigo resumir."), store).get_summary(record)
    assert store.saved == []


def test_generation_failure_is_internal(record, store):
    with pytest.raises(InternalError):
        SummaryProvider(FakeChatClient(ConnectionError("down")), store).get_summary(record)
    assert store.saved == []


def test_save_failure_is_internal(record):
    store = InMemoryLeafletStore([record])
    store.error = RuntimeError("permission denied")

    with pytest.raises(InternalError):
        SummaryProvider(FakeChatClient(json.dumps(GENERATED_SUMMARY)), store).get_summary(record)


def test_legacy_cached_summary_is_mapped_to_current_keys():
    record = make_record(summary={"contraindicacoes": "Alergia.", "como_usar": "Via oral."})
    client = FakeChatClient()
    store = InMemoryLeafletStore([record])

    result = SummaryProvider(client, store).get_summary(record)

    assert result.source == "cached"
    assert list(result.summary) == list(SUMMARY_KEYS)
    assert result.summary["contraindications"] == "Alergia."
    assert result.summary["usage"] == "Via oral."
    assert result.summary["dosage"] == MISSING_KEY_PLACEHOLDER
    assert client.calls == []
    assert store.saved == []
    # stored document is left as it was
    assert record.summary == {"contraindicacoes": "Alergia.", "como_usar": "Via oral."}


def test_normalize_keeps_current_summary_unchanged():
    assert json.dumps(normalize_cached_summary(dict(GENERATED_SUMMARY))) == json.dumps(GENERATED_SUMMARY)
