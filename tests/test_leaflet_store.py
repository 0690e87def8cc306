from types import SimpleNamespace
from unittest import mock

from bula_service.services.leaflet_store import FirestoreLeafletStore, record_from_document


def _snapshot(doc_id, data):
    return SimpleNamespace(id=doc_id, to_dict=lambda: data)


def _store_with_results(results):
    client = mock.Mock()
    collection = client.collection.return_value
    collection.where.return_value.limit.return_value.stream.return_value = iter(results)
    return FirestoreLeafletStore(client, collection="medicamentos"), client, collection


def test_record_from_document_maps_stored_fields():
    record = record_from_document("abc", {
        "nome_medicamento": "Paracetamol",
        "nomes_alternativos": ["tylenol"],
        "bula_completa": "Texto da bula",
        "resumos": {},
    })

    assert record.key == "abc"
    assert record.official_name == "Paracetamol"
    assert record.alternate_names == ["tylenol"]
    assert record.full_text == "Texto da bula"
    assert record.summary is None


def test_find_by_official_name_uses_limit_one():
    data = {"nome_medicamento": "Paracetamol", "bula_completa": "..."}
    store, client, collection = _store_with_results([_snapshot("doc-1", data)])

    record = store.find_by_official_name("Paracetamol")

    assert record.key == "doc-1"
    client.collection.assert_called_once_with("medicamentos")
    collection.where.return_value.limit.assert_called_once_with(1)
    field_filter = collection.where.call_args.kwargs["filter"]
    assert (field_filter.field_path, field_filter.op_string, field_filter.value) == (
        "nome_medicamento", "==", "Paracetamol"
    )


def test_find_by_alternate_name_uses_array_contains():
    store, _, collection = _store_with_results([])

    assert store.find_by_alternate_name("tylenol") is None
    field_filter = collection.where.call_args.kwargs["filter"]
    assert (field_filter.field_path, field_filter.op_string, field_filter.value) == (
        "nomes_alternativos", "array_contains", "tylenol"
    )


def test_save_summary_updates_only_summary_field():
    store, _, collection = _store_with_results([])

    store.save_summary("doc-1", {"usage": "Via oral."})

    collection.document.assert_called_once_with("doc-1")
    collection.document.return_value.update.assert_called_once_with({"resumos": {"usage": "Via oral."}})
