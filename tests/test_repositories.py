import json
from datetime import datetime, timezone

import pytest

from contractflow.core.errors import StorageFetchError, StorageWriteError
from contractflow.repositories.contract_repo import ContractRepository
from contractflow.repositories.storage_repo import StorageRepository


def test_download_returns_bytes_and_guessed_mime(sb):
    sb.objects[("contracts", "u1/contract.pdf")] = b"%PDF"
    sb.objects[("contracts", "u1/scan.png")] = b"\x89PNG"
    sb.objects[("contracts", "u1/noext")] = b"data"
    storage = StorageRepository(sb, "contracts")

    assert storage.download("u1/contract.pdf") == (b"%PDF", "application/pdf")
    assert storage.download("u1/scan.png") == (b"\x89PNG", "image/png")
    assert storage.download("u1/noext") == (b"data", "application/pdf")


def test_download_missing_or_erroring_object(sb):
    storage = StorageRepository(sb, "contracts")

    with pytest.raises(StorageFetchError, match="empty or missing"):
        storage.download("u1/missing.pdf")

    sb.raise_on_download = True
    with pytest.raises(StorageFetchError, match="Object not found"):
        storage.download("u1/contract.pdf")


def test_upload_json_serializes_datetimes_with_upsert(sb):
    storage = StorageRepository(sb, "contracts")
    generated = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    key = storage.upload_json(
        storage_key="summaries/c-1/summary.json",
        payload={"generated_at": generated, "parsed_contract": {"title": "123 Main St"}},
    )

    assert key == "summaries/c-1/summary.json"
    stored = json.loads(sb.objects[("contracts", key)])
    assert stored["generated_at"] == "2025-03-01T12:00:00+00:00"
    assert sb.upload_options == [{"content-type": "application/json", "upsert": "true"}]


def test_upload_failure_raises_storage_write_error(sb):
    sb.raise_on_upload = True
    storage = StorageRepository(sb, "contracts")

    with pytest.raises(StorageWriteError):
        storage.upload_json(storage_key="summaries/c-1/summary.json", payload={})


def test_update_summary_is_scoped_by_owner(sb):
    sb.rows["contracts"] = [
        {"id": "c-1", "owner_id": "u1", "ai_summary": None},
        {"id": "c-1", "owner_id": "u2", "ai_summary": None},
    ]
    repo = ContractRepository(sb)

    matched = repo.update_summary(
        contract_id="c-1",
        owner_id="u1",
        ai_summary="Standard resale contract.",
        summary_path="summaries/c-1/summary.json",
    )

    assert matched == 1
    query = sb.executed[0]
    assert query.table == "contracts"
    assert query.filters == {"id": "c-1", "owner_id": "u1"}
    assert isinstance(query.payload["updated_at"], str)
    assert sb.rows["contracts"][0]["summary_path"] == "summaries/c-1/summary.json"
    assert sb.rows["contracts"][1]["ai_summary"] is None


def test_update_summary_keeps_existing_path_when_no_artifact(sb):
    repo = ContractRepository(sb)

    matched = repo.update_summary(contract_id="c-1", owner_id="nobody", ai_summary=None, summary_path=None)

    assert matched == 0
    assert "summary_path" not in sb.executed[0].payload
