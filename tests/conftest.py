from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from contractflow.core.errors import ParserError, StorageFetchError, StorageWriteError
from contractflow.services.parsing.pipeline import ContractParsingPipeline
from contractflow.services.parsing.vision_parser import to_data_uri


PDF_BYTES = b"%PDF-1.7 fake contract body"


# ------------------------------------------------------------
# Pipeline collaborators (in-memory)
# ------------------------------------------------------------

class FakeStorage:
    def __init__(self, data: Optional[bytes] = PDF_BYTES, fail_upload: bool = False):
        self.data = data
        self.fail_upload = fail_upload
        self.downloads: List[str] = []
        self.uploads: Dict[str, Dict[str, Any]] = {}

    def download(self, storage_path: str):
        self.downloads.append(storage_path)
        if self.data is None:
            raise StorageFetchError(f"Could not download {storage_path}: not found")
        return self.data, "application/pdf"

    def upload_json(self, *, storage_key: str, payload: Dict[str, Any]) -> str:
        if self.fail_upload:
            raise StorageWriteError("Storage upload failed: bucket offline")
        self.uploads[storage_key] = payload
        return storage_key


class FakeContracts:
    def __init__(self, matched: int = 1, error: Optional[Exception] = None):
        self.matched = matched
        self.error = error
        self.updates: List[Dict[str, Any]] = []

    def update_summary(self, **kwargs) -> int:
        self.updates.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.matched


class FakePrimary:
    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[str] = []

    async def parse(self, data: bytes, mime_type: str):
        self.calls.append(mime_type)
        if self.error is not None:
            raise self.error
        return self.result


class FakeConverter:
    def __init__(self, images: Optional[List[str]] = None):
        self.images = images
        self.calls = 0

    async def convert(self, data: bytes, mime_type: str):
        self.calls += 1
        return self.images or [to_data_uri(data, mime_type)]


class FakeVision:
    def __init__(self, result: Optional[Dict[str, Any]] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[List[str]] = []

    async def parse(self, images: List[str]):
        self.calls.append(images)
        if self.error is not None:
            raise self.error
        return self.result


def make_pipeline(
    *,
    storage=None,
    contracts=None,
    primary=None,
    converter=None,
    vision=None,
) -> ContractParsingPipeline:
    return ContractParsingPipeline(
        storage=storage or FakeStorage(),
        contracts=contracts or FakeContracts(),
        primary=primary or FakePrimary(result={"title": "Contract"}),
        converter=converter or FakeConverter(),
        vision=vision or FakeVision(error=ParserError("vision parser endpoint is not configured")),
    )


@pytest.fixture
def fakes():
    return SimpleNamespace(
        storage=FakeStorage(),
        contracts=FakeContracts(),
        primary=FakePrimary(result={"title": "123 Main St", "purchase_price": 450000}),
        converter=FakeConverter(),
        vision=FakeVision(result={"title": "from vision"}),
    )


# ------------------------------------------------------------
# Supabase client double (storage + table query builder)
# ------------------------------------------------------------

class FakeBucket:
    def __init__(self, store: "FakeSupabase", bucket: str):
        self.store = store
        self.bucket = bucket

    def download(self, path: str):
        if self.store.raise_on_download:
            raise RuntimeError("Object not found")
        return self.store.objects.get((self.bucket, path), b"")

    def upload(self, path: str, file: bytes, file_options: Dict[str, str]):
        if self.store.raise_on_upload:
            raise RuntimeError("The resource already exists")
        self.store.objects[(self.bucket, path)] = file
        self.store.upload_options.append(file_options)
        return SimpleNamespace(path=path)

    def create_signed_upload_url(self, path: str):
        if self.store.raise_on_upload:
            raise RuntimeError("bucket not found")
        return {
            "signed_url": f"https://storage.test/{self.bucket}/{path}?token=t0k",
            "signedUrl": f"https://storage.test/{self.bucket}/{path}?token=t0k",
            "token": "t0k",
            "path": path,
        }


class FakeQuery:
    def __init__(self, store: "FakeSupabase", table: str):
        self.store = store
        self.table = table
        self.payload: Dict[str, Any] = {}
        self.filters: Dict[str, Any] = {}

    def update(self, payload):
        self.payload = payload
        return self

    def eq(self, column, value):
        self.filters[column] = value
        return self

    def execute(self):
        self.store.executed.append(self)
        rows = [
            row
            for row in self.store.rows.get(self.table, [])
            if all(row.get(k) == v for k, v in self.filters.items())
        ]
        for row in rows:
            row.update(self.payload)
        return SimpleNamespace(data=rows)


class FakeSupabase:
    def __init__(self):
        self.objects: Dict[Any, bytes] = {}
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.executed: List[FakeQuery] = []
        self.upload_options: List[Dict[str, str]] = []
        self.raise_on_download = False
        self.raise_on_upload = False
        self.storage = SimpleNamespace(from_=lambda bucket: FakeBucket(self, bucket))

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture
def sb():
    return FakeSupabase()
