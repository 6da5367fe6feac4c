from __future__ import annotations

import io
import struct
import zipfile
from pathlib import Path

import pytest

from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.errors import AcquisitionError
from nearby_zipcodes.common.http import HttpRequestError
from nearby_zipcodes.harvest.geonames_download import cache_path_for, fetch_dataset, read_member_lines

SOURCE = {
    "url": "https://download.example.test/export/zip/US.zip",
    "member": "US.txt",
    "cache_filename": "US.zip",
    "use_cache": True,
}


def _zip_bytes(members: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as archive:
        for name, text in members.items():
            archive.writestr(name, text)
    return buf.getvalue()


class FakeClient:
    def __init__(self, payload: bytes | None = None, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls: list[str] = []

    def get_bytes(self, url: str, **_kwargs) -> bytes:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.payload

    def close(self) -> None:
        pass


def test_cached_dataset_skips_network(tmp_path: Path):
    cache = cache_path_for(SOURCE, tmp_path)
    cache.parent.mkdir(parents=True)
    cache.write_bytes(b"cached")
    client = FakeClient(error=AssertionError("network must not be used"))

    assert fetch_dataset(SOURCE, tmp_path, DiagnosticLog(), http_client=client) == b"cached"
    assert client.calls == []


def test_download_populates_cache(tmp_path: Path):
    client = FakeClient(payload=b"fresh")

    assert fetch_dataset(SOURCE, tmp_path, DiagnosticLog(), http_client=client) == b"fresh"
    assert client.calls == [SOURCE["url"]]
    assert cache_path_for(SOURCE, tmp_path).read_bytes() == b"fresh"


def test_cache_disabled_always_downloads_and_never_writes(tmp_path: Path):
    source = dict(SOURCE, use_cache=False)
    cache = cache_path_for(source, tmp_path)
    client = FakeClient(payload=b"fresh")

    assert fetch_dataset(source, tmp_path, DiagnosticLog(), http_client=client) == b"fresh"
    assert not cache.exists()


def test_download_failure_is_fatal_and_logged(tmp_path: Path):
    diagnostics = DiagnosticLog()
    client = FakeClient(error=HttpRequestError("HTTP status: 404"))

    with pytest.raises(AcquisitionError):
        fetch_dataset(SOURCE, tmp_path, diagnostics, http_client=client)
    assert diagnostics.records == ["could not download zipcode data: HTTP status: 404"]


def test_cache_write_failure_is_not_fatal(tmp_path: Path):
    blocker = tmp_path / "cache"
    blocker.write_text("not a directory", encoding="utf-8")
    diagnostics = DiagnosticLog()

    payload = fetch_dataset(SOURCE, tmp_path, diagnostics, http_client=FakeClient(payload=b"fresh"))

    assert payload == b"fresh"
    assert len(diagnostics) == 1
    assert diagnostics.records[0].startswith("couldn't save cache file")


def test_read_member_lines_returns_member_text():
    payload = _zip_bytes({"readme.txt": "ignore me", "US.txt": "a\tb\nc\td\n"})
    assert read_member_lines(payload, "US.txt", DiagnosticLog()) == ["a\tb", "c\td"]


def test_read_member_lines_rejects_missing_member():
    diagnostics = DiagnosticLog()
    with pytest.raises(AcquisitionError):
        read_member_lines(_zip_bytes({"readme.txt": "x"}), "US.txt", diagnostics)
    assert diagnostics.records == ["could not open US.txt file from unzipped data"]


def test_read_member_lines_rejects_non_zip_payload():
    with pytest.raises(AcquisitionError):
        read_member_lines(b"<html>not found</html>", "US.txt", DiagnosticLog())


def _corrupted_deflate_zip(member: str, text: str) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(member, text)
    data = bytearray(buf.getvalue())
    with zipfile.ZipFile(io.BytesIO(bytes(data))) as archive:
        info = archive.getinfo(member)
    header = info.header_offset
    name_len, extra_len = struct.unpack("<HH", data[header + 26 : header + 30])
    start = header + 30 + name_len + extra_len
    for offset in range(start, start + info.compress_size):
        data[offset] ^= 0xFF
    return bytes(data)


def test_read_member_lines_rejects_corrupted_member_data():
    diagnostics = DiagnosticLog()
    payload = _corrupted_deflate_zip("US.txt", "US\t99553\tAkutan\n" * 200)

    with pytest.raises(AcquisitionError):
        read_member_lines(payload, "US.txt", diagnostics)
    assert len(diagnostics.records) == 1
    assert diagnostics.records[0].startswith("could not unzip zipcode data")


def test_read_member_lines_splits_only_on_newlines():
    text = "US\tAnchorage\u2028East\tx\r\nUS\tNome\x0cNorth\ty\n\nlast"
    payload = _zip_bytes({"US.txt": text})

    assert read_member_lines(payload, "US.txt", DiagnosticLog()) == [
        "US\tAnchorage\u2028East\tx",
        "US\tNome\x0cNorth\ty",
        "",
        "last",
    ]
