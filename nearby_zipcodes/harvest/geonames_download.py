"""GeoNames postal code dataset acquisition with on-disk caching."""

from __future__ import annotations

import io
import zipfile
import zlib
from pathlib import Path

from nearby_zipcodes.common.diagnostics import DiagnosticLog
from nearby_zipcodes.common.errors import AcquisitionError
from nearby_zipcodes.common.fs import write_bytes
from nearby_zipcodes.common.http import HttpClient, HttpRequestError


def cache_path_for(source_config: dict, data_dir: Path) -> Path:
    return data_dir / "cache" / source_config["cache_filename"]


def _read_cache(cache_path: Path, diagnostics: DiagnosticLog) -> bytes | None:
    if not cache_path.exists():
        return None
    try:
        return cache_path.read_bytes()
    except OSError as exc:
        diagnostics.append(f"could not read cached zipcode data {cache_path}: {exc}", event="CACHE_READ_FAIL")
        return None


def fetch_dataset(
    source_config: dict,
    data_dir: Path,
    diagnostics: DiagnosticLog,
    http_client: HttpClient | None = None,
) -> bytes:
    """Return the zipped dataset, from the cache when allowed, else from the network."""
    cache_path = cache_path_for(source_config, data_dir)
    use_cache = source_config["use_cache"]
    if use_cache:
        cached = _read_cache(cache_path, diagnostics)
        if cached is not None:
            return cached

    owns_client = http_client is None
    client = http_client or HttpClient()
    try:
        payload = client.get_bytes(source_config["url"])
    except HttpRequestError as exc:
        diagnostics.append(f"could not download zipcode data: {exc}", event="DOWNLOAD_FAIL", error_code=exc.error_code)
        raise AcquisitionError(f"Could not download {source_config['url']}") from exc
    finally:
        if owns_client:
            client.close()

    if use_cache:
        try:
            write_bytes(cache_path, payload)
        except OSError as exc:
            diagnostics.append(f"couldn't save cache file {cache_path}: {exc}", event="CACHE_WRITE_FAIL")

    return payload


def read_member_lines(payload: bytes, member: str, diagnostics: DiagnosticLog) -> list[str]:
    """Open the zip archive in memory and return the text lines of ``member``."""
    try:
        with zipfile.ZipFile(io.BytesIO(payload)) as archive:
            with archive.open(member) as raw:
                text = raw.read().decode("utf-8")
    except KeyError as exc:
        diagnostics.append(f"could not open {member} file from unzipped data", event="MEMBER_MISSING")
        raise AcquisitionError(f"Dataset archive has no member {member}") from exc
    except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError) as exc:
        diagnostics.append(f"could not unzip zipcode data: {exc}", event="UNZIP_FAIL")
        raise AcquisitionError("Dataset payload is not a readable zip archive") from exc
    except UnicodeDecodeError as exc:
        diagnostics.append(f"could not decode {member} as utf-8: {exc}", event="DECODE_FAIL")
        raise AcquisitionError(f"Dataset member {member} is not utf-8 text") from exc
    # Only \n ends a record; place names may hold other Unicode line breaks.
    lines = text.split("\n")
    if lines and not lines[-1]:
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]
