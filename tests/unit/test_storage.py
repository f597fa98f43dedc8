"""Tests for asset repositories, blob storage and the image fetcher."""

import base64
import json
from unittest.mock import MagicMock

import pytest
import requests

from brandscene.core.config import Settings
from brandscene.core.logging_config import get_logger
from brandscene.models.schemas import AssetFilter, BrandAsset
from brandscene.services.image_fetcher import HttpImageFetcher
from brandscene.storage.blob_storage import LocalBlobStorage, to_data_uri
from brandscene.storage.repository import JsonAssetRepository, asset_matches_filter
from brandscene.utils.error_handler import ImageFetchError, RepositoryUnavailableError, UploadError


@pytest.fixture
def temp_storage_path(tmp_path):
    """Create temporary storage path."""
    return tmp_path / "test_storage"


@pytest.fixture
def catalog_path(tmp_path):
    return tmp_path / "catalog" / "assets.json"


@pytest.fixture
def json_repository(catalog_path):
    """Create JSON repository with a temp catalog."""
    return JsonAssetRepository(Settings(), get_logger(__name__), catalog_path)


# ============================================================================
# Repository
# ============================================================================


def test_save_and_query_catalog(json_repository, brand_assets, catalog_path):
    """Test saving the catalog creates the file and queries read it back."""
    json_repository.save_assets(brand_assets)

    assert catalog_path.exists()
    logos = json_repository.query_assets(AssetFilter(category="logo"))
    assert [a.id for a in logos] == ["l-primary", "l-watermark"]
    assert logos[0].width == 500


def test_query_without_criteria_returns_active_assets(json_repository, brand_assets):
    """Test an empty filter returns every active asset."""
    retired = BrandAsset(id="old", url="https://cdn.example.com/old.png", name="Old", is_active=False)
    json_repository.save_assets(brand_assets + [retired])

    assets = json_repository.query_assets(AssetFilter())

    assert len(assets) == len(brand_assets)
    assert len(json_repository.query_assets(AssetFilter(active_only=False))) == len(brand_assets) + 1


def test_missing_catalog_is_unavailable(json_repository):
    """Test a missing catalog raises RepositoryUnavailableError."""
    with pytest.raises(RepositoryUnavailableError):
        json_repository.query_assets(AssetFilter())


def test_corrupt_catalog_is_unavailable(json_repository, catalog_path):
    """Test an unreadable catalog raises RepositoryUnavailableError."""
    catalog_path.parent.mkdir(parents=True)
    catalog_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(RepositoryUnavailableError):
        json_repository.query_assets(AssetFilter())


def test_malformed_records_are_skipped(json_repository, catalog_path):
    """Test records failing validation are skipped instead of failing the query."""
    catalog_path.parent.mkdir(parents=True)
    records = [
        {"id": "ok", "url": "https://cdn.example.com/ok.png", "name": "Fine"},
        {"id": "broken"},
    ]
    catalog_path.write_text(json.dumps(records), encoding="utf-8")

    assert [a.id for a in json_repository.query_assets(AssetFilter())] == ["ok"]


def test_filter_is_inclusive_or(brand_assets):
    """Test any single matching criterion admits an asset."""
    cohosh, _, primary, _, store = brand_assets
    asset_filter = AssetFilter(types=["logo"], name_contains=["storefront"])

    assert asset_matches_filter(primary, asset_filter)
    assert asset_matches_filter(store, asset_filter)
    assert not asset_matches_filter(cohosh, asset_filter)


# ============================================================================
# Blob storage
# ============================================================================


def test_upload_writes_file(temp_storage_path):
    """Test uploading stores the blob and returns a file URI."""
    storage = LocalBlobStorage(Settings(blob_storage_path=str(temp_storage_path)), get_logger(__name__))

    url = storage.upload(b"png-bytes", "compositions/composed-scene_1-1.png", "image/png")

    stored = temp_storage_path / "compositions" / "composed-scene_1-1.png"
    assert stored.read_bytes() == b"png-bytes"
    assert url.startswith("file://")


def test_upload_uses_public_base_url(temp_storage_path):
    """Test a configured public base URL prefixes the key."""
    settings = Settings(
        blob_storage_path=str(temp_storage_path),
        blob_public_base_url="https://cdn.example.com/media/",
    )
    storage = LocalBlobStorage(settings, get_logger(__name__))

    url = storage.upload(b"x", "compositions/a b.png", "image/png")

    assert url == "https://cdn.example.com/media/compositions/a-b.png"


def test_upload_rejects_path_traversal(temp_storage_path):
    """Test keys escaping the storage root are refused."""
    storage = LocalBlobStorage(Settings(blob_storage_path=str(temp_storage_path)), get_logger(__name__))

    with pytest.raises(UploadError):
        storage.upload(b"x", "../outside.png", "image/png")


def test_to_data_uri():
    assert to_data_uri(b"abc", "image/png") == "data:image/png;base64,YWJj"


# ============================================================================
# Image fetcher
# ============================================================================


def _response(status: int, content: bytes, url: str = "https://img.example.com/a.png") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.url = url
    return response


def _fetcher(response=None, error=None) -> tuple[HttpImageFetcher, MagicMock]:
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return HttpImageFetcher(Settings(image_fetch_timeout=3), get_logger(__name__), session=session), session


def test_fetch_returns_content():
    """Test a successful download returns the body."""
    fetcher, session = _fetcher(_response(200, b"image-bytes"))

    assert fetcher.fetch("https://img.example.com/a.png") == b"image-bytes"
    session.get.assert_called_once_with("https://img.example.com/a.png", timeout=3)


def test_fetch_http_error_carries_status():
    """Test non-2xx responses raise ImageFetchError with the status code."""
    fetcher, _ = _fetcher(_response(404, b""))

    with pytest.raises(ImageFetchError) as exc_info:
        fetcher.fetch("https://img.example.com/a.png")

    assert exc_info.value.status == 404


def test_fetch_transport_error():
    """Test connection failures raise ImageFetchError."""
    fetcher, _ = _fetcher(error=requests.ConnectionError("refused"))

    with pytest.raises(ImageFetchError):
        fetcher.fetch("https://img.example.com/a.png")


def test_fetch_empty_body():
    fetcher, _ = _fetcher(_response(200, b""))

    with pytest.raises(ImageFetchError):
        fetcher.fetch("https://img.example.com/a.png")


@pytest.mark.parametrize("url", ["", "placeholder:bg", "ftp://img.example.com/a.png", "data:image/png,abc"])
def test_fetch_rejects_invalid_urls(url):
    """Test placeholders, unsupported schemes and non-base64 data URIs are rejected."""
    fetcher, session = _fetcher(_response(200, b"x"))

    with pytest.raises(ImageFetchError):
        fetcher.fetch(url)
    session.get.assert_not_called()


def test_fetch_data_uri():
    """Test base64 data URIs are decoded locally."""
    fetcher, session = _fetcher()
    payload = base64.b64encode(b"inline").decode("ascii")

    assert fetcher.fetch(f"data:image/png;base64,{payload}") == b"inline"
    session.get.assert_not_called()
