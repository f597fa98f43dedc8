"""Shared pytest fixtures and configuration."""

import io

import pytest
from PIL import Image

from brandscene.core.config import Settings
from brandscene.core.logging_config import get_logger
from brandscene.models.schemas import BrandAsset
from brandscene.storage.repository import InMemoryAssetRepository
from brandscene.utils.error_handler import ImageFetchError


@pytest.fixture
def settings():
    """Create test settings instance."""
    return Settings()


@pytest.fixture
def logger():
    """Create test logger instance."""
    return get_logger(__name__)


def make_png(width: int, height: int, color=(200, 60, 60, 255)) -> bytes:
    """Encode a solid-colour RGBA PNG."""
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeFetcher:
    """Image fetcher serving canned bytes by URL; unknown URLs fail like a 404."""

    def __init__(self, images: dict):
        self.images = images
        self.calls = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if url not in self.images:
            raise ImageFetchError("Failed to download image: HTTP 404", url=url, status=404)
        return self.images[url]


@pytest.fixture
def png_bytes():
    """Factory fixture producing PNG bytes of a given size."""
    return make_png


@pytest.fixture
def fake_fetcher():
    """Factory fixture building a FakeFetcher from a URL -> bytes mapping."""
    return FakeFetcher


@pytest.fixture
def brand_assets():
    """A small brand catalog covering products, logos and locations."""
    return [
        BrandAsset(
            id="p-cohosh",
            url="https://cdn.example.com/black-cohosh.png",
            name="Black Cohosh Extract Bottle",
            description="Black cohosh tincture bottle, front label",
            asset_type="products-hero",
            category="product",
            keywords=["product", "black cohosh", "bottle"],
            priority=2,
            mime_type="image/png",
            entity_type="product",
            entity_name="Black Cohosh",
            width=600,
            height=900,
        ),
        BrandAsset(
            id="p-sleep",
            url="https://cdn.example.com/deep-sleep.jpg",
            name="Deep Sleep Capsules",
            description="Deep sleep supplement jar",
            asset_type="products-lifestyle",
            category="product",
            keywords=["product", "deep sleep"],
            entity_type="product",
            entity_name="Deep Sleep",
        ),
        BrandAsset(
            id="l-primary",
            url="https://cdn.example.com/logo-primary.png",
            name="Pine Hill Farm Primary Logo",
            description="Full color primary logo",
            asset_type="logo-primary-color",
            category="logo",
            keywords=["logo", "primary"],
            priority=1,
            is_default=True,
            mime_type="image/png",
            width=500,
            height=250,
        ),
        BrandAsset(
            id="l-watermark",
            url="https://cdn.example.com/logo-watermark.png",
            name="PHF Watermark",
            description="Mono watermark overlay",
            asset_type="logo-watermark",
            category="logo",
            keywords=["logo", "watermark"],
            mime_type="image/png",
        ),
        BrandAsset(
            id="loc-store",
            url="https://cdn.example.com/storefront.jpg",
            name="Pine Hill Farm Storefront",
            description="Store exterior at the farm",
            asset_type="location-storefront",
            category="location",
            keywords=["store", "location"],
            entity_type="location",
        ),
    ]


@pytest.fixture
def repository(brand_assets):
    """In-memory repository over the sample catalog."""
    return InMemoryAssetRepository(brand_assets)
