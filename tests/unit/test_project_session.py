"""Tests for the project session."""

from brandscene.models.schemas import BrandAsset
from brandscene.services.project_session import ProjectSession
from brandscene.utils.parallel_executor import ParallelExecutor


def test_claim_first_unused():
    """Test earlier claims are skipped by later scenes."""
    session = ProjectSession("proj-1")

    assert session.claim_first_unused(["a", "b"]) == "a"
    assert session.claim_first_unused(["a", "b"]) == "b"
    assert session.claim_first_unused(["a", "b"]) is None
    assert session.used_count == 2


def test_mark_used():
    session = ProjectSession()
    session.mark_used("stock-7")

    assert session.is_used("stock-7")
    assert session.claim_first_unused(["stock-7", "stock-8"]) == "stock-8"


def test_reset_clears_state_and_switches_project():
    """Test reset forgets used items and cached logos."""
    session = ProjectSession("old")
    session.mark_used("x")
    session.cache_logo("primary-default", BrandAsset(id="l1", url="https://cdn.example.com/l1.png"))

    session.reset("new")

    assert session.snapshot() == {"project_id": "new", "used_stock_ids": [], "cached_logos": []}
    assert session.get_cached_logo("primary-default") is None


def test_reset_keeps_project_id_when_omitted():
    session = ProjectSession("keep")
    session.reset()

    assert session.project_id == "keep"


def test_concurrent_claims_never_share_an_item(settings, logger):
    """Test parallel scenes claim distinct stock items."""
    session = ProjectSession()
    candidates = [f"stock-{i}" for i in range(5)]
    executor = ParallelExecutor(settings, logger)

    results = executor.execute_batch([lambda: session.claim_first_unused(candidates)] * 5, max_workers=5)

    claimed = [result for result, _ in results]
    assert sorted(claimed) == candidates
