"""Tests for the ingestion pipeline."""

import sqlite3
from unittest.mock import AsyncMock, patch

import pytest

from parasight.fetching.fetcher import MetadataFetcher
from parasight.main import IngestionPipeline, provenance_note, resolve_description
from parasight.storage.models import Bucket, PageMetadata, Para
from parasight.tagging.base import Classified, ClassificationFailed

from .fakes import FakeClassifier, FakeFetcher, FakeSocial


def make_pipeline(config, db, fetcher=None, social=None, classifier=None):
    return IngestionPipeline(
        config,
        db=db,
        fetcher=fetcher or FakeFetcher(),
        social=social or FakeSocial(),
        classifier=classifier or FakeClassifier(),
    )


class TestResolveDescription:
    summary = Classified(summary="One-line summary.", para=Para(Bucket.RESOURCE))

    def test_prefers_long_fetched_description(self):
        fetched = "A description that is comfortably long."
        assert resolve_description(fetched, self.summary) == fetched

    def test_short_description_replaced_by_summary(self):
        assert resolve_description("Too short", self.summary) == "One-line summary."
        assert resolve_description(None, self.summary) == "One-line summary."

    def test_keeps_fetched_when_classification_failed(self):
        failed = ClassificationFailed(reason="boom")
        assert resolve_description("Too short", failed) == "Too short"
        assert resolve_description(None, failed) is None


class TestProcessOne:
    @pytest.mark.asyncio
    async def test_stores_and_classifies(self, config, db, classifier):
        fetcher = FakeFetcher({"https://example.com/a": PageMetadata("Title A", None)})
        pipeline = make_pipeline(config, db, fetcher=fetcher, classifier=classifier)

        result = await pipeline.process_one("https://example.com/a", note="Mac Tools")

        assert result.success
        link = db.get_link_by_id(result.link_id)
        assert link.title == "Title A"
        assert link.description == "A concise summary of the link."
        assert link.source_note == "Mac Tools"
        assert link.para.bucket is Bucket.RESOURCE
        assert link.tags == ["testing"]
        assert link.subcategory == "🛠️ Tools"
        assert classifier.classify_calls == [("https://example.com/a", "Title A", None, "Mac Tools")]

    @pytest.mark.asyncio
    async def test_classifier_failure_still_stores(self, config, db, failing_classifier):
        pipeline = make_pipeline(config, db, classifier=failing_classifier)

        result = await pipeline.process_one("https://example.com/a")

        assert result.success
        link = db.get_link_by_id(result.link_id)
        assert link.para is None
        assert link.tags is None
        assert link.title == "Example Page"

    @pytest.mark.asyncio
    async def test_store_failure_is_reported(self, config, db):
        pipeline = make_pipeline(config, db)
        with patch.object(db, "store_if_absent", side_effect=sqlite3.OperationalError("disk I/O error")):
            result = await pipeline.process_one("https://example.com/a")

        assert not result.success
        assert "disk I/O error" in result.error

    @pytest.mark.asyncio
    async def test_social_post_expanded(self, config, db, classifier):
        post = "https://x.com/someone/status/1"
        social = FakeSocial({post: ["https://example.com/a", "https://example.com/b"]})
        pipeline = make_pipeline(config, db, social=social, classifier=classifier)

        result = await pipeline.process_one(post, note="AI")

        assert result.success
        assert result.expanded_urls == ["https://example.com/a", "https://example.com/b"]
        assert db.find_by_url(post) is None
        stored = db.find_by_url("https://example.com/b")
        assert stored.source_note == provenance_note(post, "AI")
        assert post in stored.source_note
        assert db.get_link_by_id(result.link_id).url == "https://example.com/a"

    @pytest.mark.asyncio
    async def test_social_post_without_links_stored_itself(self, config, db):
        post = "https://x.com/someone/status/1"
        pipeline = make_pipeline(config, db, social=FakeSocial({post: []}))

        result = await pipeline.process_one(post)

        assert result.success
        assert result.expanded_urls == []
        assert db.get_link_by_id(result.link_id).url == post

    @pytest.mark.asyncio
    async def test_expanded_link_failure_isolated(self, config, db):
        post = "https://x.com/someone/status/1"
        social = FakeSocial({post: ["https://example.com/bad", "https://example.com/good"]})
        pipeline = make_pipeline(config, db, social=social)
        real_store = db.store_if_absent

        def flaky_store(url, *args):
            if url.endswith("/bad"):
                raise sqlite3.OperationalError("locked")
            return real_store(url, *args)

        with patch.object(db, "store_if_absent", side_effect=flaky_store):
            result = await pipeline.process_one(post)

        assert result.success
        assert db.get_link_by_id(result.link_id).url == "https://example.com/good"


class TestProcessBatch:
    @pytest.mark.asyncio
    async def test_order_preserved_and_failures_isolated(self, config, db):
        pipeline = make_pipeline(config, db)
        real_store = db.store_if_absent

        def flaky_store(url, *args):
            if "fail" in url:
                raise sqlite3.OperationalError("locked")
            return real_store(url, *args)

        urls = ["https://example.com/1", "https://example.com/fail", "https://example.com/3"]
        with patch.object(db, "store_if_absent", side_effect=flaky_store):
            results = await pipeline.process_batch(urls)

        assert [item.url for item in results] == urls
        assert [item.result.success for item in results] == [True, False, True]
        assert results[1].to_dict() == {
            "url": "https://example.com/fail",
            "success": False,
            "error": "locked",
        }

    @pytest.mark.asyncio
    async def test_arxiv_batch_end_to_end(self, config, db, classifier):
        fetcher = MetadataFetcher(requests_per_second=1000)
        paper = PageMetadata(
            title="A Study of Things",
            description="We study things in considerable depth and report results.",
        )
        urls = [
            "https://arxiv.org/abs/2401.00001",
            "https://arxiv.org/abs/2401.00001?utm_source=x",
        ]
        pipeline = make_pipeline(config, db, fetcher=fetcher, classifier=classifier)

        with patch.object(fetcher.arxiv, "fetch", AsyncMock(return_value=paper)), \
             patch.object(fetcher, "_get_page", AsyncMock()) as get_page:
            results = await pipeline.process_batch(urls)

        get_page.assert_not_awaited()
        assert all(item.result.success for item in results)
        assert results[0].result.link_id == results[1].result.link_id
        assert db.get_stats()["total"] == 1

        link = db.get_link_by_id(results[0].result.link_id)
        assert link.title == "A Study of Things"
        assert link.url == urls[0]
