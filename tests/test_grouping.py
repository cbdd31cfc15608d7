"""Tests for grouping two links under a shared subcategory."""

import pytest

from parasight.grouping.service import GroupingService, LinkNotFoundError
from parasight.storage.models import Bucket, Para


def add_link(db, path, bucket=None, subcategory=None):
    link_id = db.store_if_absent(f"https://example.com/{path}", path.title(), None)
    if bucket or subcategory:
        db.update_link_category(link_id, bucket=bucket, subcategory=subcategory)
    return link_id


@pytest.fixture
def grouping(db, classifier):
    return GroupingService(db, classifier)


class TestGroupLabel:
    @pytest.mark.asyncio
    async def test_different_groups_get_new_label(self, db, classifier, grouping):
        a = add_link(db, "a", Bucket.RESOURCE, "🛠️ Tools")
        b = add_link(db, "b", Bucket.RESOURCE, "📚 Reading")

        name = await grouping.group(a, b)

        assert name == "🧪 Test Group"
        assert len(classifier.name_group_calls) == 1
        assert db.get_link_by_id(a).subcategory == "🧪 Test Group"
        assert db.get_link_by_id(b).subcategory == "🧪 Test Group"

    @pytest.mark.asyncio
    async def test_dragged_link_label_used_when_target_ungrouped(self, db, classifier, grouping):
        a = add_link(db, "a", Bucket.RESOURCE, "🛠 Tools")
        b = add_link(db, "b")

        name = await grouping.group(a, b)

        assert name == "🛠 Tools"
        assert classifier.name_group_calls == []
        assert db.get_link_by_id(b).subcategory == "🛠 Tools"

    @pytest.mark.asyncio
    async def test_target_label_used(self, db, classifier, grouping):
        a = add_link(db, "a")
        b = add_link(db, "b", Bucket.AREA, "❤️ Health")

        assert await grouping.group(a, b) == "❤️ Health"
        assert classifier.name_group_calls == []
        assert db.get_link_by_id(a).subcategory == "❤️ Health"

    @pytest.mark.asyncio
    async def test_same_label_kept(self, db, classifier, grouping):
        a = add_link(db, "a", Bucket.AREA, "❤️ Health")
        b = add_link(db, "b", Bucket.AREA, "❤️ Health")

        assert await grouping.group(a, b) == "❤️ Health"
        assert classifier.name_group_calls == []

    @pytest.mark.asyncio
    async def test_neither_grouped_gets_new_label(self, db, classifier, grouping):
        a = add_link(db, "a")
        b = add_link(db, "b")

        assert await grouping.group(a, b) == "🧪 Test Group"
        link_a, link_b = classifier.name_group_calls[0]
        assert (link_a.id, link_b.id) == (a, b)


class TestGroupBucket:
    @pytest.mark.asyncio
    async def test_moves_to_target_bucket(self, db, grouping):
        a = add_link(db, "a", Bucket.PROJECT, "🌐 Site")
        b = add_link(db, "b", Bucket.RESOURCE)

        await grouping.group(a, b)

        assert db.get_link_by_id(a).para.bucket is Bucket.RESOURCE
        assert db.get_link_by_id(b).para.bucket is Bucket.RESOURCE

    @pytest.mark.asyncio
    async def test_uses_dragged_bucket_when_target_unclassified(self, db, grouping):
        a = add_link(db, "a", Bucket.AREA)
        b = add_link(db, "b")

        await grouping.group(a, b)

        assert db.get_link_by_id(b).para == Para(bucket=Bucket.AREA, name=None, reason=None)

    @pytest.mark.asyncio
    async def test_unclassified_links_stay_without_bucket(self, db, grouping):
        a = add_link(db, "a")
        b = add_link(db, "b")

        await grouping.group(a, b)

        assert db.get_link_by_id(a).para is None
        assert db.get_link_by_id(b).subcategory == "🧪 Test Group"


@pytest.mark.asyncio
async def test_missing_link_raises(db, grouping):
    a = add_link(db, "a")
    with pytest.raises(LinkNotFoundError, match="999"):
        await grouping.group(a, 999)
