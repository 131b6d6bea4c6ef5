"""Tests for the story clustering service against the SQLite stores."""

import asyncio
import datetime as dt

import pytest
import sqlalchemy as sa

from content_intel.clustering import ClusterArticle, StoryClustering
from content_intel.errors import InvalidInputError, NotFoundError
from content_intel.matching.config import ClusteringConfig
from content_intel.models import StoryCluster
from content_intel.stores import SqlClusterStore, SqlContentSource

FP = "00000000000000ff"
FP_NEAR = "00000000000000fc"  # distance 2
FP_FAR = "ffffffff00000000"


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC).replace(tzinfo=None)


@pytest.fixture
def make_clustering(test_session_factory):
    def _make(**overrides) -> StoryClustering:
        return StoryClustering(
            SqlClusterStore(test_session_factory),
            SqlContentSource(test_session_factory),
            ClusteringConfig(**overrides),
        )

    return _make


@pytest.fixture
def clustering(make_clustering) -> StoryClustering:
    return make_clustering()


async def _age_cluster(factory, cluster_id: int, days: float) -> None:
    async with factory() as session, session.begin():
        await session.execute(
            sa.update(StoryCluster)
            .where(StoryCluster.id == cluster_id)
            .values(last_updated=_now() - dt.timedelta(days=days))
        )


class TestProcessArticle:
    async def test_joins_similar_cluster(self, clustering, add_article) -> None:
        await add_article(1, title="Acme recall", fingerprint=FP, entities=["Acme Corp"])
        await add_article(2, title="Acme recall widens", fingerprint=FP_NEAR, entities=["acme corp", "FDA"])
        cluster = await clustering.create_cluster("Acme recall", [1])

        outcome = await clustering.process_article(
            ClusterArticle(id=2, published_at=_now() - dt.timedelta(hours=10))
        )

        assert outcome.action == "joined"
        assert outcome.cluster_id == cluster.id
        assert outcome.score == pytest.approx(0.7146, abs=1e-3)
        assert outcome.shared_entities == ["acme corp"]
        assert outcome.article_count == 2

    async def test_no_clusters_takes_no_action(self, clustering, test_session_factory) -> None:
        outcome = await clustering.process_article(
            ClusterArticle(id=9, fingerprint=FP, entities=["Acme"], published_at=_now())
        )

        assert outcome.action == "none"
        assert outcome.cluster_id is None
        async with test_session_factory() as session:
            count = (await session.execute(sa.select(sa.func.count(StoryCluster.id)))).scalar_one()
        assert count == 0

    @pytest.mark.parametrize("weight, expected", [(0.5, "none"), (0.55, "joined")])
    async def test_join_threshold_is_strict(self, make_clustering, add_article, weight, expected) -> None:
        clustering = make_clustering(distance_weight=weight, entity_weight=0.0)
        await add_article(1, title="Acme", fingerprint=FP, entities=["Acme"])
        await clustering.create_cluster("Acme", [1])

        outcome = await clustering.process_article(
            ClusterArticle(id=2, fingerprint=FP, entities=["Acme"], published_at=_now())
        )

        assert outcome.action == expected
        assert outcome.score == pytest.approx(weight)

    async def test_far_fingerprint_rejected(self, clustering, add_article) -> None:
        await add_article(1, title="Acme", fingerprint=FP, entities=["Acme"])
        await clustering.create_cluster("Acme", [1])
        outcome = await clustering.process_article(
            ClusterArticle(id=2, fingerprint=FP_FAR, entities=["Acme"], published_at=_now())
        )
        assert outcome.action == "none"

    async def test_outside_time_window_rejected(self, clustering, add_article) -> None:
        await add_article(1, title="Acme", fingerprint=FP, entities=["Acme"])
        await clustering.create_cluster("Acme", [1])
        outcome = await clustering.process_article(
            ClusterArticle(
                id=2, fingerprint=FP, entities=["Acme"], published_at=_now() - dt.timedelta(hours=72)
            )
        )
        assert outcome.action == "none"

    async def test_member_already_in_cluster_skipped(self, clustering, add_article) -> None:
        await add_article(1, title="Acme", fingerprint=FP, entities=["Acme"])
        await clustering.create_cluster("Acme", [1])
        outcome = await clustering.process_article(
            ClusterArticle(id=1, fingerprint=FP, entities=["Acme"], published_at=_now())
        )
        assert outcome.action == "none"

    async def test_scan_bounded_to_recent_clusters(
        self, make_clustering, add_article, test_session_factory
    ) -> None:
        clustering = make_clustering(max_candidate_clusters=1, max_time_diff_hours=24 * 30)
        await add_article(1, title="Acme", fingerprint=FP, entities=["Acme"])
        await add_article(2, title="Other", fingerprint=FP_FAR, entities=["Globex"])
        old = await clustering.create_cluster("Acme", [1])
        await clustering.create_cluster("Other", [2])
        await _age_cluster(test_session_factory, old.id, days=2)

        outcome = await clustering.process_article(
            ClusterArticle(id=3, fingerprint=FP, entities=["Acme"], published_at=_now())
        )

        assert outcome.action == "none"

    async def test_missing_id_rejected(self, clustering) -> None:
        with pytest.raises(InvalidInputError):
            await clustering.process_article(ClusterArticle(id=None))


class TestClusterLifecycle:
    async def test_create_cluster_validates(self, clustering) -> None:
        with pytest.raises(InvalidInputError):
            await clustering.create_cluster("", [1])
        with pytest.raises(InvalidInputError):
            await clustering.create_cluster("Headline", [])

    async def test_create_cluster_deduplicates(self, clustering) -> None:
        cluster = await clustering.create_cluster("  Headline ", [3, 1, 3])
        assert cluster.headline == "Headline"
        assert cluster.article_ids == [3, 1]
        assert cluster.is_active

    async def test_add_to_missing_cluster(self, clustering) -> None:
        with pytest.raises(NotFoundError):
            await clustering.add_to_cluster(404, 1)

    async def test_add_to_cluster_idempotent(self, clustering) -> None:
        cluster = await clustering.create_cluster("Headline", [1])
        await clustering.add_to_cluster(cluster.id, 2)
        updated = await clustering.add_to_cluster(cluster.id, 2)
        assert updated.article_ids == [1, 2]
        assert updated.last_updated >= cluster.last_updated

    async def test_deactivate_keeps_rows(self, clustering, test_session_factory) -> None:
        stale = await clustering.create_cluster("Stale", [1])
        fresh = await clustering.create_cluster("Fresh", [2])
        await _age_cluster(test_session_factory, stale.id, days=8)
        await clustering.initialize()

        assert await clustering.deactivate_old_clusters(7) == 1

        store = SqlClusterStore(test_session_factory)
        assert (await store.get_cluster(stale.id)).is_active is False
        assert [c.id for c in await store.get_active_clusters()] == [fresh.id]
        assert clustering.get_stats()["active_clusters"] == 1

    async def test_deactivate_rejects_negative(self, clustering) -> None:
        with pytest.raises(InvalidInputError):
            await clustering.deactivate_old_clusters(-1)

    async def test_initialize_is_idempotent(self, clustering) -> None:
        await clustering.create_cluster("One", [1])
        fresh = StoryClustering(clustering._store)
        assert await fresh.initialize() == 1
        assert await fresh.initialize() == 1
        assert fresh.get_stats()["initialized"] is True


class TestBatchCreation:
    async def test_creates_cluster_from_related_articles(self, clustering, add_article) -> None:
        now = _now()
        await add_article(1, title="Second", fingerprint=FP, entities=["Acme"])
        await add_article(2, title="First", fingerprint=FP_NEAR, entities=["ACME"])
        await add_article(3, title="Unrelated", fingerprint=FP_FAR, entities=["Globex"])
        articles = [
            ClusterArticle(id=1, published_at=now, title="Second"),
            ClusterArticle(id=2, published_at=now - dt.timedelta(hours=3), title="First"),
            ClusterArticle(id=3, published_at=now, title="Unrelated"),
        ]

        created, potential = await clustering.create_clusters_from_batch(articles)

        [cluster] = created
        assert cluster.article_ids == [1, 2]
        assert cluster.headline == "First"
        assert potential.errors == []

    async def test_stop_event_skips_creation(self, clustering, add_article) -> None:
        await add_article(1, title="A", fingerprint=FP, entities=["Acme"])
        await add_article(2, title="B", fingerprint=FP, entities=["Acme"])
        stop = asyncio.Event()
        stop.set()

        created, potential = await clustering.create_clusters_from_batch(
            [ClusterArticle(id=1), ClusterArticle(id=2)], stop_event=stop
        )

        assert created == []
        assert len(potential.clusters) == 1


class TestMalformedFingerprints:
    async def test_batch_skips_bad_article(self, clustering, add_article) -> None:
        await add_article(1, title="Acme recall", fingerprint=FP, entities=["Acme"])
        await add_article(2, title="Acme recall widens", fingerprint="00000000000000fe", entities=["Acme"])
        await add_article(3, title="Garbled", fingerprint="zzzz", entities=["Acme"])
        now = _now()

        created, potential = await clustering.create_clusters_from_batch(
            [ClusterArticle(id=i, published_at=now) for i in (1, 2, 3)]
        )

        [cluster] = created
        assert cluster.article_ids == [1, 2]
        [(article_id, message)] = potential.errors
        assert article_id == 3
        assert "not hex" in message

    async def test_bad_member_fingerprint_ignored(self, clustering, add_article) -> None:
        await add_article(1, title="Garbled", fingerprint="zzzz", entities=["Acme"])
        await add_article(2, title="Acme", fingerprint=FP, entities=["Acme"])
        cluster = await clustering.create_cluster("Acme", [1, 2])

        outcome = await clustering.process_article(
            ClusterArticle(id=3, fingerprint=FP, entities=["Acme"], published_at=_now())
        )

        assert outcome.action == "joined"
        assert outcome.cluster_id == cluster.id
