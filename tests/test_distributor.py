"""
Tier distributor tests: strict round-robin per tier.
"""

import threading

import pytest

from review_router.application import TierDistributor
from review_router.domain import NotFoundError, StorageError, ValidationError


@pytest.fixture
def distributor(repository, fixed_clock):
    return TierDistributor(repository, clock=fixed_clock)


def test_serves_each_link_once_per_cycle(store, distributor) -> None:
    links = ["https://forms/a", "https://forms/b", "https://forms/c", "https://forms/d"]
    store.put_config({"tiers": {"intermediate": {"links": links, "nextIndex": 0}}})

    served = [distributor.distribute("intermediate").url for _ in range(len(links))]
    assert served == links
    assert distributor.distribute("intermediate").url == links[0]


def test_starts_from_stored_pointer_and_wraps(store, distributor) -> None:
    store.put_config({"tiers": {"beginner": {"links": ["a", "b", "c"], "nextIndex": 2}}})

    first = distributor.distribute("beginner")
    assert first.url == "c"
    assert store.stored_config()["tiers"]["beginner"]["nextIndex"] == 0

    assert distributor.distribute("beginner").url == "a"


def test_result_carries_tier_and_label(store, distributor) -> None:
    store.put_config({
        "labels": {"advanced": "Pro"},
        "tiers": {"advanced": {"links": ["x"]}},
    })
    result = distributor.distribute("advanced")
    assert result.to_dict() == {"url": "x", "tier": "advanced", "label": "Pro"}


def test_empty_label_falls_back_to_tier_key(store, distributor) -> None:
    store.put_config({"labels": {"beginner": ""}, "tiers": {"beginner": {"links": ["x"]}}})
    assert distributor.distribute("beginner").label == "beginner"


def test_tier_is_normalized(store, distributor) -> None:
    store.put_config({"tiers": {"beginner": {"links": ["x"]}}})
    assert distributor.distribute("  BEGINNER ").tier == "beginner"


def test_stamps_timestamps(store, distributor) -> None:
    store.put_config({"tiers": {"beginner": {"links": ["x", "y"]}}})
    distributor.distribute("beginner")

    saved = store.stored_config()
    assert saved["updatedAt"] == "2024-05-01T09:30:00.000Z"
    assert saved["tiers"]["beginner"]["lastServedAt"] == "2024-05-01T09:30:00.000Z"
    assert "lastServedAt" not in saved["tiers"]["advanced"]


def test_other_tiers_untouched(store, distributor) -> None:
    store.put_config({
        "tiers": {
            "beginner": {"links": ["a", "b"], "nextIndex": 0},
            "advanced": {"links": ["x", "y", "z"], "nextIndex": 2},
        }
    })
    distributor.distribute("beginner")
    assert store.stored_config()["tiers"]["advanced"]["nextIndex"] == 2


@pytest.mark.parametrize("tier", ["", "   ", None])
def test_missing_tier_is_validation_error(distributor, tier) -> None:
    with pytest.raises(ValidationError):
        distributor.distribute(tier)


def test_unknown_tier_not_found(distributor) -> None:
    with pytest.raises(NotFoundError) as exc_info:
        distributor.distribute("expert")
    assert "expert" in exc_info.value.message
    assert exc_info.value.status_code == 404


@pytest.mark.parametrize("next_index", [0, 3, -2, 99])
def test_empty_links_not_found_regardless_of_pointer(store, distributor, next_index) -> None:
    store.put_config({"tiers": {"beginner": {"links": [], "nextIndex": next_index}}})
    with pytest.raises(NotFoundError) as exc_info:
        distributor.distribute("beginner")
    assert "初級" in exc_info.value.message
    assert store.writes == 0


def test_out_of_range_stored_pointer_is_wrapped(store, distributor) -> None:
    store.put_config({"tiers": {"beginner": {"links": ["a", "b", "c"], "nextIndex": 7}}})
    assert distributor.distribute("beginner").url == "b"


def test_unreadable_store_behaves_as_empty(store, distributor) -> None:
    store.fail_reads = True
    with pytest.raises(NotFoundError):
        distributor.distribute("beginner")


def test_write_failure_propagates(store, distributor) -> None:
    store.put_config({"tiers": {"beginner": {"links": ["a"]}}})
    store.fail_writes = True
    with pytest.raises(StorageError):
        distributor.distribute("beginner")


def test_concurrent_calls_share_the_rotation(store, repository, fixed_clock) -> None:
    links = [f"https://forms/{i}" for i in range(8)]
    store.put_config({"tiers": {"advanced": {"links": links}}})
    lock = threading.Lock()
    served = []

    def worker():
        served.append(TierDistributor(repository, clock=fixed_clock, lock=lock).distribute("advanced").url)

    threads = [threading.Thread(target=worker) for _ in links]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(served) == sorted(links)
