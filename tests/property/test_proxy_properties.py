"""Property tests for the proxy registry.

Validates sequential rotation fairness, the no-proxy modes, exact-id lookup
against the active set, and random selection staying inside the pool.
"""

from __future__ import annotations

import random

from hypothesis import given, settings
from hypothesis import strategies as st

from retail_session.proxy.registry import ProxyRegistry


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

# 1-12 proxy records with unique ids and an active flag each
proxy_documents = st.integers(min_value=1, max_value=12).flatmap(
    lambda n: st.lists(st.booleans(), min_size=n, max_size=n).map(
        lambda flags: {
            "proxies": [
                {
                    "id": f"px{i}",
                    "name": f"Proxy {i}",
                    "server": f"http://10.0.{i}.1:3128",
                    "active": active,
                }
                for i, active in enumerate(flags)
            ]
        }
    )
)

no_proxy_modes = st.sampled_from([None, "", "none", "  none  "])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _active_ids(document: dict) -> list[str]:
    return [p["id"] for p in document["proxies"] if p["active"]]


def _make_registry(document: dict, seed: int = 0) -> ProxyRegistry:
    registry = ProxyRegistry(rng=random.Random(seed))
    registry.load(document)
    return registry


# ---------------------------------------------------------------------------
# Sequential rotation
# ---------------------------------------------------------------------------


@settings(max_examples=100)
@given(document=proxy_documents, rounds=st.integers(min_value=1, max_value=4))
def test_sequential_visits_every_active_proxy_evenly(document: dict, rounds: int) -> None:
    active = _active_ids(document)
    registry = _make_registry(document)

    picks = [registry.select("sequential") for _ in range(len(active) * rounds)]

    if not active:
        assert all(p is None for p in picks)
        return
    ids = [p.id for p in picks]
    assert ids == active * rounds
    for proxy_id in active:
        assert ids.count(proxy_id) == rounds


@settings(max_examples=100)
@given(document=proxy_documents)
def test_sequential_wraps_to_first(document: dict) -> None:
    active = _active_ids(document)
    registry = _make_registry(document)

    for _ in range(len(active)):
        registry.select("sequential")
    wrapped = registry.select("sequential")

    if active:
        assert wrapped.id == active[0]
    else:
        assert wrapped is None


# ---------------------------------------------------------------------------
# No-proxy modes and exact ids
# ---------------------------------------------------------------------------


@settings(max_examples=100)
@given(document=proxy_documents, mode=no_proxy_modes)
def test_no_proxy_modes_return_none(document: dict, mode) -> None:
    registry = _make_registry(document)
    assert registry.select(mode) is None
    assert registry.cursor == 0


@settings(max_examples=100)
@given(document=proxy_documents, index=st.integers(min_value=0, max_value=11))
def test_exact_id_resolves_only_when_active(document: dict, index: int) -> None:
    registry = _make_registry(document)
    proxy_id = f"px{index}"
    picked = registry.select(proxy_id)

    if proxy_id in _active_ids(document):
        assert picked is not None
        assert picked.id == proxy_id
    else:
        assert picked is None


# ---------------------------------------------------------------------------
# Random selection
# ---------------------------------------------------------------------------


@settings(max_examples=100)
@given(document=proxy_documents, seed=st.integers(min_value=0, max_value=2**32 - 1))
def test_random_stays_in_active_pool(document: dict, seed: int) -> None:
    active = set(_active_ids(document))
    registry = _make_registry(document, seed)

    for _ in range(10):
        picked = registry.select("random")
        if active:
            assert picked.id in active
        else:
            assert picked is None
    assert registry.cursor == 0


@settings(max_examples=100)
@given(document=proxy_documents)
def test_listing_matches_active_pool(document: dict) -> None:
    registry = _make_registry(document)
    listed = registry.list_available()
    assert [p["id"] for p in listed] == _active_ids(document)
    assert len(registry) == len(listed)
