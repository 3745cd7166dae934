import random

import pytest

from shortmap.manager.engine import create_engine


@pytest.fixture
def engine():
    eng = create_engine("scrambled", modulus=1 << 40, multiplier=36_779_219, start=1, buckets=1009)
    yield eng
    eng.shutdown()


def test_end_to_end_scenario(engine):
    """
    Shorten, resolve, re-shorten, delete, resolve again, list.

    LLM Prompt Example:
        "Walk through the full life of one short link and assert every
        observable step, including that deletion clears the reverse lookup."
    """
    url = "https://example.com/a"

    c1 = engine.generate_or_get(url)
    assert len(c1) == 7

    assert engine.resolve(c1) == url
    assert engine.generate_or_get(url) == c1

    assert engine.delete(c1) is True
    assert engine.resolve(c1) is None
    assert c1 not in [code for code, _ in engine.list()]

    c2 = engine.generate_or_get(url)
    assert c2 != c1


def test_mixed_workload_keeps_indexes_consistent(engine):
    """Random creates/deletes; after every step both directions agree."""
    rng = random.Random(1234)
    live = {}
    for step in range(2000):
        if live and rng.random() < 0.35:
            url = rng.choice(sorted(live))
            assert engine.delete(live.pop(url)) is True
        else:
            url = f"https://example.com/{rng.randrange(600)}"
            code = engine.generate_or_get(url)
            if url in live:
                assert live[url] == code
            live[url] = code

    assert len(engine) == len(live)
    assert dict((u, c) for c, u in engine.list()) == live
    for url, code in live.items():
        assert engine.resolve(code) == url
    assert len(set(live.values())) == len(live)
    engine.index.verify()


def test_occupancy_tracks_spread(engine):
    for i in range(300):
        engine.generate_or_get(f"https://example.com/{i}")
    fwd, rev = engine.occupancy()
    assert 0 < fwd <= 300 and 0 < rev <= 300
    for code, _ in engine.list():
        engine.delete(code)
    assert engine.occupancy() == (0, 0)
