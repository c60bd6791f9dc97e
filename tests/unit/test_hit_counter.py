from concurrent.futures import ThreadPoolExecutor

from placeport.analytics import HITS
from placeport.hit_counter import WindowedHitCounter


def _record_hits_at(store, clock, offsets: list[float]) -> None:
    anchor = clock.now
    for offset in offsets:
        clock.now = anchor + offset
        store.record(HITS, "/img/10/10")
    clock.now = anchor


def test_windowed_counts_and_compaction(store, clock) -> None:
    _record_hits_at(store, clock, [-3, -7, -12, -20])
    counter = WindowedHitCounter(store)

    windows = counter.count()
    assert [(window.title, window.count) for window in windows] == [
        ("5s", 1),
        ("10s", 2),
        ("15s", 3),
    ]

    timestamps = sorted(record.timestamp for record in store.query(HITS, map_to_value=False))
    assert timestamps == [clock.now - 12, clock.now - 7, clock.now - 3]


def test_compacted_hits_stay_pruned(store, clock) -> None:
    _record_hits_at(store, clock, [-1, -20])
    counter = WindowedHitCounter(store)
    counter.count()

    clock.advance(1)
    assert [window.count for window in counter.count()] == [1, 1, 1]
    assert len(store.query(HITS)) == 1


def test_window_boundaries_are_exclusive_of_the_far_edge(store, clock) -> None:
    _record_hits_at(store, clock, [-5, -10, -15, 0])
    windows = WindowedHitCounter(store).count()
    assert [window.count for window in windows] == [1, 2, 3]
    assert len(store.query(HITS)) == 3


def test_empty_hits(store) -> None:
    windows = WindowedHitCounter(store).count()
    assert [window.to_json() for window in windows] == [
        {"title": "5s", "count": 0},
        {"title": "10s", "count": 0},
        {"title": "15s", "count": 0},
    ]


def test_count_while_recording_never_loses_hits(store) -> None:
    total = 400
    counter = WindowedHitCounter(store)

    def record_hits() -> None:
        for _ in range(total):
            store.record(HITS, "/img/2/2")

    with ThreadPoolExecutor(max_workers=1) as pool:
        future = pool.submit(record_hits)
        while not future.done():
            counter.count()
        future.result()

    assert [window.count for window in counter.count()] == [total, total, total]
    assert len(store.query(HITS)) == total
