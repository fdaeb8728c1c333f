import math

import pytest

from occlusion_heatmap.xai.core.errors import InvalidArgument
from occlusion_heatmap.xai.core.types import Rect, Sample, WorkItem
from occlusion_heatmap.xai.refiner import (
    RegionRefiner, ShrinkRefiner, can_refine, halve_window, refinement_steps, threshold_predicate,
)

IMAGE = Rect(0, 0, 100, 100)


def test_halve_window_rounds_up():
    assert halve_window(50, 50) == (25, 25)
    assert halve_window(25, 13) == (13, 7)
    assert halve_window(1, 1) == (1, 1)


def test_can_refine_guards():
    assert can_refine(50, 50, 5, 5)
    assert can_refine(9, 9, 5, 5)            # 9 -> 5 still meets the minimum
    assert not can_refine(8, 8, 5, 5)        # 8 -> 4 falls below it
    assert not can_refine(10, 8, 5, 5)       # one axis below is enough to stop
    assert not can_refine(1, 1, 1, 1)        # halving stalls at 1x1
    assert can_refine(2, 1, 1, 1)            # w still shrinks


@pytest.mark.parametrize("min_size", [1, 2, 5])
def test_refinement_terminates_within_log2_steps(min_size):
    for size in range(max(2, min_size), 300):
        steps = refinement_steps(size, size, min_size, min_size)
        bound = math.ceil(math.log2(size / min_size)) if size > min_size else 0
        assert steps <= max(bound, 0), (size, steps, bound)


def test_refinement_terminates_for_rectangles():
    for w, h in [(50, 20), (7, 300), (128, 64), (33, 5)]:
        steps = refinement_steps(w, h, 5, 5)
        assert steps <= math.ceil(math.log2(max(w / 5, h / 5)))
        # Walking the halvings by hand ends below the minimum or stalled
        for _ in range(steps):
            w, h = halve_window(w, h)
        assert not can_refine(w, h, 5, 5)


def test_threshold_predicate():
    z = threshold_predicate(0.5)
    assert z(0.51)
    assert not z(0.5)
    assert not z(0.0)


def test_seeded_with_full_image_item():
    r = RegionRefiner(IMAGE, 50, 50)
    assert len(r) == 1
    item = r.next_item()
    assert item == WorkItem(IMAGE, 50, 50, 0)
    assert r.next_item() is None


def test_offer_enqueues_halved_child_on_same_region():
    r = RegionRefiner(IMAGE, 50, 50, should_zoom=threshold_predicate(0.5))
    parent = r.next_item()
    child = r.offer(parent, Sample(0, 0, 50, 50, 0.9))
    assert child == WorkItem(Rect(0, 0, 50, 50), 25, 25, 1)
    assert len(r) == 1
    # Same window twice does not duplicate work
    assert r.offer(parent, Sample(0, 0, 50, 50, 0.9)) is None
    assert len(r) == 1
    assert r.enqueued == 2


def test_offer_rejections():
    r = RegionRefiner(IMAGE, 50, 50, min_w=5, min_h=5, should_zoom=threshold_predicate(0.5))
    parent = r.next_item()
    assert r.offer(parent, Sample(0, 0, 50, 50, 0.1)) is None      # predicate false
    assert r.offer(parent, Sample(0, 0, 8, 8, 0.9)) is None        # would drop below minimum
    assert len(r) == 0

    quiet = RegionRefiner(IMAGE, 50, 50)
    assert quiet.offer(quiet.next_item(), Sample(0, 0, 50, 50, 1.0)) is None


def test_queue_is_fifo_and_drains():
    r = RegionRefiner(IMAGE, 40, 40, should_zoom=lambda s: True)
    seen = []
    for item in r:
        seen.append(item)
        if item.depth == 0:
            r.offer(item, Sample(0, 0, 40, 40, 1.0))
            r.offer(item, Sample(60, 60, 40, 40, 1.0))
    assert [i.depth for i in seen] == [0, 1, 1]
    assert seen[1].region == Rect(0, 0, 40, 40)
    assert seen[2].region == Rect(60, 60, 40, 40)
    assert len(r) == 0


def test_invalid_sizes_rejected():
    with pytest.raises(InvalidArgument):
        RegionRefiner(IMAGE, 0, 10)
    with pytest.raises(InvalidArgument):
        RegionRefiner(IMAGE, 10, 10, min_w=0)


def test_shrink_refiner_sizes():
    sizes = [(i.window_w, i.window_h) for i in ShrinkRefiner(IMAGE, 50, 50, 0.9, 3)]
    assert sizes == [(50, 50), (45, 45), (41, 41)]


def test_shrink_refiner_stops_on_stall_or_minimum():
    stalled = [i.window_w for i in ShrinkRefiner(IMAGE, 10, 10, 0.9, 100)]
    assert stalled == [10, 9]
    floored = [i.window_w for i in ShrinkRefiner(IMAGE, 20, 20, 0.5, 100, min_w=5, min_h=5)]
    assert floored == [20, 10, 5]


def test_shrink_refiner_items_cover_whole_image():
    items = list(ShrinkRefiner(IMAGE, 50, 50, 0.5, 10))
    assert all(i.region == IMAGE for i in items)
    assert [i.depth for i in items] == list(range(len(items)))
    r = ShrinkRefiner(IMAGE, 50, 50)
    assert r.offer(items[0], Sample(0, 0, 50, 50, 1.0)) is None


@pytest.mark.parametrize("ratio,iters", [(0.0, 5), (1.0, 5), (0.5, 0)])
def test_shrink_refiner_rejects_bad_params(ratio, iters):
    with pytest.raises(InvalidArgument):
        ShrinkRefiner(IMAGE, 50, 50, ratio, iters)
