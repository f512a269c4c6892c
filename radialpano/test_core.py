"""
Tests for projection, feathering, correspondences, RANSAC and compositing.

Run with:
    pytest radialpano
"""

import numpy as np
import pytest
from scipy.ndimage import gaussian_filter

from radialpano.compositing import AlphaCompositor, crop_black_borders
from radialpano.correspondence import Correspondence, CorrespondenceFinder, filter_matches
from radialpano.errors import DimensionMismatch, InsufficientCorrespondences
from radialpano.feathering import build_blend_mask, build_feather_mask
from radialpano.features import HarrisDetector
from radialpano.matcher import FeatureMatcher
from radialpano.projection import RadialProjector, project_radial, warp_translation
from radialpano.translation import TranslationEstimator


def textured_image(height, width, seed=0):
    """Smooth random texture with no zero pixels."""
    rng = np.random.default_rng(seed)
    noise = gaussian_filter(rng.random((height, width)), 2.0)
    noise = (noise - noise.min()) / (noise.max() - noise.min())
    gray = (20 + 230 * noise).astype(np.uint8)
    return np.stack([gray, gray, gray], axis=2)


def shifted_pairs(shift, points):
    dx, dy = shift
    return [Correspondence((x, y), (x + dx, y + dy)) for x, y in points]


# ---------------------------------------------------------------- projection

@pytest.mark.parametrize('mode', ['spherical', 'cylindrical'])
@pytest.mark.parametrize('shape', [(7, 9, 3), (8, 6, 3), (11, 11)])
def test_projection_center_maps_to_itself(mode, shape):
    rng = np.random.default_rng(1)
    image = rng.integers(1, 255, size=shape).astype(np.uint8)

    out = project_radial(image, focal_length=5.0, mode=mode)

    cy, cx = shape[0] // 2, shape[1] // 2
    assert out.shape == image.shape
    assert out.dtype == image.dtype
    assert np.array_equal(out[cy, cx], image[cy, cx])


@pytest.mark.parametrize('mode', ['spherical', 'cylindrical'])
def test_projection_with_long_focal_length_is_identity(mode):
    image = textured_image(30, 40)

    out = RadialProjector(focal_length=1e6, mode=mode).project(image)

    assert np.array_equal(out, image)


def test_projection_leaves_holes_outside_source():
    image = np.full((9, 9, 3), 200, dtype=np.uint8)

    out = RadialProjector(focal_length=3.0, mode='cylindrical').project(image)

    # Outer columns sample far outside the planar image
    assert np.all(out[:, 0] == 0)
    assert np.all(out[:, -1] == 0)
    assert np.all(out[4, 4] == 200)


def test_projection_of_mask_keeps_float_values():
    mask = build_feather_mask(11, 9)

    out = RadialProjector(focal_length=20.0).project(mask)

    assert out.dtype == np.float64
    assert out[4, 5] == mask[4, 5]
    assert out.max() <= 1.0


def test_projector_rejects_bad_parameters():
    with pytest.raises(ValueError):
        RadialProjector(mode='fisheye')
    with pytest.raises(ValueError):
        RadialProjector(focal_length=0)


@pytest.mark.parametrize('interpolation', ['bilinear', 'nearest'])
def test_warp_translation_places_image(interpolation):
    image = np.arange(1, 13, dtype=np.uint8).reshape(3, 4)

    out = warp_translation(image, 2, 1, (6, 8), interpolation=interpolation)

    assert out.shape == (6, 8)
    assert np.array_equal(out[1:4, 2:6], image)
    out[1:4, 2:6] = 0
    assert not np.any(out)


def test_warp_translation_clips_overflow():
    image = np.full((4, 5, 3), 9, dtype=np.uint8)

    out = warp_translation(image, 3, 0, (4, 6))

    assert np.all(out[:, 3:] == 9)
    assert not np.any(out[:, :3])


# ---------------------------------------------------------------- feathering

def test_feather_mask_values():
    mask = build_feather_mask(10, 6)

    assert mask.shape == (6, 10)
    assert mask.max() == 1.0
    assert mask[2, 4] == 1.0
    # First row/column are one step in, last row/column are zero
    assert mask[0, 4] == pytest.approx(1 / 3)
    assert mask[0, 0] == pytest.approx(1 / 3)
    assert np.all(mask[-1, :] == 0)
    assert np.all(mask[:, -1] == 0)


def test_feather_mask_odd_square_center_is_one():
    mask = build_feather_mask(5, 5)

    assert mask[2, 2] == 1.0
    assert mask[2, 0] == pytest.approx(0.5)
    assert mask[2, 3] == pytest.approx(0.5)


def test_build_blend_mask_fills_preallocated_mask():
    image = np.zeros((4, 5, 3), dtype=np.uint8)
    mask = np.zeros((4, 5))

    result = build_blend_mask(image, mask)

    assert result is mask
    assert np.array_equal(mask, build_feather_mask(5, 4))


def test_build_blend_mask_rejects_mismatched_mask():
    image = np.zeros((4, 5, 3), dtype=np.uint8)

    with pytest.raises(DimensionMismatch):
        build_blend_mask(image, np.zeros((5, 4)))


def test_feather_mask_too_small():
    with pytest.raises(ValueError):
        build_feather_mask(1, 10)


# ----------------------------------------------------------- correspondences

def test_filter_matches_keeps_below_three_times_minimum():
    matches = [{'distance': d} for d in (5.0, 2.0, 6.0, 7.0)]

    kept = filter_matches(matches)

    assert [m['distance'] for m in kept] == [5.0, 2.0]


def test_filter_matches_with_exact_matches():
    matches = [{'distance': d} for d in (0.0, 1.0, 0.0)]

    assert len(filter_matches(matches)) == 2
    assert filter_matches([]) == []


class FakeDetector:
    def __init__(self, *results):
        self.results = list(results)

    def detect_and_compute(self, image):
        return self.results.pop(0)


class FakeMatcher:
    def __init__(self, matches):
        self.matches = matches

    def match(self, desc1, desc2):
        return self.matches


def test_correspondence_finder_maps_matches_to_points():
    kp_a = [{'x': 1.0, 'y': 2.0}, {'x': 3.0, 'y': 4.0}]
    kp_b = [{'x': 10.0, 'y': 20.0}, {'x': 30.0, 'y': 40.0}]
    desc = np.zeros((2, 4))
    matcher = FakeMatcher([
        {'queryIdx': 0, 'trainIdx': 1, 'distance': 1.0},
        {'queryIdx': 1, 'trainIdx': 0, 'distance': 10.0},
    ])
    finder = CorrespondenceFinder(FakeDetector((kp_a, desc), (kp_b, desc)), matcher)

    result = finder.match(np.zeros((5, 5, 3)), np.zeros((5, 5, 3)))

    assert result == [Correspondence((1.0, 2.0), (30.0, 40.0), 1.0)]


def test_correspondence_finder_without_keypoints():
    finder = CorrespondenceFinder(
        FakeDetector(([], np.zeros((0, 4))), ([], np.zeros((0, 4)))),
        FakeMatcher([]),
    )

    assert finder.match(np.zeros((5, 5, 3)), np.zeros((5, 5, 3))) == []


def test_feature_matcher_nearest_neighbour():
    desc1 = np.array([[0, 0], [10, 0]], dtype=np.float32)
    desc2 = np.array([[10, 1], [0, 2], [50, 50]], dtype=np.float32)

    matches = FeatureMatcher().match(desc1, desc2)

    assert [(m['queryIdx'], m['trainIdx']) for m in matches] == [(1, 0), (0, 1)]
    assert matches[0]['distance'] == pytest.approx(1.0)


def test_harris_correspondences_recover_shift():
    big = textured_image(80, 120)
    image_a = big[10:70, 20:110]
    image_b = big[10:70, 30:120]

    correspondences = CorrespondenceFinder(HarrisDetector()).match(image_a, image_b)
    estimate = TranslationEstimator().estimate(correspondences)

    assert len(correspondences) > 0
    assert (estimate.dx, estimate.dy) == (-10.0, 0.0)


def test_harris_finds_corners_next_to_projection_holes():
    projected = RadialProjector(focal_length=400).project(textured_image(120, 160, seed=9))
    assert not np.all(projected.any(axis=2))

    keypoints, descriptors = HarrisDetector().detect_and_compute(projected)

    assert len(keypoints) > 10
    assert descriptors.shape == (len(keypoints), 81)
    # None sit on the empty background
    for kp in keypoints:
        assert projected[int(kp['y']), int(kp['x'])].any()


# --------------------------------------------------------------------- RANSAC

def test_exact_translation_is_recovered():
    points = [(10, 20), (35, 7), (60, 44), (12, 90), (71, 3), (40, 40)]

    estimate = TranslationEstimator().estimate(shifted_pairs((7.5, -3.25), points))

    assert (estimate.dx, estimate.dy) == (7.5, -3.25)
    assert estimate.consensus == len(points) - 1
    assert estimate.consensus_found


def test_majority_cluster_wins():
    inliers = shifted_pairs((5, 5), [(i * 10, i * 3) for i in range(8)])
    outliers = shifted_pairs((50, -50), [(100, 100), (120, 80)])

    estimate = TranslationEstimator(tolerance=3.0).estimate(inliers + outliers)

    assert (estimate.dx, estimate.dy) == (5.0, 5.0)
    assert estimate.consensus == 7


def test_zero_translation_is_a_valid_result():
    points = [(1, 1), (5, 9), (20, 3)]

    estimate = TranslationEstimator().estimate(shifted_pairs((0, 0), points))

    assert (estimate.dx, estimate.dy) == (0.0, 0.0)
    assert estimate.consensus_found


def test_no_consensus_falls_back_to_last_sample():
    correspondences = (shifted_pairs((0, 0), [(0, 0)]) +
                       shifted_pairs((40, 0), [(5, 5)]) +
                       shifted_pairs((-40, 9), [(8, 8)]))
    shifts = [c.shift for c in correspondences]

    estimate = TranslationEstimator(seed=3, num_trials=1).estimate(correspondences)

    index = np.random.default_rng(3).integers(3)
    assert (estimate.dx, estimate.dy) == shifts[index]
    assert estimate.consensus == 0
    assert not estimate.consensus_found


def test_tie_keeps_first_hypothesis():
    first_cluster = shifted_pairs((5, 5), [(0, 0), (10, 3), (20, 6)])
    second_cluster = shifted_pairs((40, -40), [(50, 50), (60, 40), (70, 30)])
    correspondences = first_cluster + second_cluster
    shifts = [c.shift for c in correspondences]

    # Pick a seed whose first and last samples land in different clusters
    for seed in range(100):
        rng = np.random.default_rng(seed)
        draws = [rng.integers(6) for _ in range(6)]
        if (draws[0] < 3) != (draws[-1] < 3):
            break

    estimate = TranslationEstimator(seed=seed).estimate(correspondences)

    assert (estimate.dx, estimate.dy) == shifts[draws[0]]
    assert estimate.consensus == 2


def test_tolerance_is_strict_per_axis():
    outside = shifted_pairs((0, 0), [(0, 0)]) + shifted_pairs((3, 0), [(9, 9)])
    inside = shifted_pairs((0, 0), [(0, 0)]) + shifted_pairs((2.5, -2.5), [(9, 9)])

    assert not TranslationEstimator(tolerance=3.0).estimate(outside).consensus_found
    assert TranslationEstimator(tolerance=3.0).estimate(inside).consensus_found


def test_single_correspondence_has_no_consensus():
    estimate = TranslationEstimator().estimate(shifted_pairs((4, 2), [(1, 1)]))

    assert (estimate.dx, estimate.dy) == (4.0, 2.0)
    assert not estimate.consensus_found


def test_estimation_is_reproducible():
    rng = np.random.default_rng(5)
    src = rng.integers(0, 100, size=(30, 2)).astype(float)
    dst = src + rng.integers(-20, 20, size=(30, 2))

    first = TranslationEstimator(seed=7).estimate_points(src, dst)
    second = TranslationEstimator(seed=7).estimate_points(src, dst)

    assert first == second


def test_zero_correspondences_raise():
    with pytest.raises(InsufficientCorrespondences) as excinfo:
        TranslationEstimator().estimate([], pair=(2, 3))

    assert excinfo.value.pair == (2, 3)
    assert excinfo.value.count == 0


def test_minimum_correspondences_enforced():
    estimator = TranslationEstimator(min_correspondences=4)

    with pytest.raises(InsufficientCorrespondences):
        estimator.estimate(shifted_pairs((1, 1), [(0, 0), (1, 1), (2, 2)]))


def test_mismatched_point_arrays():
    with pytest.raises(ValueError):
        TranslationEstimator().estimate_points(np.zeros((3, 2)), np.zeros((2, 2)))


# ---------------------------------------------------------------- compositing

def test_equal_alpha_blend_is_mean():
    canvas = np.full((2, 2, 3), 100, dtype=np.uint8)
    new = np.full((2, 2, 3), 200, dtype=np.uint8)
    canvas_mask = np.full((2, 2), 0.5)

    counts = AlphaCompositor().composite(new, np.full((2, 2), 0.5), canvas, canvas_mask)

    assert counts == (4, 0)
    assert np.all(canvas == 150)


def test_blend_is_alpha_weighted():
    canvas = np.full((1, 1, 3), 100, dtype=np.uint8)
    new = np.full((1, 1, 3), 200, dtype=np.uint8)

    AlphaCompositor().composite(new, np.full((1, 1), 0.75), canvas, np.full((1, 1), 0.25))

    assert np.all(canvas == 175)


def test_zero_alpha_overlap_uses_even_mix():
    canvas = np.full((1, 1, 3), 10, dtype=np.uint8)
    new = np.full((1, 1, 3), 30, dtype=np.uint8)

    AlphaCompositor().composite(new, np.zeros((1, 1)), canvas, np.zeros((1, 1)))

    assert np.all(canvas == 20)


def test_empty_canvas_copies_new_image():
    canvas = np.zeros((3, 4, 3), dtype=np.uint8)
    canvas_mask = np.zeros((3, 4))
    new = textured_image(3, 4)
    new_mask = np.full((3, 4), 0.3)

    counts = AlphaCompositor().composite(new, new_mask, canvas, canvas_mask)

    assert counts == (0, 12)
    assert np.array_equal(canvas, new)
    assert np.array_equal(canvas_mask, new_mask)


def test_canvas_kept_where_new_image_is_empty():
    canvas = np.full((2, 3, 3), 50, dtype=np.uint8)
    new = np.zeros((2, 3, 3), dtype=np.uint8)
    new[0, 0] = (0, 0, 5)

    AlphaCompositor().composite(new, np.ones((2, 3)), canvas, np.ones((2, 3)))

    # Any non-zero channel counts as content
    assert tuple(canvas[0, 0]) == (25, 25, 28)
    assert np.all(canvas[1] == 50)


def test_composite_rejects_mismatched_sizes():
    canvas = np.zeros((4, 4, 3), dtype=np.uint8)

    with pytest.raises(DimensionMismatch):
        AlphaCompositor().composite(np.zeros((4, 5, 3), dtype=np.uint8),
                                    np.zeros((4, 5)), canvas, np.zeros((4, 4)))


def test_crop_black_borders():
    image = np.zeros((6, 8, 3), dtype=np.uint8)
    image[2:4, 1:6] = 7

    cropped = crop_black_borders(image)

    assert cropped.shape == (2, 5, 3)
    assert np.all(cropped == 7)


def test_draw_correspondences_side_by_side():
    from radialpano.visualization import draw_correspondences

    img_a = np.full((10, 12, 3), 40, dtype=np.uint8)
    img_b = np.full((8, 6), 90, dtype=np.uint8)

    vis = draw_correspondences(img_a, img_b, [Correspondence((2, 2), (3, 5))])

    assert vis.shape == (10, 18, 3)
    assert tuple(vis[2, 2]) == (0, 255, 0)
    assert tuple(vis[5, 15]) == (0, 255, 0)
    assert tuple(vis[9, 0]) == (40, 40, 40)
    assert tuple(vis[9, 17]) == (0, 0, 0)


def test_draw_line_and_circle_clip_to_image():
    from radialpano.visualization import draw_circle, draw_line

    canvas = np.zeros((6, 8, 3), dtype=np.uint8)

    draw_line(canvas, (-4, 1), (7, 1), (255, 0, 0))
    draw_circle(canvas, (7, 5), 2, (0, 0, 255))

    assert np.all(canvas[1, :, 0] == 255)
    assert tuple(canvas[5, 7]) == (0, 0, 255)
    assert tuple(canvas[3, 7]) == (0, 0, 255)
    assert tuple(canvas[3, 5]) == (0, 0, 0)
    assert not np.any(canvas[[0, 2], :, 0])
