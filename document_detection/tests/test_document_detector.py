"""
Tests for DocumentDetector
"""

import cv2
import numpy as np
import pytest

from document_detection.detector import DocumentDetector


ANALYSIS_SIZE = (480, 360)


def make_frame(polygons, size=ANALYSIS_SIZE, background=40, paper=220):
    """Dark surface with light filled polygons on it"""
    width, height = size
    image = np.full((height, width, 3), background, dtype=np.uint8)
    for polygon in polygons:
        cv2.fillPoly(image, [np.array(polygon, dtype=np.int32)], (paper, paper, paper))
    return image


def assert_corners_close(actual, expected, tolerance=6.0):
    actual = np.asarray(actual, dtype=np.float32)
    expected = np.asarray(expected, dtype=np.float32)
    distances = np.linalg.norm(actual - expected, axis=1)
    assert np.all(distances <= tolerance), f"Corners too far off: {distances}"


class TestDocumentDetector:
    """Tests for DocumentDetector"""

    @pytest.fixture
    def detector(self):
        """Create detector instance for tests"""
        return DocumentDetector()

    @pytest.fixture
    def rectangle(self):
        return [(140, 100), (340, 100), (340, 250), (140, 250)]

    def test_detector_init(self):
        """Test detector defaults"""
        detector = DocumentDetector()
        assert detector.blur_kernel == 5
        assert detector.close_kernel == 5
        assert detector.dilate_kernel == 5
        assert detector.canny_low == 30
        assert detector.canny_high == 100
        assert detector.min_area_divisor == 20
        assert detector.approx_epsilon == 0.03
        assert detector.rough_epsilon == 0.05

    def test_detector_invalid_params(self):
        """Test initialization with invalid parameters"""
        with pytest.raises(ValueError):
            DocumentDetector(blur_kernel=4)
        with pytest.raises(ValueError):
            DocumentDetector(canny_low=100, canny_high=30)
        with pytest.raises(ValueError):
            DocumentDetector(min_area_divisor=0)

    def test_detect_none_image(self, detector):
        """Test detection with None image"""
        assert detector.detect(None) is None

    def test_detect_empty_image(self, detector):
        """Test detection with empty image"""
        assert detector.detect(np.array([])) is None

    def test_detect_blank_frame(self, detector):
        """A frame without any document gives no detection"""
        assert detector.detect(make_frame([])) is None

    def test_detect_rectangle(self, detector, rectangle):
        """Axis-aligned document is found with ordered corners"""
        corners = detector.detect(make_frame([rectangle]))

        assert corners is not None, "Document was not detected"
        assert corners.shape == (4, 2)
        assert corners.dtype == np.float32
        assert_corners_close(corners, rectangle)

    def test_detect_perspective_quad(self, detector):
        """Skewed document is found with ordered corners"""
        quad = [(100, 60), (380, 90), (360, 300), (120, 280)]
        corners = detector.detect(make_frame([quad]))

        assert corners is not None, "Document was not detected"
        # the thickened edge pushes acute corners outward a little more
        assert_corners_close(corners, quad, tolerance=8.0)

    def test_detect_grayscale_and_bgra(self, detector, rectangle):
        """Grayscale and BGRA frames are accepted"""
        image = make_frame([rectangle])
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        bgra = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)

        assert detector.detect(gray) is not None
        assert detector.detect(bgra) is not None

    def test_small_document_rejected(self, detector):
        """Contours under 1/20 of the frame area are ignored"""
        # 60x60 = 3600 px, threshold is 480*360/20 = 8640 px
        small = [(200, 150), (260, 150), (260, 210), (200, 210)]
        assert detector.detect(make_frame([small])) is None

    def test_largest_candidate_wins(self, detector):
        """Among several valid quadrilaterals the largest area wins"""
        small = [(20, 20), (150, 20), (150, 120), (20, 120)]
        large = [(200, 80), (450, 80), (450, 330), (200, 330)]
        corners = detector.detect(make_frame([small, large]))

        assert corners is not None
        assert_corners_close(corners, large)

    def test_triangle_rejected(self, detector):
        """Shapes that approximate to 3 vertices are not documents"""
        triangle = [(240, 40), (420, 320), (60, 320)]
        assert detector.detect(make_frame([triangle])) is None

    def test_many_vertices_dropped(self, detector):
        """A polygon that approximates to 7+ vertices is dropped for the frame"""
        center = np.array([240, 180])
        angles = np.linspace(0, 2 * np.pi, 8, endpoint=False) + np.pi / 8
        octagon = center + 130 * np.column_stack((np.cos(angles), np.sin(angles)))
        assert detector.detect(make_frame([octagon])) is None

    def test_clipped_corner_coerced_to_quad(self, detector):
        """A 5-vertex outline is coerced to 4 corners by the looser retry"""
        # top-right corner cut off by 50px
        clipped = [(100, 60), (330, 60), (380, 110), (380, 300), (100, 300)]
        corners = detector.detect(make_frame([clipped]))

        assert corners is not None
        assert corners.shape == (4, 2)
        assert_corners_close(corners[[0, 2, 3]], [(100, 60), (380, 300), (100, 300)])
        # the cut edge keeps one of its two ends
        distances = np.linalg.norm(np.array([(330, 60), (380, 110)]) - corners[1], axis=1)
        assert distances.min() <= 8.0

    def test_clipped_corner_needs_retry(self):
        """Without a looser retry tolerance the 5-vertex outline is rejected"""
        detector = DocumentDetector(rough_epsilon=0.03)
        clipped = [(100, 60), (330, 60), (380, 110), (380, 300), (100, 300)]
        assert detector.detect(make_frame([clipped])) is None

    def test_hexagon_retry_fails(self, detector):
        """A hexagon stays at 6 vertices after the retry and is rejected"""
        center = np.array([240, 180])
        angles = np.linspace(0, 2 * np.pi, 6, endpoint=False)
        hexagon = center + 140 * np.column_stack((np.cos(angles), np.sin(angles)))
        assert detector.detect(make_frame([hexagon])) is None


class TestEdgeMap:
    """Tests for the edge map stage"""

    @pytest.fixture
    def detector(self):
        return DocumentDetector()

    def test_edge_map_shape_and_values(self, detector):
        """Edge map keeps the frame size and is binary"""
        image = make_frame([[(140, 100), (340, 100), (340, 250), (140, 250)]])
        edge_map = detector.build_edge_map(image)

        assert edge_map.shape == (ANALYSIS_SIZE[1], ANALYSIS_SIZE[0])
        assert set(np.unique(edge_map)).issubset({0, 255})
        assert np.count_nonzero(edge_map) > 0

    def test_edge_map_blank(self, detector):
        """A flat frame produces an empty edge map, not an error"""
        edge_map = detector.build_edge_map(make_frame([]))
        assert np.count_nonzero(edge_map) == 0

    def test_low_contrast_document(self, detector):
        """Low thresholds still pick up paper barely lighter than the surface"""
        rectangle = [(120, 80), (360, 80), (360, 280), (120, 280)]
        image = make_frame([rectangle], background=110, paper=175)
        corners = detector.detect(image)

        assert corners is not None
        assert_corners_close(corners, rectangle)

    def test_find_candidates_reports_area(self, detector):
        """Each candidate carries its contour area"""
        rectangle = [(140, 100), (340, 100), (340, 250), (140, 250)]
        edge_map = detector.build_edge_map(make_frame([rectangle]))
        candidates = detector.find_candidates(edge_map)

        assert len(candidates) == 1
        quad, area = candidates[0]
        assert quad.shape == (4, 2)
        # outer boundary of the thickened edge, slightly larger than the paper
        assert 200 * 150 <= area <= 212 * 162
