"""
Tests for per-frame classification and counting.
"""

import pytest

from counting.classifier import FrameClassifier, classify, format_label, scale_factors
from models.counts import TRACKED_CLASSES
from models.detection import Detection

ALL = frozenset(TRACKED_CLASSES)


def det(class_name, score, bbox=(10, 10, 20, 20)):
    return Detection.from_raw({"class": class_name, "score": score, "bbox": list(bbox)})


class TestClassify:
    """Tests for the classify() function."""

    def test_counts_included_detections(self):
        detections = [det("person", 0.9), det("person", 0.8), det("car", 0.7), det("dog", 0.95)]

        result = classify(detections, 0.5, ALL)

        assert result.counts == {"person": 2, "car": 1, "truck": 0, "bus": 0}
        assert result.included == 3

    def test_threshold_is_inclusive(self):
        result = classify([det("car", 0.5), det("car", 0.49)], 0.5, ALL)

        assert result.counts["car"] == 1

    def test_high_threshold_drops_everything_below(self):
        detections = [det("person", 0.6), det("car", 0.85), det("bus", 0.9)]

        result = classify(detections, 0.9, ALL)

        assert result.counts == {"person": 0, "car": 0, "truck": 0, "bus": 1}

    def test_unselected_class_not_counted_or_drawn(self):
        result = classify([det("person", 0.9), det("car", 0.9)], 0.5, {"car"})

        assert result.counts["person"] == 0
        assert result.counts["car"] == 1
        assert [a.class_name for a in result.annotations] == ["car"]

    def test_selected_untracked_class_drawn_not_counted(self):
        result = classify([det("dog", 0.9)], 0.5, ALL | {"dog"})

        assert sum(result.counts.values()) == 0
        assert len(result.annotations) == 1

    def test_empty_frame_gives_zero_counts(self):
        result = classify([], 0.5, ALL)

        assert result.counts == {"person": 0, "car": 0, "truck": 0, "bus": 0}
        assert result.annotations == []

    def test_counts_do_not_accumulate(self):
        classifier = FrameClassifier()
        classifier.classify([det("person", 0.9)] * 3)

        second = classifier.classify([det("person", 0.9)])

        assert second.counts["person"] == 1

    def test_annotations_scaled_to_display(self):
        result = classify(
            [det("truck", 0.875, bbox=(100, 50, 200, 100))],
            0.5,
            ALL,
            frame_size=(1280, 720),
            display_size=(640, 360),
        )

        ann = result.annotations[0]
        assert ann.bbox.as_xywh() == (50, 25, 100, 50)
        assert ann.label == "truck 87.5%"

    def test_scaling_axes_are_independent(self):
        assert scale_factors((100, 100), (200, 50)) == (2.0, 0.5)

    def test_missing_sizes_do_not_scale(self):
        assert scale_factors(None, (200, 50)) == (1.0, 1.0)
        assert scale_factors((0, 100), (200, 50)) == (1.0, 0.5)


class TestFormatLabel:
    def test_one_decimal_percent(self):
        assert format_label("person", 0.8766) == "person 87.7%"
        assert format_label("car", 1.0) == "car 100.0%"


class TestFrameClassifier:
    """Tests for the settings holder."""

    def test_defaults(self):
        classifier = FrameClassifier()

        assert classifier.confidence_threshold == 0.5
        assert classifier.selected_classes == ALL

    @pytest.mark.parametrize("value", [-0.01, 1.01])
    def test_rejects_out_of_range_threshold(self, value):
        classifier = FrameClassifier()

        with pytest.raises(ValueError):
            classifier.confidence_threshold = value
        assert classifier.confidence_threshold == 0.5

    def test_threshold_change_applies_next_call(self):
        classifier = FrameClassifier()
        detections = [det("car", 0.7)]
        assert classifier.classify(detections).counts["car"] == 1

        classifier.confidence_threshold = 0.9

        assert classifier.classify(detections).counts["car"] == 0

    def test_sorted_selection_puts_tracked_first(self):
        classifier = FrameClassifier(selected_classes=["dog", "bus", "person"])

        assert list(classifier.sorted_selection()) == ["person", "bus", "dog"]

    def test_select_classes_replaces_selection(self):
        classifier = FrameClassifier()
        classifier.select_classes(["car"])

        assert classifier.selected_classes == frozenset({"car"})
