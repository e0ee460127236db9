import numpy as np
import pytest

from vision.descriptor_store import DescriptorStore, Reference
from vision.matcher import euclidean_distance, match


def ref(sid, vec, name=None):
    return Reference(sid, name or sid, np.asarray(vec, dtype=np.float32))


def test_picks_closest_below_threshold():
    refs = [ref("S1", [0, 0, 0, 0]), ref("S2", [1, 1, 1, 1])]
    m = match([0.4, 0, 0, 0], refs, 0.6)
    assert m is not None
    assert m.student_id == "S1"
    assert m.distance == pytest.approx(0.4)


def test_threshold_is_strict():
    refs = [ref("S1", [0, 0, 0])]
    assert match([0.6, 0, 0], refs, 0.6) is None
    assert match([0.59, 0, 0], refs, 0.6).student_id == "S1"


def test_no_candidates_or_all_far():
    assert match([0, 0], [], 0.6) is None
    assert match([5, 5], [ref("S1", [0, 0])], 0.6) is None


def test_tie_keeps_first_candidate():
    refs = [ref("A", [1, 0]), ref("B", [-1, 0])]
    assert match([0, 0], refs, 2.0).student_id == "A"


def test_mismatched_dimensions_are_skipped():
    refs = [ref("S1", [0, 0, 0]), ref("S2", [0.1, 0, 0, 0])]
    assert match([0, 0, 0, 0], refs, 0.6).student_id == "S2"


def test_euclidean_distance():
    assert euclidean_distance(np.array([0, 0]), np.array([3, 4])) == pytest.approx(5.0)



def test_store_from_rows_skips_missing_faces():
    store = DescriptorStore.from_rows([
        {"usn": "S1", "name": "Asha", "faceData": [0.0, 0.0]},
        {"usn": "S2", "name": "Bala", "faceData": []},
        {"usn": "S3", "name": "Chitra"},
    ])
    assert len(store) == 1
    assert store.name_of("S1") == "Asha"
    assert store.name_of("S9") == "S9"
    with pytest.raises(ValueError):
        store.references[0].vector[0] = 1.0
