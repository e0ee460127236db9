import numpy as np
import pytest

from vision.errors import ModelError
from vision.extractor import CheapEmbedder, DescriptorExtractor, EmbedFactory, expand_crop_xyxy, l2_normalize


@pytest.fixture
def factory(tmp_path):
    return EmbedFactory(models_dir=tmp_path)


def test_missing_model_falls_back_to_cheap(factory):
    assert factory.impl_name == "CHEAP"
    assert factory.emb_dim == 1024


def test_cheap_embedding_is_unit_length():
    rng = np.random.default_rng(0)
    face = rng.integers(0, 255, size=(80, 60, 3), dtype=np.uint8)
    res = CheapEmbedder().embed(face)
    assert res.ok
    assert res.emb.shape == (1024,)
    assert np.linalg.norm(res.emb) == pytest.approx(1.0, abs=1e-4)


def test_cheap_embedding_reports_bad_input():
    res = CheapEmbedder().embed(np.zeros((0, 0, 3), np.uint8))
    assert not res.ok
    assert res.error


def test_blank_frame_has_no_faces(factory):
    extractor = DescriptorExtractor(factory=factory)
    frame = np.zeros((240, 320, 3), np.uint8)
    assert extractor.describe(frame) == []
    with pytest.raises(ModelError, match="No face detected"):
        extractor.describe_single(frame)


def test_crop_expansion_stays_in_bounds():
    img = np.zeros((100, 100, 3), np.uint8)
    assert expand_crop_xyxy(img, 0, 0, 100, 100) == (0, 0, 100, 100)
    assert expand_crop_xyxy(img, 40, 40, 60, 60, margin=0.5) == (30, 30, 70, 70)


def test_l2_normalize():
    v = l2_normalize(np.array([3.0, 4.0]))
    assert v.dtype == np.float32
    assert v.tolist() == pytest.approx([0.6, 0.8])
