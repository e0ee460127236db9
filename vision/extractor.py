# vision/extractor.py
# ------------------------------------------------------------
# Frame -> face descriptors, shared by the camera loop and enrolment.
#   boxes:      Haar cascade (CPU only, no model download)
#   embedding:  arcface.onnx under MODELS_DIR when present,
#               otherwise a normalised 32x32 grey patch (1024-D)
# Descriptors are L2-normalised float32 vectors; callers treat them
# as opaque and only ever compare them by distance.
# ------------------------------------------------------------
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional, Tuple

import cv2
import numpy as np
import onnxruntime as ort

from . import config
from .errors import ModelError

logger = logging.getLogger(__name__)

ARCFACE_FILE = "arcface.onnx"
ARCFACE_SIDE = 112


def l2_normalize(v: np.ndarray, eps: float = 1e-9) -> np.ndarray:
    v = np.asarray(v, dtype=np.float32).reshape(-1)
    return v / (float(np.linalg.norm(v)) + eps)


def expand_crop_xyxy(img, x1, y1, x2, y2, margin=0.15):
    """Grow a box by `margin` of its size on every side, clipped to the image."""
    h, w = img.shape[:2]
    mx, my = int((x2 - x1) * margin), int((y2 - y1) * margin)
    return max(0, x1 - mx), max(0, y1 - my), min(w, x2 + mx), min(h, y2 + my)


@dataclass
class EmbedResult:
    emb: np.ndarray
    ok: bool
    error: Optional[str] = None

    @classmethod
    def failed(cls, dim: int, error) -> "EmbedResult":
        return cls(np.zeros(dim, np.float32), False, str(error))


class CheapEmbedder:
    """Grey 32x32 patch, zero-mean / unit-variance. Used when no model is installed."""
    name = "CHEAP"
    emb_dim = 32 * 32

    def embed(self, face_bgr: np.ndarray) -> EmbedResult:
        try:
            patch = cv2.resize(cv2.cvtColor(face_bgr, cv2.COLOR_BGR2GRAY), (32, 32),
                               interpolation=cv2.INTER_AREA).astype(np.float32)
        except cv2.error as e:
            return EmbedResult.failed(self.emb_dim, e)
        patch -= patch.mean()
        patch /= patch.std() + 1e-6
        return EmbedResult(l2_normalize(patch), True)


class ArcFaceONNX:
    """ArcFace through onnxruntime; accepts either NCHW or NHWC exports."""
    name = "ArcFace"
    emb_dim = 512

    def __init__(self, model_path: str, providers: Optional[List[str]] = None):
        opts = ort.SessionOptions()
        opts.log_severity_level = 3
        self.sess = ort.InferenceSession(model_path, sess_options=opts,
                                         providers=providers or ["CPUExecutionProvider"])
        first_in, first_out = self.sess.get_inputs()[0], self.sess.get_outputs()[0]
        self.inp_name, self.out_name = first_in.name, first_out.name
        dims = list(first_in.shape)
        # NHWC exports put the 3 channels last
        self.channels_last = len(dims) == 4 and dims[-1] == 3
        logger.info("[extractor] %s input=%s channels_last=%s",
                    os.path.basename(model_path), dims, self.channels_last)

    def _blob(self, face_bgr: np.ndarray) -> np.ndarray:
        rgb = cv2.cvtColor(cv2.resize(face_bgr, (ARCFACE_SIDE, ARCFACE_SIDE)), cv2.COLOR_BGR2RGB)
        x = (rgb.astype(np.float32) - 127.5) / 128.0
        if not self.channels_last:
            x = x.transpose(2, 0, 1)
        return np.expand_dims(x, 0)

    def embed(self, face_bgr: np.ndarray) -> EmbedResult:
        try:
            out = self.sess.run([self.out_name], {self.inp_name: self._blob(face_bgr)})[0]
        except Exception as e:
            return EmbedResult.failed(self.emb_dim, e)
        return EmbedResult(l2_normalize(out), True)


class EmbedFactory:
    """Picks ArcFace when `models_dir` holds a loadable model, CHEAP otherwise."""

    def __init__(self, models_dir: str = None):
        self.models_dir = str(models_dir or config.MODELS_DIR)
        self.impl = self._load(os.path.join(self.models_dir, ARCFACE_FILE))
        logger.info("[extractor] Using %s emb_dim=%d", self.impl.name, self.impl.emb_dim)

    @staticmethod
    def _load(model_path: str):
        if os.path.isfile(model_path):
            try:
                return ArcFaceONNX(model_path)
            except Exception as e:
                logger.warning("[extractor] ONNX init failed (%s); using CHEAP embedding.", e)
        else:
            logger.warning("[extractor] %s not found; using CHEAP embedding.", model_path)
        return CheapEmbedder()

    @property
    def impl_name(self) -> str:
        return self.impl.name

    @property
    def emb_dim(self) -> int:
        return self.impl.emb_dim

    def embed(self, face_bgr: np.ndarray) -> EmbedResult:
        return self.impl.embed(face_bgr)


@dataclass
class Face:
    bbox: Tuple[int, int, int, int]  # x1, y1, x2, y2
    descriptor: np.ndarray


class DescriptorExtractor:
    def __init__(self, factory: EmbedFactory = None, min_face_px: int = config.MIN_FACE_PX):
        self.factory = factory or EmbedFactory()
        self.min_face_px = min_face_px
        self.cascade = cv2.CascadeClassifier(cv2.data.haarcascades + "haarcascade_frontalface_default.xml")
        if self.cascade.empty():
            raise ModelError("haarcascade not found")

    def boxes(self, frame_bgr: np.ndarray) -> List[Tuple[int, int, int, int]]:
        gray = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2GRAY)
        faces = self.cascade.detectMultiScale(gray, scaleFactor=1.2, minNeighbors=5,
                                              minSize=(self.min_face_px, self.min_face_px))
        return [(int(x), int(y), int(x + w), int(y + h)) for (x, y, w, h) in faces]

    def describe(self, frame_bgr: np.ndarray) -> List[Face]:
        """Every detected face with its descriptor. No face -> empty list."""
        out = []
        for (x1, y1, x2, y2) in self.boxes(frame_bgr):
            ex1, ey1, ex2, ey2 = expand_crop_xyxy(frame_bgr, x1, y1, x2, y2, margin=0.15)
            res = self.factory.embed(frame_bgr[ey1:ey2, ex1:ex2])
            if not res.ok:
                logger.debug("[extractor] embed failed: %s", res.error)
                continue
            out.append(Face((x1, y1, x2, y2), res.emb))
        return out

    def describe_single(self, frame_bgr: np.ndarray) -> np.ndarray:
        """Descriptor of the only face in the frame (enrolment)."""
        boxes = self.boxes(frame_bgr)
        if not boxes:
            raise ModelError("No face detected")
        if len(boxes) > 1:
            raise ModelError(f"{len(boxes)} faces detected, need exactly one")
        x1, y1, x2, y2 = boxes[0]
        ex1, ey1, ex2, ey2 = expand_crop_xyxy(frame_bgr, x1, y1, x2, y2, margin=0.15)
        res = self.factory.embed(frame_bgr[ey1:ey2, ex1:ex2])
        if not res.ok:
            raise ModelError(f"Descriptor extraction failed: {res.error}")
        return res.emb
