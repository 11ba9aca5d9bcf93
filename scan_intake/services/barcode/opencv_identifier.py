import logging
from typing import Any, Iterable, Optional

import cv2
import numpy as np


def _first_text(decoded: Iterable[str]) -> Optional[str]:
    for text in decoded:
        if text and text.strip():
            return text
    return None


class OpenCvBarcodeIdentifier:
    """
    Decodes 1D barcodes and QR codes with OpenCV.

    Tries every symbol the barcode detector finds, then falls back to the QR
    detector. Detectors are created per call so one instance can be shared by
    worker threads.
    """

    def identify(self, image: Any) -> Optional[str]:
        gray = self._to_grayscale(image)

        try:
            ok, decoded, _types, _points = cv2.barcode.BarcodeDetector().detectAndDecodeMulti(gray)
            if ok:
                text = _first_text(decoded)
                if text is not None:
                    return text

            ok, decoded, _points, _straight = cv2.QRCodeDetector().detectAndDecodeMulti(gray)
            if ok:
                return _first_text(decoded)
        except cv2.error as e:
            logging.debug(f"OpenCV could not decode image: {e}")

        return None

    @staticmethod
    def _to_grayscale(image: Any) -> np.ndarray:
        array = np.asarray(image)
        if array.ndim == 3 and array.shape[2] == 4:
            return cv2.cvtColor(array, cv2.COLOR_RGBA2GRAY)
        if array.ndim == 3:
            return cv2.cvtColor(array, cv2.COLOR_RGB2GRAY)
        return array
