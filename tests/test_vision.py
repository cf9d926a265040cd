import sys
import types

from panelreader import vision
from panelreader.vision import VisionCapability, load_vision


def reset_vision(monkeypatch):
    monkeypatch.setattr(vision, "_vision", None)
    monkeypatch.setattr(vision, "_vision_checked", False)


def test_missing_opencv_disables_vision_once(monkeypatch):
    reset_vision(monkeypatch)
    monkeypatch.setitem(sys.modules, "cv2", None)
    assert load_vision() is None

    # Installing OpenCV later does not change the answer for this process
    monkeypatch.setitem(sys.modules, "cv2", types.SimpleNamespace(__version__="9.9"))
    assert load_vision() is None


def test_available_opencv_is_wrapped_and_shared(monkeypatch):
    reset_vision(monkeypatch)
    monkeypatch.setitem(sys.modules, "cv2", types.SimpleNamespace(__version__="4.9.0"))
    first = load_vision()
    assert isinstance(first, VisionCapability)
    assert first.version == "4.9.0"
    assert load_vision() is first
