from PySide6.QtGui import QColor, QImage

from panelreader.image_utils import average_color, qimage_to_numpy_rgba

from conftest import make_image


def test_numpy_view_has_page_shape_and_pixels():
    arr = qimage_to_numpy_rgba(make_image(37, 21, (10, 20, 30)))
    assert arr.shape == (21, 37, 4)
    assert tuple(arr[5, 5, :3]) == (10, 20, 30)


def test_average_color_of_flat_image():
    assert average_color(make_image(300, 200, (200, 40, 90))) == (200, 40, 90)


def test_average_color_blends_halves():
    img = make_image(100, 100, (0, 0, 0))
    for y in range(100):
        for x in range(50, 100):
            img.setPixelColor(x, y, QColor(200, 200, 200))
    r, g, b = average_color(img)
    assert 90 <= r <= 110
    assert r == g == b


def test_average_color_of_null_image_is_black():
    assert average_color(QImage()) == (0, 0, 0)
