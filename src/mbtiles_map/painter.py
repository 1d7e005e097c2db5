"""
Painters receive the draw commands emitted by the map.

A draw command is (image, top-left placement in map pixels, image ratio).
The image ratio is the number of image pixels per map pixel.
"""

from typing import Protocol

from PIL import Image

from .geometry import PixelPoint, PixelRect


class Painter(Protocol):
    def draw_image(self, image: Image.Image, point: PixelPoint, ratio: float) -> None:
        ...


class ImagePainter:
    """
    Composites tiles onto a Pillow canvas covering a viewport.

    The canvas has viewport size times `ratio` pixels so that high-density
    output keeps the native tile resolution.
    """

    def __init__(self, viewport: PixelRect, ratio: float = 1.0, background=(255, 255, 255, 0)):
        self.viewport = viewport
        self.ratio = ratio
        size = (
            max(1, int(round(viewport.width * ratio))),
            max(1, int(round(viewport.height * ratio))),
        )
        self.canvas = Image.new("RGBA", size, background)

    def draw_image(self, image: Image.Image, point: PixelPoint, ratio: float) -> None:
        # Map pixels -> canvas pixels
        scale = self.ratio / ratio
        if scale != 1.0:
            image = image.resize(
                (int(round(image.width * scale)), int(round(image.height * scale))),
                Image.Resampling.BILINEAR,
            )
        x = int(round((point.x - self.viewport.left) * self.ratio))
        y = int(round((point.y - self.viewport.top) * self.ratio))
        tile = image.convert("RGBA")
        self.canvas.paste(tile, (x, y), tile)

    def save(self, path, format=None):
        self.canvas.save(path, format=format)
