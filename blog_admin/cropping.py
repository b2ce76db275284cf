"""
Crop session for turning one source image into aspect-ratio variants.

A session tracks the ratio being edited, the current crop rectangle and
zoom, and at most one rendered variant per ratio. Re-cropping a ratio
replaces its variant instead of adding a second one.
"""
from dataclasses import dataclass

from .conf import admin_settings
from .exceptions import EmptyBatch, InvalidCropArea, NoCropArea, UnknownRatio
from .ratios import catalog as default_catalog
from .rendering import VariantRenderer


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in source-image pixels."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if min(self.x, self.y) < 0 or self.width <= 0 or self.height <= 0:
            raise InvalidCropArea(
                f"Invalid crop area {self.width}x{self.height}+{self.x}+{self.y}"
            )

    @property
    def box(self):
        """Return the (left, upper, right, lower) box Pillow expects."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def fits(self, width, height):
        """Check the rectangle lies within a width x height image."""
        return self.x + self.width <= width and self.y + self.height <= height


@dataclass(frozen=True)
class Variant:
    """One rendered crop of the source image, tagged with its ratio."""

    data: bytes
    ratio_name: str
    content_type: str = "image/jpeg"

    @property
    def size(self):
        return len(self.data)


def clamp_zoom(factor):
    """Clamp a zoom factor into the configured range."""
    return max(admin_settings.ZOOM_MIN, min(admin_settings.ZOOM_MAX, float(factor)))


class CropSession:
    """
    Interactive cropping state for one source image.

    Typical use:

        session = CropSession(image_bytes)
        session.select_ratio("landscape")
        session.update_crop(CropRect(0, 120, 1600, 900))
        session.add_current_crop()
        variants = session.finalize()
    """

    def __init__(self, source, renderer=None, catalog=None, ratio=None):
        self.source = source
        self.renderer = renderer or VariantRenderer()
        self.catalog = catalog or default_catalog
        self.ratio_name = self.catalog.resolve(ratio or admin_settings.DEFAULT_RATIO).name
        self.crop = None
        self.zoom = admin_settings.ZOOM_MIN
        self.variants = {}
        self._source_size = None

    def __len__(self):
        return len(self.variants)

    @property
    def ratio(self):
        return self.catalog.resolve(self.ratio_name)

    @property
    def source_size(self):
        """(width, height) of the source image, decoded on first use."""
        if self._source_size is None:
            self._source_size = self.renderer.probe(self.source)
        return self._source_size

    def select_ratio(self, name):
        """
        Switch the ratio being edited.

        Existing variants are kept. The current crop is dropped when the
        ratio changes since it was computed for the previous ratio.
        """
        ratio = self.catalog.resolve(name)
        if ratio.name != self.ratio_name:
            self.crop = None
        self.ratio_name = ratio.name
        return ratio

    def update_crop(self, rect):
        width, height = self.source_size
        if not rect.fits(width, height):
            raise InvalidCropArea(
                f"Crop area {rect.box} exceeds source image {width}x{height}"
            )
        self.crop = rect

    def update_zoom(self, factor):
        self.zoom = clamp_zoom(factor)
        return self.zoom

    def add_current_crop(self):
        """
        Render the current crop and store it under the current ratio.

        Replaces any variant already held for that ratio.

        Raises:
            NoCropArea: no crop rectangle was set for the current ratio.
            RenderFailure: the renderer could not produce the image.
        """
        if self.crop is None:
            raise NoCropArea()
        data = self.renderer.render(self.source, self.crop)
        variant = Variant(
            data=data,
            ratio_name=self.ratio_name,
            content_type=self.renderer.content_type,
        )
        self.variants[self.ratio_name] = variant
        return variant

    def has_variant(self, name):
        try:
            return self.catalog.resolve(name).name in self.variants
        except UnknownRatio:
            return False

    def remove_variant(self, name):
        """Remove the variant for ``name`` if there is one."""
        if name in self.catalog:
            name = self.catalog.resolve(name).name
        self.variants.pop(name, None)

    def finalize(self):
        """
        Return the variants in the order their ratios were first added.

        Raises:
            EmptyBatch: no variants have been added.
        """
        if not self.variants:
            raise EmptyBatch("Add at least one cropped image before uploading")
        return list(self.variants.values())

    def discard(self):
        """Forget the crop state and every variant."""
        self.crop = None
        self.zoom = admin_settings.ZOOM_MIN
        self.variants.clear()
