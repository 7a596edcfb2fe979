"""Document model adapter: pages, resources and content streams on pypdf."""

import logging
import zlib
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from PIL import Image
from pypdf import PdfWriter
from pypdf.errors import PyPdfError
from pypdf.generic import (
    ArrayObject,
    ByteStringObject,
    ContentStream,
    DecodedStreamObject,
    DictionaryObject,
    FloatObject,
    IndirectObject,
    NameObject,
    NumberObject,
    RectangleObject,
    StreamObject,
    TextStringObject,
)

from .constants import A4_HEIGHT, A4_WIDTH, OVERLAY_GSTATE_NAME, OVERLAY_OPACITY
from .errors import DocumentError, PageNotFoundError
from .fonts import STANDARD_BASE_FONTS
from .images import ImageRegistry, TableImage
from .primitives import Name, Operation

logger = logging.getLogger(__name__)


class DocumentModel(Protocol):
    """What the drawing layer needs from a document."""

    def create_page(self, source_page_id: Any) -> Any:
        """New page after the source page, with its media box and resources."""

    def page_height(self, page_id: Any) -> float:
        ...

    def page_resources(self, page_id: Any) -> Any:
        ...

    def register_images(self, page_id: Any, registry: ImageRegistry) -> None:
        ...

    def append_content(self, page_id: Any, operations: Sequence[Operation]) -> None:
        ...


def _pdf_operand(value):
    if isinstance(value, Name):
        return NameObject("/" + value)
    if isinstance(value, bool):
        return NumberObject(int(value))
    if isinstance(value, int):
        return NumberObject(value)
    if isinstance(value, float):
        return FloatObject(value)
    if isinstance(value, (bytes, bytearray)):
        return ByteStringObject(bytes(value))
    if isinstance(value, str):
        return TextStringObject(value)
    if isinstance(value, (list, tuple)):
        return ArrayObject([_pdf_operand(v) for v in value])
    if isinstance(value, dict):
        return DictionaryObject({NameObject("/" + str(k)): _pdf_operand(v) for k, v in value.items()})
    raise DocumentError(f"Cannot encode operand {value!r} of type {type(value).__name__}")


def _py_operand(value):
    if isinstance(value, NameObject):
        return Name(value[1:])
    if isinstance(value, ByteStringObject):
        return bytes(value)
    if isinstance(value, TextStringObject):
        return value.original_bytes
    if isinstance(value, FloatObject):
        return float(value)
    if isinstance(value, NumberObject):
        return int(value)
    if isinstance(value, ArrayObject):
        return [_py_operand(v) for v in value]
    if isinstance(value, DictionaryObject):
        return {str(k)[1:]: _py_operand(v) for k, v in value.items()}
    return value


def encode_operations(operations: Sequence[Operation], writer: Optional[PdfWriter] = None) -> bytes:
    """Serialize operations into content-stream bytes."""
    content = ContentStream(ArrayObject(), writer)
    content.operations = [
        ([_pdf_operand(v) for v in operation.operands], operation.operator.encode("latin-1"))
        for operation in operations
    ]
    return content.get_data()


def _color_space(mode: str) -> str:
    if mode in ("L", "1"):
        return "/DeviceGray"
    if mode == "CMYK":
        return "/DeviceCMYK"
    return "/DeviceRGB"


def _image_stream(data: bytes, width: int, height: int, color_space: str, filter_name: str) -> StreamObject:
    stream = StreamObject()
    stream._data = data
    stream.update({
        NameObject("/Type"): NameObject("/XObject"),
        NameObject("/Subtype"): NameObject("/Image"),
        NameObject("/Width"): NumberObject(width),
        NameObject("/Height"): NumberObject(height),
        NameObject("/ColorSpace"): NameObject(color_space),
        NameObject("/BitsPerComponent"): NumberObject(8),
        NameObject("/Filter"): NameObject(filter_name),
        NameObject("/Length"): NumberObject(len(data)),
    })
    return stream


class PdfDocument:
    """
    DocumentModel backed by a pypdf PdfWriter.

    Pages are identified by their indirect reference. Image XObjects are
    created once per image id and the overlay graphics state once per
    document, then shared by every page that uses them.
    """

    def __init__(self, writer: Optional[PdfWriter] = None):
        self.writer = writer if writer is not None else PdfWriter()
        self._image_refs: Dict[int, IndirectObject] = {}
        self._gstate_ref: Optional[IndirectObject] = None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PdfDocument":
        try:
            return cls(PdfWriter(clone_from=str(path)))
        except (PyPdfError, OSError) as exc:
            raise DocumentError(f"Cannot open {path}: {exc}", cause=exc) from exc

    @property
    def page_ids(self) -> List[Any]:
        return [page.indirect_reference for page in self.writer.pages]

    def add_page(self, width: float = A4_WIDTH, height: float = A4_HEIGHT, standard_fonts: bool = True) -> Any:
        """Append a blank page; by default its resources carry the built-in fonts."""
        self.writer.add_blank_page(width=width, height=height)
        page = self.writer.pages[-1]
        if standard_fonts:
            self.ensure_standard_fonts(page.indirect_reference)
        logger.debug("Added %.0fx%.0f page %s", width, height, page.indirect_reference)
        return page.indirect_reference

    def _page_index(self, page_id: Any) -> int:
        for index, page in enumerate(self.writer.pages):
            if page.indirect_reference == page_id:
                return index
        raise PageNotFoundError(page_id)

    def _page(self, page_id: Any):
        return self.writer.pages[self._page_index(page_id)]

    def page_height(self, page_id: Any) -> float:
        return float(self._page(page_id).mediabox.height)

    def page_resources(self, page_id: Any) -> DictionaryObject:
        """The page's resource dictionary, created empty when missing."""
        page = self._page(page_id)
        if "/Resources" not in page:
            page[NameObject("/Resources")] = DictionaryObject()
        return page["/Resources"]

    def _sub_dict(self, resources: DictionaryObject, key: str) -> DictionaryObject:
        if key not in resources:
            resources[NameObject(key)] = DictionaryObject()
        return resources[key]

    def _shared_resources(self, page) -> Optional[IndirectObject]:
        """Make the page's resources indirect so another page can reference them."""
        if "/Resources" not in page:
            return None
        raw = page.raw_get("/Resources")
        if isinstance(raw, IndirectObject):
            return raw
        ref = self.writer._add_object(raw)
        page[NameObject("/Resources")] = ref
        return ref

    def create_page(self, source_page_id: Any) -> Any:
        index = self._page_index(source_page_id)
        source = self.writer.pages[index]
        box = source.mediabox
        try:
            self.writer.insert_blank_page(width=box.width, height=box.height, index=index + 1)
        except PyPdfError as exc:
            raise DocumentError(f"Cannot create page after {source_page_id!r}", cause=exc) from exc

        page = self.writer.pages[index + 1]
        page[NameObject("/MediaBox")] = RectangleObject([box.left, box.bottom, box.right, box.top])
        resources = self._shared_resources(source)
        if resources is not None:
            page[NameObject("/Resources")] = resources
        logger.debug("Created continuation page %s after %s", page.indirect_reference, source_page_id)
        return page.indirect_reference

    def ensure_standard_fonts(self, page_id: Any) -> None:
        """Register the built-in F1/F2/F3 fonts and their bold variants."""
        fonts = self._sub_dict(self.page_resources(page_id), "/Font")
        for resource, base_font in STANDARD_BASE_FONTS.items():
            key = "/" + resource
            if key in fonts:
                continue
            font = DictionaryObject({
                NameObject("/Type"): NameObject("/Font"),
                NameObject("/Subtype"): NameObject("/Type1"),
                NameObject("/BaseFont"): NameObject("/" + base_font),
                NameObject("/Encoding"): NameObject("/WinAnsiEncoding"),
            })
            fonts[NameObject(key)] = self.writer._add_object(font)

    def _image_ref(self, image: TableImage) -> IndirectObject:
        ref = self._image_refs.get(image.image_id)
        if ref is not None:
            return ref

        if image.format == "JPEG":
            stream = _image_stream(image.data, image.width_px, image.height_px,
                                   _color_space(image.mode), "/DCTDecode")
        else:
            stream = self._flate_image(image)

        ref = self.writer._add_object(stream)
        self._image_refs[image.image_id] = ref
        logger.debug("Embedded %s image %d (%dx%d)", image.format, image.image_id, image.width_px, image.height_px)
        return ref

    def _flate_image(self, image: TableImage) -> StreamObject:
        try:
            with Image.open(BytesIO(image.data)) as img:
                has_alpha = img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info
                rgba = img.convert("RGBA") if has_alpha else None
                rgb = img.convert("RGB")
                rgb_bytes = rgb.tobytes()
                alpha_bytes = rgba.getchannel("A").tobytes() if rgba is not None else None
        except OSError as exc:
            raise DocumentError(f"Cannot decode image {image.image_id}", cause=exc) from exc

        stream = _image_stream(zlib.compress(rgb_bytes), image.width_px, image.height_px,
                               "/DeviceRGB", "/FlateDecode")
        if alpha_bytes is not None:
            smask = _image_stream(zlib.compress(alpha_bytes), image.width_px, image.height_px,
                                  "/DeviceGray", "/FlateDecode")
            stream[NameObject("/SMask")] = self.writer._add_object(smask)
        return stream

    def _overlay_state(self) -> IndirectObject:
        if self._gstate_ref is None:
            gstate = DictionaryObject({
                NameObject("/Type"): NameObject("/ExtGState"),
                NameObject("/ca"): FloatObject(OVERLAY_OPACITY),
                NameObject("/CA"): FloatObject(OVERLAY_OPACITY),
            })
            self._gstate_ref = self.writer._add_object(gstate)
        return self._gstate_ref

    def register_images(self, page_id: Any, registry: ImageRegistry) -> None:
        """Attach the registry's images (and overlay state, if needed) to a page."""
        resources = self.page_resources(page_id)
        if len(registry):
            xobjects = self._sub_dict(resources, "/XObject")
            for name, image in registry.entries():
                xobjects[NameObject("/" + name)] = self._image_ref(image)
        if registry.needs_overlay_state:
            states = self._sub_dict(resources, "/ExtGState")
            states[NameObject("/" + OVERLAY_GSTATE_NAME)] = self._overlay_state()

    def append_content(self, page_id: Any, operations: Sequence[Operation]) -> None:
        """Append operations to a page as a new content stream."""
        if not operations:
            return
        page = self._page(page_id)
        try:
            data = encode_operations(operations, self.writer)
        except PyPdfError as exc:
            raise DocumentError(f"Cannot encode content for page {page_id!r}", cause=exc) from exc

        stream = DecodedStreamObject()
        stream.set_data(data)
        ref = self.writer._add_object(stream)

        if "/Contents" not in page:
            page[NameObject("/Contents")] = ArrayObject([ref])
        else:
            existing = page.raw_get("/Contents")
            resolved = existing.get_object()
            if isinstance(resolved, ArrayObject):
                resolved.append(ref)
            else:
                page[NameObject("/Contents")] = ArrayObject([existing, ref])
        logger.debug("Appended %d operations (%d bytes) to page %s", len(operations), len(data), page_id)

    def page_operations(self, page_id: Any) -> List[Operation]:
        """Decode a page's content back into operations."""
        page = self._page(page_id)
        if "/Contents" not in page:
            return []
        try:
            content = ContentStream(page["/Contents"], self.writer)
            parsed = content.operations
        except PyPdfError as exc:
            raise DocumentError(f"Cannot decode content of page {page_id!r}", cause=exc) from exc
        return [
            Operation(operator.decode("latin-1"), tuple(_py_operand(v) for v in operands))
            for operands, operator in parsed
        ]

    def to_bytes(self) -> bytes:
        buffer = BytesIO()
        self.writer.write(buffer)
        return buffer.getvalue()

    def write(self, path: Union[str, Path]) -> None:
        try:
            with open(path, "wb") as fh:
                self.writer.write(fh)
        except (PyPdfError, OSError) as exc:
            raise DocumentError(f"Cannot write {path}: {exc}", cause=exc) from exc
