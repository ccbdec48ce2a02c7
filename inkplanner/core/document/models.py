"""
Entity definitions for planner documents.

A Document owns an ordered list of Pages. A Page owns its Elements, InkStrokes
and Links. Elements are a closed set of variants: the ``type`` discriminant
selects exactly one payload class from ``PAYLOAD_TYPES``.
"""
import copy
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union


def generate_id() -> str:
    """Return a fresh random identifier."""
    return str(uuid.uuid4())


def _wire(key: str, **kwargs):
    """Dataclass field that serializes under ``key``."""
    return field(metadata={"key": key}, **kwargs)


def _dump(obj) -> Dict[str, Any]:
    data = {}
    for f in fields(obj):
        key = f.metadata.get("key")
        if key is None:
            continue
        value = getattr(obj, f.name)
        if value is None:
            continue
        data[key] = copy.deepcopy(value)
    return data


def _load(cls, data: Dict[str, Any]) -> Tuple[Dict[str, Any], Set[str]]:
    """Collect constructor kwargs for ``cls`` and the wire keys that were used."""
    kwargs = {}
    consumed = set()
    for f in fields(cls):
        key = f.metadata.get("key")
        if key is not None and key in data:
            kwargs[f.name] = copy.deepcopy(data[key])
            consumed.add(key)
    return kwargs, consumed


# ==============================================================================
# Types
# ==============================================================================


class ElementType(Enum):
    """Discriminant of the Element variants."""

    IMAGE = "image"
    STICKER = "sticker"
    TEXT = "text"
    SHAPE = "shape"
    STICKY_NOTE = "sticky-note"
    WIDGET = "widget"
    TODO_LIST = "todo-list"
    VOICE = "voice"
    BACKGROUND = "background"
    PATH = "path"
    OCR_METADATA = "ocr_metadata"


class Layout(Enum):
    """Page orientation tag."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    SQUARE = "square"
    DOUBLE_WIDTH = "double-width"
    WIDESCREEN = "widescreen"
    CUSTOM = "custom"

    @classmethod
    def for_size(cls, width: float, height: float) -> "Layout":
        """Orientation implied by a width/height pair."""
        if width > height:
            return cls.LANDSCAPE
        if width == height:
            return cls.SQUARE
        return cls.PORTRAIT


MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


@dataclass(frozen=True)
class Dimensions:
    """Page size in base (scale 1.0) pixels."""

    width: float
    height: float

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}

    @staticmethod
    def from_dict(data: Optional[Dict[str, Any]]) -> Optional["Dimensions"]:
        if not data:
            return None
        return Dimensions(width=data["width"], height=data["height"])


@dataclass(frozen=True)
class PagePreset:
    """A standard page size the user can pick instead of the source size."""

    name: str
    width: float
    height: float
    layout: Layout

    @property
    def resizes(self) -> bool:
        """The Custom preset keeps whatever size the page already has."""
        return self.width > 0 and self.height > 0


PAGE_PRESETS = (
    PagePreset("A4 Portrait", 794, 1123, Layout.PORTRAIT),
    PagePreset("A4 Landscape", 1123, 794, Layout.LANDSCAPE),
    PagePreset("Postcard", 394, 583, Layout.CUSTOM),
    PagePreset("Index Card", 300, 500, Layout.CUSTOM),
    PagePreset("Tabloid", 1100, 1700, Layout.CUSTOM),
    PagePreset("Custom", 0, 0, Layout.CUSTOM),
)

A4_DIMENSIONS = Dimensions(794, 1123)
DEFAULT_DIMENSIONS = Dimensions(800, 1000)


def find_preset(name: Optional[str]) -> Optional[PagePreset]:
    """Look up a preset by its display name."""
    if not name:
        return None
    for preset in PAGE_PRESETS:
        if preset.name == name:
            return preset
    return None


# ==============================================================================
# Element payloads
# ==============================================================================


@dataclass
class SourcePayload:
    """image, sticker and background: something drawn from a URL or a fill."""

    src: Optional[str] = _wire("src", default=None)
    fill: Optional[str] = _wire("fill", default=None)
    width: Optional[float] = _wire("width", default=None)
    height: Optional[float] = _wire("height", default=None)


@dataclass
class TextPayload:
    text: str = _wire("text", default="")
    fill: Optional[str] = _wire("fill", default=None)
    font_size: Optional[float] = _wire("fontSize", default=None)
    font_family: Optional[str] = _wire("fontFamily", default=None)
    font_style: Optional[str] = _wire("fontStyle", default=None)
    align: Optional[str] = _wire("align", default=None)
    width: Optional[float] = _wire("width", default=None)


@dataclass
class ShapePayload:
    shape_type: str = _wire("shapeType", default="rect")
    fill: Optional[str] = _wire("fill", default=None)
    stroke: Optional[str] = _wire("stroke", default=None)
    stroke_width: Optional[float] = _wire("strokeWidth", default=None)
    filled: bool = _wire("filled", default=False)
    width: Optional[float] = _wire("width", default=None)
    height: Optional[float] = _wire("height", default=None)


@dataclass
class PathPayload:
    """A freehand stroke folded into the element list."""

    points: List[float] = _wire("points", default_factory=list)
    color: Optional[str] = _wire("color", default=None)
    width: Optional[float] = _wire("width", default=None)
    opacity: Optional[float] = _wire("opacity", default=None)
    brush_type: Optional[str] = _wire("brushType", default=None)
    pressures: Optional[List[float]] = _wire("pressures", default=None)


@dataclass
class OcrPayload:
    """Cached handwriting transcription; never edited by hand."""

    text: str = _wire("text", default="")


@dataclass
class DataPayload:
    """Free-form payload of sticky notes, widgets, todo lists and voice memos."""

    values: Dict[str, Any] = field(default_factory=dict)


Payload = Union[SourcePayload, TextPayload, ShapePayload, PathPayload, OcrPayload, DataPayload]

PAYLOAD_TYPES = {
    ElementType.IMAGE: SourcePayload,
    ElementType.STICKER: SourcePayload,
    ElementType.BACKGROUND: SourcePayload,
    ElementType.TEXT: TextPayload,
    ElementType.SHAPE: ShapePayload,
    ElementType.PATH: PathPayload,
    ElementType.OCR_METADATA: OcrPayload,
    ElementType.STICKY_NOTE: DataPayload,
    ElementType.WIDGET: DataPayload,
    ElementType.TODO_LIST: DataPayload,
    ElementType.VOICE: DataPayload,
}

_SOURCE_ALIASES = ("url",)


# ==============================================================================
# Page content
# ==============================================================================


@dataclass
class Element:
    """A positioned visual object on a page."""

    id: str = _wire("id")
    type: ElementType = ElementType.IMAGE
    payload: Optional[Payload] = None
    x: float = _wire("x", default=0)
    y: float = _wire("y", default=0)
    rotation: float = _wire("rotation", default=0)
    scale_x: float = _wire("scaleX", default=1)
    scale_y: float = _wire("scaleY", default=1)
    z_index: Optional[int] = _wire("zIndex", default=None)
    is_locked: bool = _wire("isLocked", default=False)
    is_visible: bool = _wire("isVisible", default=True)

    # Keys no variant knows about, kept so a save does not lose them
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        expected = PAYLOAD_TYPES[self.type]
        if self.payload is None:
            self.payload = expected()
        elif not isinstance(self.payload, expected):
            raise TypeError(
                f"{self.type.value} element needs {expected.__name__}, "
                f"got {type(self.payload).__name__}"
            )

    @property
    def is_background(self) -> bool:
        return self.type == ElementType.BACKGROUND

    @property
    def is_editable(self) -> bool:
        return not self.is_locked and self.type != ElementType.OCR_METADATA

    def copy_with_new_id(self, **changes) -> "Element":
        """Deep copy under a fresh id, with optional attribute overrides."""
        clone = copy.deepcopy(self)
        clone.id = generate_id()
        for name, value in changes.items():
            setattr(clone, name, value)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Flat (canonical) wire representation."""
        data = copy.deepcopy(self.extra)
        if isinstance(self.payload, DataPayload):
            data.update(copy.deepcopy(self.payload.values))
        else:
            data.update(_dump(self.payload))
        data.update(_dump(self))
        data["type"] = self.type.value
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Element":
        """
        Build an element from its flat wire representation.

        Legacy ``props`` nesting must be hoisted by the schema normalizer first.

        Raises:
            ValueError: if the type tag is unknown
        """
        element_type = ElementType(data["type"])
        kwargs, consumed = _load(Element, data)
        kwargs.setdefault("id", generate_id())
        consumed.add("type")

        payload_cls = PAYLOAD_TYPES[element_type]
        if payload_cls is DataPayload:
            payload = DataPayload(
                values={k: copy.deepcopy(v) for k, v in data.items() if k not in consumed}
            )
            consumed.update(payload.values)
        else:
            payload_kwargs, payload_keys = _load(payload_cls, data)
            consumed.update(payload_keys)
            if payload_cls is SourcePayload and "src" not in payload_kwargs:
                for alias in _SOURCE_ALIASES:
                    if alias in data:
                        payload_kwargs["src"] = data[alias]
                        consumed.add(alias)
                        break
            payload = payload_cls(**payload_kwargs)

        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in consumed}
        return Element(type=element_type, payload=payload, extra=extra, **kwargs)


@dataclass
class InkStroke:
    """A freehand path stored as a flat x0, y0, x1, y1, ... array."""

    id: str = _wire("id")
    points: List[float] = _wire("points", default_factory=list)
    color: str = _wire("color", default="#000000")
    width: float = _wire("width", default=2)
    opacity: float = _wire("opacity", default=1)
    brush_type: Optional[str] = _wire("brushType", default=None)  # pen|pencil|brush|spray
    pressures: Optional[List[float]] = _wire("pressures", default=None)

    def __post_init__(self):
        if len(self.points) % 2:
            raise ValueError(
                f"Stroke {self.id} has an odd number of coordinates ({len(self.points)})"
            )

    @property
    def point_count(self) -> int:
        return len(self.points) // 2

    @property
    def is_renderable(self) -> bool:
        return self.point_count >= 2

    def translate(self, dx: float, dy: float) -> None:
        self.points = [
            value + (dx if i % 2 == 0 else dy) for i, value in enumerate(self.points)
        ]

    def bounds(self) -> Tuple[float, float, float, float]:
        """x0, y0, x1, y1 of the stroke's points."""
        xs = self.points[0::2]
        ys = self.points[1::2]
        return min(xs), min(ys), max(xs), max(ys)

    def to_element(self) -> Element:
        """The same stroke as a ``path`` element."""
        return Element(
            id=self.id,
            type=ElementType.PATH,
            payload=PathPayload(
                points=list(self.points),
                color=self.color,
                width=self.width,
                opacity=self.opacity,
                brush_type=self.brush_type,
                pressures=list(self.pressures) if self.pressures is not None else None,
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _dump(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "InkStroke":
        kwargs, _ = _load(InkStroke, data)
        kwargs.setdefault("id", generate_id())
        return InkStroke(**kwargs)


@dataclass
class Link:
    """
    A rectangular hotspot pointing at a URL or at another page.

    The rectangle is in the page's base (scale 1.0) coordinate space.
    """

    id: str = _wire("id")
    x: float = _wire("x", default=0)
    y: float = _wire("y", default=0)
    width: float = _wire("width", default=0)
    height: float = _wire("height", default=0)
    url: Optional[str] = _wire("url", default=None)
    target_page_index: Optional[int] = _wire("targetPageIndex", default=None)
    note: Optional[str] = _wire("note", default=None)

    def __post_init__(self):
        has_url = bool(self.url)
        has_page = self.target_page_index is not None
        if has_url == has_page:
            raise ValueError(
                f"Link {self.id} needs exactly one target (url or targetPageIndex)"
            )

    @property
    def is_internal(self) -> bool:
        return self.target_page_index is not None

    @property
    def bbox(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x + self.width, self.y + self.height

    def contains_point(self, x: float, y: float) -> bool:
        """Check if a point is within this link's bounds."""
        x0, y0, x1, y1 = self.bbox
        return x0 <= x <= x1 and y0 <= y <= y1

    @property
    def display_text(self) -> str:
        if self.is_internal:
            return f"Go to page {self.target_page_index + 1}"
        return self.url

    def to_dict(self) -> Dict[str, Any]:
        data = _dump(self)
        data["type"] = "hotspot"
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Link":
        kwargs, _ = _load(Link, data)
        kwargs.setdefault("id", generate_id())
        return Link(**kwargs)


# ==============================================================================
# Pages and documents
# ==============================================================================


@dataclass
class Page:
    """A single planner page."""

    id: str
    template_id: str = "blank"
    elements: List[Element] = field(default_factory=list)
    ink_strokes: List[InkStroke] = field(default_factory=list)
    is_locked: bool = False

    # Classification used by filtered navigation
    section: Optional[str] = None
    category: Optional[str] = None
    year: Optional[int] = None
    month: Optional[str] = None

    layout: Layout = Layout.PORTRAIT
    dimensions: Dimensions = DEFAULT_DIMENSIONS
    links: List[Link] = field(default_factory=list)
    thumbnail: Optional[str] = None
    name: Optional[str] = None
    ink_transcription: Optional[str] = None

    def find_element(self, element_id: str) -> Optional[Element]:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def find_link(self, link_id: str) -> Optional[Link]:
        for link in self.links:
            if link.id == link_id:
                return link
        return None

    @property
    def background(self) -> Optional[Element]:
        for element in self.elements:
            if element.is_background:
                return element
        return None

    def set_layout(self, layout: Layout, dimensions: Optional[Dimensions] = None) -> None:
        """Change layout and size, keeping the background element the same size."""
        self.layout = layout
        if dimensions is None:
            return
        self.dimensions = dimensions
        background = self.background
        if background is not None and (
            background.payload.width is not None or background.payload.height is not None
        ):
            background.payload.width = dimensions.width
            background.payload.height = dimensions.height

    def ids(self) -> Set[str]:
        """Every element and stroke id owned by the page."""
        return {e.id for e in self.elements} | {s.id for s in self.ink_strokes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "elements": [e.to_dict() for e in self.elements],
            "ink_paths": [s.to_dict() for s in self.ink_strokes],
            "is_locked": self.is_locked,
            "section": self.section,
            "category": self.category,
            "year": self.year,
            "month": self.month,
            "layout": self.layout.value,
            "dimensions": self.dimensions.to_dict(),
            "links": [link.to_dict() for link in self.links],
            "thumbnail": self.thumbnail,
            "name": self.name,
            "ink_transcription": self.ink_transcription,
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "Page":
        return Page(
            id=data["id"],
            template_id=data.get("template_id") or "blank",
            elements=[Element.from_dict(e) for e in data.get("elements") or []],
            ink_strokes=[InkStroke.from_dict(s) for s in data.get("ink_paths") or []],
            is_locked=bool(data.get("is_locked")),
            section=data.get("section"),
            category=data.get("category"),
            year=data.get("year"),
            month=data.get("month"),
            layout=Layout(data.get("layout") or Layout.PORTRAIT.value),
            dimensions=Dimensions.from_dict(data.get("dimensions")) or DEFAULT_DIMENSIONS,
            links=[Link.from_dict(link) for link in data.get("links") or []],
            thumbnail=data.get("thumbnail"),
            name=data.get("name"),
            ink_transcription=data.get("ink_transcription"),
        )


DEFAULT_RIGHT_TABS = list(MONTH_ABBREVIATIONS)
DEFAULT_LEFT_TABS = [
    "PHOTOS", "WEB", "REMINDER", "CALENDAR", "NETFLIX", "YOUTUBE",
    "NOTES", "READING", "TRAVEL", "TASKS", "CAT", "OTHER",
]
DEFAULT_TOP_TABS = ["PROJECTS", "GOALS", "INDEX", "STUFF"]
DEFAULT_COVER_COLOR = "#6366f1"


@dataclass
class BinderStyle:
    color: str = DEFAULT_COVER_COLOR
    texture: str = "leather"


@dataclass
class Document:
    """
    A planner: an ordered list of pages plus cover and tab metadata.

    Page order is the only ordering key.
    """

    id: str
    name: str
    category: Optional[str] = None
    cover_color: str = DEFAULT_COVER_COLOR
    cover_url: Optional[str] = None
    pages: List[Page] = field(default_factory=list)
    current_page_index: int = 0
    custom_tabs: List[str] = field(default_factory=list)  # right side
    left_tabs: List[str] = field(default_factory=list)
    top_tabs: List[str] = field(default_factory=list)
    binder_style: Optional[BinderStyle] = None
    use_spread_view: bool = False
    is_favorite: bool = False
    is_archived: bool = False
    archived_at: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        self.clamp_current_page_index()

    @classmethod
    def new(cls, name: str, category: Optional[str] = None,
            color: Optional[str] = None, pages: Optional[List[Page]] = None) -> "Document":
        """A fresh document with the default tab sets and binder style."""
        color = color or DEFAULT_COVER_COLOR
        return cls(
            id=generate_id(),
            name=name,
            category=category,
            cover_color=color,
            pages=pages or [],
            custom_tabs=list(DEFAULT_RIGHT_TABS),
            left_tabs=list(DEFAULT_LEFT_TABS),
            top_tabs=list(DEFAULT_TOP_TABS),
            binder_style=BinderStyle(color=color),
            use_spread_view=True,
        )

    def clamp_current_page_index(self) -> int:
        """Pull ``current_page_index`` back onto an existing page."""
        if not self.pages:
            self.current_page_index = 0
        else:
            self.current_page_index = max(0, min(self.current_page_index, len(self.pages) - 1))
        return self.current_page_index

    @property
    def current_page(self) -> Optional[Page]:
        if not self.pages:
            return None
        return self.pages[self.current_page_index]

    def page_index(self, page_id: str) -> int:
        for index, page in enumerate(self.pages):
            if page.id == page_id:
                return index
        return -1

    def ids(self) -> Set[str]:
        """Every element and stroke id in the document."""
        result = set()
        for page in self.pages:
            result |= page.ids()
        return result

    def to_header(self) -> Dict[str, Any]:
        """Document record without its pages."""
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "cover_color": self.cover_color,
            "cover_url": self.cover_url,
            "custom_tabs": list(self.custom_tabs),
            "left_tabs": list(self.left_tabs),
            "top_tabs": list(self.top_tabs),
            "binder_style": (
                {"color": self.binder_style.color, "texture": self.binder_style.texture}
                if self.binder_style else None
            ),
            "use_spread_view": self.use_spread_view,
            "is_favorite": self.is_favorite,
            "is_archived": self.is_archived,
            "archived_at": self.archived_at,
            "created_at": self.created_at,
        }

    @staticmethod
    def from_header(data: Dict[str, Any], pages: Optional[List[Page]] = None) -> "Document":
        binder = data.get("binder_style")
        return Document(
            id=data["id"],
            name=data.get("name") or "",
            category=data.get("category"),
            cover_color=data.get("cover_color") or DEFAULT_COVER_COLOR,
            cover_url=data.get("cover_url"),
            pages=pages or [],
            custom_tabs=list(data.get("custom_tabs") or []),
            left_tabs=list(data.get("left_tabs") or []),
            top_tabs=list(data.get("top_tabs") or []),
            binder_style=BinderStyle(**binder) if binder else None,
            use_spread_view=bool(data.get("use_spread_view")),
            is_favorite=bool(data.get("is_favorite")),
            is_archived=bool(data.get("is_archived")),
            archived_at=data.get("archived_at"),
            created_at=data.get("created_at"),
        )
