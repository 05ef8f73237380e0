"""Screen content models — the declarative building blocks of a quiz screen.

A screen is an ordered list of *content items*.  Each item is one visual or
interactive unit, identified by its ``type`` tag:

``image`` / ``text`` / ``heading`` — presentational, carry no state.
``input``     — a free-text answer with a ``responseKey`` and ``required`` flag.
``carousel``  — a nested, recursive list of content items.
``selection`` — a radio/checkbox grid of options, optionally carrying inline
                response cards and conditional screens (branches).
``card``      — a quotation / message / info / container panel.
``button``    — the trailing call-to-action, always rendered last.
``loading``   — a timed gate that withholds everything after it.

The ``ContentItem`` union (discriminated by ``type``; cards further by
``variant``) is the only shape the player accepts.  JSON uses camelCase keys
(``responseKey``, ``triggerAtPercent``); attributes are snake_case.  Unknown
presentational keys are kept so content survives a dump/parse round-trip.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Align = Literal["left", "center", "right"]
OptionId = Union[str, int]


class ContentModel(BaseModel):
    """Base for every authored model: camelCase JSON, extra keys preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump in the external JSON shape (camelCase, no nulls)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# ── Presentational items ────────────────────────────────────────────────────


class ImageItem(ContentModel):
    type: Literal["image"] = "image"
    src: str
    alt: str | None = None
    width: str | int | None = None
    shape: Literal["none", "circle", "rounded", "blob"] = "none"
    border: bool = False
    border_color: str | None = None
    border_width: int | None = None
    align: Align | None = None


class TextSegment(ContentModel):
    content: str
    url: str | None = None


class TextItem(ContentModel):
    type: Literal["text"] = "text"
    content: str | list[TextSegment]
    align: Align | None = None
    font_size: int | None = None
    color: str | None = None
    font_weight: int | None = None
    line_height: float | None = None

    @property
    def plain_text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(seg.content for seg in self.content)


class HeadingItem(ContentModel):
    type: Literal["heading"] = "heading"
    content: str
    align: Align | None = None
    font_size: int | None = None
    color: str | None = None
    font_weight: int | None = None


# ── Input ───────────────────────────────────────────────────────────────────


class InputItem(ContentModel):
    """Free-text answer.  ``response_key`` defaults to ``input-<index>``."""

    type: Literal["input"] = "input"
    response_key: str | None = None
    required: bool = False
    input_type: Literal["text", "email", "tel", "number", "password", "url"] = "text"
    label: str | None = None
    placeholder: str | None = None
    value: str = ""

    def key_for(self, index: int) -> str:
        return self.response_key or f"input-{index}"


# ── Selection ───────────────────────────────────────────────────────────────


class OptionBase(ContentModel):
    id: OptionId | None = None
    value: OptionId | None = None


class SquareOption(OptionBase):
    variant: Literal["square"] = "square"
    character: str
    size: int | None = None


class ImageCardOption(OptionBase):
    variant: Literal["imageCard"] = "imageCard"
    image_src: str
    text: str
    width: int | None = None
    image_shape: Literal["none", "circle"] | None = None


class FlatOption(OptionBase):
    variant: Literal["flat"] = "flat"
    text: str
    size: Literal["xs", "sm", "md", "lg", "xl"] | None = None
    width: int | None = None
    height: int | None = None


Option = Annotated[
    Union[SquareOption, ImageCardOption, FlatOption],
    Field(discriminator="variant"),
]


class ResponseCard(ContentModel):
    """Inline feedback shown next to a selection once an option is picked."""

    variant: str = "message"
    title: str | None = None
    message: str = ""


class SelectionItem(ContentModel):
    """Radio/checkbox grid.

    ``layout`` is ``"<rows>x<cols>"``; only the first ``rows*cols`` options are
    displayed.  ``conditional_screens`` holds *raw* screen JSON keyed by the
    string form of an option identity; it is validated only when the branch
    activates so a malformed branch never breaks the parent screen.
    """

    type: Literal["selection"] = "selection"
    mode: Literal["radio", "checkbox"] = "radio"
    layout: str | None = Field(default=None, pattern=r"^\d+x\d+$")
    options: list[Option] = Field(default_factory=list)
    response_cards: dict[str, ResponseCard] = Field(default_factory=dict)
    conditional_screens: dict[str, Any] = Field(default_factory=dict)
    position: Literal["top", "middle", "bottom"] | None = None
    response_key: str | None = None
    default_selected: list[OptionId] = Field(default_factory=list)

    @property
    def grid(self) -> tuple[int, int]:
        """(rows, cols) — a zero dimension counts as 1, no layout means one column."""
        if not self.layout:
            return max(1, len(self.options)), 1
        rows, cols = (int(part) for part in self.layout.split("x"))
        return rows or 1, cols or 1

    @property
    def has_branches(self) -> bool:
        return bool(self.conditional_screens)


# ── Carousel ────────────────────────────────────────────────────────────────


class CarouselItem(ContentModel):
    type: Literal["carousel"] = "carousel"
    direction: Literal["horizontal", "vertical"] = "horizontal"
    items: list[ContentItem] = Field(default_factory=list)
    infinite: bool = False
    speed: int | None = None
    show_indicators: bool = True


# ── Cards ───────────────────────────────────────────────────────────────────


class QuotationCard(ContentModel):
    type: Literal["card"] = "card"
    variant: Literal["quotation"] = "quotation"
    quote: str
    author: str | None = None


class MessageCard(ContentModel):
    type: Literal["card"] = "card"
    variant: Literal["message"] = "message"
    message: str


InfoEntry = Annotated[Union[ImageItem, TextItem], Field(discriminator="type")]


class InfoCard(ContentModel):
    type: Literal["card"] = "card"
    variant: Literal["info"] = "info"
    content: list[InfoEntry] = Field(default_factory=list)


class ContainerCard(ContentModel):
    type: Literal["card"] = "card"
    variant: Literal["container"] = "container"
    content: list[ContentItem] = Field(default_factory=list)


CardItem = Annotated[
    Union[QuotationCard, MessageCard, InfoCard, ContainerCard],
    Field(discriminator="variant"),
]


# ── Button ──────────────────────────────────────────────────────────────────


class ButtonItem(ContentModel):
    """Trailing call-to-action; extracted from the list and rendered last."""

    type: Literal["button"] = "button"
    text: str = "Continue"
    width: int | None = None
    bg_color: str | None = None
    text_color: str | None = None
    response_key: str | None = None


# ── Loading ─────────────────────────────────────────────────────────────────


class PopupOption(ContentModel):
    text: str
    value: OptionId
    variant: Literal["primary", "outline", "ghost"] | None = None


class LoadingPopup(ContentModel):
    """Question that pauses a loading bar at ``trigger_at_percent``."""

    trigger_at_percent: float = Field(ge=0, le=100)
    title: str
    description: str | None = None
    response_key: str | None = None
    layout: Literal["column", "row"] | None = None
    options: list[PopupOption] = Field(default_factory=list)


class LoadingItem(ContentModel):
    """Timed gate.  Nothing after it is visible until it completes."""

    type: Literal["loading"] = "loading"
    message: str = "Loading..."
    duration: int = Field(default=3000, ge=0, description="Milliseconds to reach 100%")
    popup: LoadingPopup | None = None
    response_key: str | None = None


# ── Union Type ──────────────────────────────────────────────────────────────

ContentItem = Annotated[
    Union[
        ImageItem,
        TextItem,
        HeadingItem,
        InputItem,
        CarouselItem,
        SelectionItem,
        CardItem,
        ButtonItem,
        LoadingItem,
    ],
    Field(discriminator="type"),
]


class ScreenContent(ContentModel):
    """One authored screen: an id plus its ordered content list."""

    id: str
    content: list[ContentItem] = Field(default_factory=list)
    gap: int = 16
    padding: int = 24
    category: str | None = None
    hide_category_bar: bool = False


# Rebuild for forward references
CarouselItem.model_rebuild()
ContainerCard.model_rebuild()
ScreenContent.model_rebuild()
