from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator
from pydantic.alias_generators import to_camel


SECTION_TYPES = (
    "hero",
    "banner",
    "content",
    "team",
    "events",
    "form",
    "info",
    "faq",
    "contact",
    "footer",
)

PreviewDevice = Literal["mobile", "tablet", "desktop"]


class ContentModel(BaseModel):
    """Immutable snapshot; JSON keys are camelCase, attributes snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


def _field_names(model_cls, partial: Dict[str, Any]) -> Dict[str, Any]:
    """Translate camelCase keys of a partial update to field names."""
    lookup = {}
    for name in model_cls.model_fields:
        lookup[name] = name
        lookup[to_camel(name)] = name
    translated = {}
    for key, value in partial.items():
        if key not in lookup:
            raise KeyError(f"{model_cls.__name__} has no field '{key}'")
        translated[lookup[key]] = value
    return translated


# ============================================================================
# Metadata & assets
# ============================================================================

class ContentMetadata(ContentModel):
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[str] = None
    last_modified: str = ""
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None


class Link(ContentModel):
    text: str = ""
    url: str = ""


class Assets(ContentModel):
    images: List[str] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)


# ============================================================================
# Section payloads
# ============================================================================
# Scalar fields left as None are not written into the HTML.

class HeroContent(ContentModel):
    heading: Optional[str] = None
    subheading: Optional[str] = None
    cta_text: Optional[str] = None
    cta_url: Optional[str] = None
    urgency_text: Optional[str] = None
    logo_alt: Optional[str] = None


class BannerContent(ContentModel):
    heading: Optional[str] = None
    subtitle: Optional[str] = None


class ContentSectionContent(ContentModel):
    heading: Optional[str] = None
    paragraphs: List[str] = Field(default_factory=list)


class TeamMember(ContentModel):
    name: Optional[str] = None
    role: Optional[str] = None
    bio: Optional[str] = None
    photo: Optional[str] = None
    photo_alt: Optional[str] = None


class TeamContent(ContentModel):
    heading: Optional[str] = None
    members: List[TeamMember] = Field(default_factory=list)


class Event(ContentModel):
    id: str = ""
    title: Optional[str] = None
    date: Optional[str] = None
    date_raw: Optional[str] = None
    availability: Optional[str] = None
    reserve_link: Optional[str] = None
    featured: Optional[bool] = None


class EventsContent(ContentModel):
    heading: Optional[str] = None
    events: List[Event] = Field(default_factory=list)


class FormContent(ContentModel):
    heading: Optional[str] = None
    description: Optional[str] = None
    button_text: Optional[str] = None
    privacy_note: Optional[str] = None


class InfoItem(ContentModel):
    icon: str = ""
    label: str = ""
    value: Optional[str] = None


class InfoContent(ContentModel):
    heading: Optional[str] = None
    info_items: List[InfoItem] = Field(default_factory=list)
    location_heading: Optional[str] = None
    map_embed_url: Optional[str] = None
    directions_label: Optional[str] = None
    directions_text: Optional[str] = None


class FAQItem(ContentModel):
    question: Optional[str] = None
    answer: Optional[str] = None


class FAQContent(ContentModel):
    heading: Optional[str] = None
    items: List[FAQItem] = Field(default_factory=list)


class Button(ContentModel):
    text: Optional[str] = None
    link: Optional[str] = None


class ContactContent(ContentModel):
    heading: Optional[str] = None
    description: Optional[str] = None
    email: Optional[str] = None
    buttons: List[Button] = Field(default_factory=list)


class FooterContent(ContentModel):
    text: Optional[str] = None
    email: Optional[str] = None


# ============================================================================
# Sections (discriminated on `type`)
# ============================================================================

class SectionBase(ContentModel):
    id: str
    label: str = ""
    selector: str

    def with_content(self, partial: Dict[str, Any]) -> "SectionBase":
        """Return a copy with `partial` merged into the content payload."""
        content = self.content
        if isinstance(content, BaseModel):
            data = content.model_dump()
            data.update(_field_names(type(content), partial))
            merged = type(content).model_validate(data)
        else:
            merged = {**content, **partial}
        return self.model_copy(update={"content": merged})


class HeroSection(SectionBase):
    type: Literal["hero"] = "hero"
    content: HeroContent = Field(default_factory=HeroContent)


class BannerSection(SectionBase):
    type: Literal["banner"] = "banner"
    content: BannerContent = Field(default_factory=BannerContent)


class ContentSection(SectionBase):
    type: Literal["content"] = "content"
    content: ContentSectionContent = Field(default_factory=ContentSectionContent)


class TeamSection(SectionBase):
    type: Literal["team"] = "team"
    content: TeamContent = Field(default_factory=TeamContent)


class EventsSection(SectionBase):
    type: Literal["events"] = "events"
    content: EventsContent = Field(default_factory=EventsContent)


class FormSection(SectionBase):
    type: Literal["form"] = "form"
    content: FormContent = Field(default_factory=FormContent)


class InfoSection(SectionBase):
    type: Literal["info"] = "info"
    content: InfoContent = Field(default_factory=InfoContent)


class FAQSection(SectionBase):
    type: Literal["faq"] = "faq"
    content: FAQContent = Field(default_factory=FAQContent)


class ContactSection(SectionBase):
    type: Literal["contact"] = "contact"
    content: ContactContent = Field(default_factory=ContactContent)


class FooterSection(SectionBase):
    type: Literal["footer"] = "footer"
    content: FooterContent = Field(default_factory=FooterContent)


class UnknownSection(SectionBase):
    """A section whose type is not one we know how to inject."""
    type: str
    content: Dict[str, Any] = Field(default_factory=dict)


def _section_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if kind in SECTION_TYPES else "unknown"


Section = Annotated[
    Union[
        Annotated[HeroSection, Tag("hero")],
        Annotated[BannerSection, Tag("banner")],
        Annotated[ContentSection, Tag("content")],
        Annotated[TeamSection, Tag("team")],
        Annotated[EventsSection, Tag("events")],
        Annotated[FormSection, Tag("form")],
        Annotated[InfoSection, Tag("info")],
        Annotated[FAQSection, Tag("faq")],
        Annotated[ContactSection, Tag("contact")],
        Annotated[FooterSection, Tag("footer")],
        Annotated[UnknownSection, Tag("unknown")],
    ],
    Discriminator(_section_tag),
]


class ContentDocument(ContentModel):
    """Page content independent of markup: metadata plus ordered sections."""
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    sections: List[Section] = Field(default_factory=list)
    assets: Assets = Field(default_factory=Assets)

    @field_validator("sections")
    @classmethod
    def _unique_section_ids(cls, sections):
        seen = set()
        for section in sections:
            if section.id in seen:
                raise ValueError(f"Duplicate section id: {section.id}")
            seen.add(section.id)
        return sections

    def get_section(self, section_id: str) -> Optional[SectionBase]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def with_section(self, section_id: str, partial: Dict[str, Any]) -> "ContentDocument":
        sections = [
            section.with_content(partial) if section.id == section_id else section
            for section in self.sections
        ]
        return self.model_copy(update={"sections": sections})

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)

    @classmethod
    def from_json(cls, raw: str) -> "ContentDocument":
        return cls.model_validate_json(raw)


# ============================================================================
# Mappings, validation, version tokens
# ============================================================================

class SelectorMapping(ContentModel):
    """Content path to CSS selector correspondence."""
    path: str = Field(..., description="Content path, e.g. 'sections[hero].content.heading'")
    selector: str = Field(..., description="CSS selector resolving the field in the HTML")
    mode: Literal["text", "html", "attribute"] = Field("text", description="How the value is read")
    attribute: Optional[str] = Field(None, description="Attribute name for mode 'attribute'")


class ValidationIssue(BaseModel):
    path: str
    selector: str
    message: str


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)


class VersionTokens(ContentModel):
    """Remote blob SHAs of the HTML page and of content.json."""
    html: str
    content: str
