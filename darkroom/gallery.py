"""Gallery rendering and category filtering."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from jinja2 import Environment

from darkroom.config import PREFERRED_CATEGORY
from darkroom.dom import Element
from darkroom.lightbox import LightboxViewer
from darkroom.metadata import ImageAttributes, MetadataRegistry

_jinja_env = Environment(autoescape=True)
Template = _jinja_env.from_string

BOUND_ATTR = "data-bound"
DEFERRED = (("src", "data-src"), ("srcset", "data-srcset"))

GALLERY_TEMPLATE = Template("""\
{% for container in containers %}      {{ container.to_html() }}
{% endfor %}""")


def nice_name(category: str) -> str:
    """``of_the-photographer`` -> ``Of The Photographer``"""
    words = str(category or "").replace("-", " ").replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def gallery_item(image, index: int) -> Element:
    """Wrapper with <img> and title for one entry (reference string, ImageAttributes or record)."""
    if isinstance(image, str):
        image = ImageAttributes(src=image)
    elif isinstance(image, Mapping):
        # hand-edited YAML may hold dates or numbers here
        record = {k: str(v) for k, v in image.items() if v is not None}
        image = ImageAttributes(
            src=record.get("url", ""),
            title=record.get("title", ""),
            caption=record.get("caption", ""),
            date=record.get("date", ""),
            camera=record.get("camera", ""),
            settings=record.get("settings", ""),
            public_id=record.get("public_id", ""),
        )

    attrs = {"src": image.src, "alt": image.title or image.alt}
    for name, value in (
        ("data-full", image.full),
        ("data-title", image.title),
        ("data-caption", image.caption),
        ("data-date", image.date),
        ("data-camera", image.camera),
        ("data-settings", image.settings),
        ("data-public-id", image.public_id),
    ):
        if value:
            attrs[name] = value
    attrs["loading"] = "lazy"
    attrs["decoding"] = "async"
    img = Element("img", attrs, classes=["gallery-img"])
    title = Element("div", classes=["gallery-img-title"], text=image.title or image.alt)
    # --i staggers the fade-in animation
    return Element("div", classes=["gallery-img-wrapper"], style={"--i": str(index)},
                   children=[img, title])


def element_reference(img: Element) -> str:
    return ImageAttributes.from_element(img.attrs).reference


class GalleryRenderer:
    """Fills containers with images and wires them to the lightbox."""

    def __init__(self, registry: MetadataRegistry, viewer: LightboxViewer):
        self.registry = registry
        self.viewer = viewer

    def render(self, container: Element, images: Sequence) -> list[Element]:
        container.clear()
        for i, image in enumerate(images, start=1):
            container.append(gallery_item(image, i))
        self.bind(container)
        return container.children

    def bind(self, container: Element) -> int:
        """Register and bind every image not bound yet; returns how many were bound."""
        count = 0
        for img in container.iter("img"):
            if img.get(BOUND_ATTR) == "true":
                continue
            self.registry.register(img)
            img.handlers.append(self._opener(img, container))
            img.attrs[BOUND_ATTR] = "true"
            count += 1
        return count

    def _opener(self, img: Element, container: Element):
        def open_lightbox():
            # the list is read at click time so re-renders are picked up
            images = [element_reference(el) for el in container.iter("img")]
            return self.viewer.open(element_reference(img), images)

        return open_lightbox

    def markup(self, containers: Iterable[Element]) -> str:
        return GALLERY_TEMPLATE.render(containers=list(containers))


def category_container(category: str) -> Element:
    return Element("div", {"data-category": category}, classes=["gallery-category"])


def dehydrate(container: Element):
    """Withhold image sources so the browser does not fetch them yet."""
    for img in container.iter("img"):
        for live, inert in DEFERRED:
            if live in img.attrs:
                img.attrs[inert] = img.attrs.pop(live)


def hydrate(container: Element):
    for img in container.iter("img"):
        for live, inert in DEFERRED:
            if inert in img.attrs:
                img.attrs[live] = img.attrs.pop(inert)


class CategoryFilter:
    """Tracks the active category of a portfolio gallery.

    With pre-rendered per-category containers the filter only toggles their
    visibility (and defers image loading for the hidden ones). Without them
    it rebuilds the shared container from ``table``.
    """

    def __init__(
        self,
        renderer: GalleryRenderer,
        containers: Sequence[Element] = (),
        shared: Element | None = None,
        table: Mapping[str, Sequence] | None = None,
        buttons: Sequence[Element] = (),
        dropdown_toggle: Element | None = None,
        preferred: str = PREFERRED_CATEGORY,
    ):
        self.renderer = renderer
        self.containers = list(containers)
        self.shared = shared
        self.table = dict(table or {})
        self.buttons = list(buttons)
        self.dropdown_toggle = dropdown_toggle
        self.preferred = preferred
        self.active: str | None = None

        for container in self.containers:
            renderer.bind(container)

    @property
    def categories(self) -> list[str]:
        if self.containers:
            return [c.get("data-category") for c in self.containers]
        return list(self.table)

    def default_category(self) -> str | None:
        for container in self.containers:
            if container.has_class("active"):
                return container.get("data-category")
        categories = self.categories
        if self.preferred in categories:
            return self.preferred
        return categories[0] if categories else None

    def set_active_category(self, name: str):
        self.active = name
        if self.containers:
            for container in self.containers:
                if container.get("data-category") == name:
                    container.style.pop("display", None)
                    hydrate(container)
                else:
                    container.style["display"] = "none"
                    dehydrate(container)
        elif self.shared is not None:
            self.renderer.render(self.shared, self.table.get(name) or [])

        for button in self.buttons:
            if button.get("data-category") == name:
                button.add_class("active")
            else:
                button.remove_class("active")
        if self.dropdown_toggle is not None:
            self.dropdown_toggle.text = nice_name(name) + " ▼"

    def activate_default(self) -> str | None:
        name = self.default_category()
        if name is not None:
            self.set_active_category(name)
        return name
