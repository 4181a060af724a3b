"""A small element tree for the markup the gallery builds and filters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from jinja2 import Environment
from markupsafe import Markup

VOID_TAGS = {"img", "br", "hr", "input", "meta", "link", "source"}

_jinja_env = Environment(autoescape=True)

ELEMENT_TEMPLATE = _jinja_env.from_string("""\
<{{ el.tag }}{% for name, value in el.html_attrs().items() %} {{ name }}="{{ value }}"{% endfor %}>
{%- if not void %}{{ el.text }}{% for child in el.children %}{{ child.to_html() }}{% endfor %}</{{ el.tag }}>{% endif %}""")


@dataclass(eq=False)
class Element:
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    classes: list[str] = field(default_factory=list)
    style: dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: list["Element"] = field(default_factory=list)
    handlers: list[Callable[[], object]] = field(default_factory=list, repr=False)

    def get(self, name: str, default: str = "") -> str:
        return self.attrs.get(name, default)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str):
        if name not in self.classes:
            self.classes.append(name)

    def remove_class(self, name: str):
        if name in self.classes:
            self.classes.remove(name)

    def clear(self):
        self.children.clear()

    def append(self, child: "Element") -> "Element":
        self.children.append(child)
        return child

    @property
    def hidden(self) -> bool:
        return self.style.get("display") == "none"

    def activate(self):
        """Dispatch a click/activation to every bound handler."""
        for handler in list(self.handlers):
            handler()

    def iter(self, tag: str | None = None):
        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            yield from child.iter(tag)

    def html_attrs(self) -> dict[str, str]:
        """Attributes as written out: class first, style last."""
        attrs = dict(self.attrs)
        if self.classes:
            attrs = {"class": " ".join(self.classes), **attrs}
        if self.style:
            attrs["style"] = "; ".join(f"{k}: {v}" for k, v in self.style.items())
        return attrs

    def to_html(self) -> Markup:
        return Markup(ELEMENT_TEMPLATE.render(el=self, void=self.tag in VOID_TAGS))
