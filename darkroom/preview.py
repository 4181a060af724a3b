"""
Generate static preview pages from _data/images.yml.

Usage:
    darkroom-preview

Reads the site's own page templates (index.html, portfolio.html, ...) from
the current directory, replaces their Liquid blocks with rendered markup and
writes the result to ./preview/. Every image also gets a standalone lightbox
page under preview/photos/<slug>/.
"""

from __future__ import annotations

import os
import posixpath
import re
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote, urlsplit

import yaml
from jinja2 import Environment
from markupsafe import escape

from darkroom.config import DATA_FILE, PORTRAIT_CATEGORY, PREFERRED_CATEGORY, PREVIEW_DIR
from darkroom.dom import Element
from darkroom.gallery import CategoryFilter, GalleryRenderer, category_container, element_reference, nice_name
from darkroom.i18n import STORAGE_KEY, Localizer, category_i18n_attrs
from darkroom.lightbox import LightboxViewer
from darkroom.metadata import MetadataRegistry

_jinja_env = Environment(autoescape=True)
# same escaping as the browser's encodeURIComponent
_jinja_env.filters["uricomponent"] = lambda s: quote(str(s), safe="-_.!~*'()")
Template = _jinja_env.from_string

COPIED_ASSETS = [("style.css", "style.css"), ("script.js", "script.js"),
                 ("images/portrait.jpg", "images/portrait.jpg")]

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

FEATURED_TEMPLATE = Template("""\
{% for i in items %}        <a href="portfolio.html?image={{ i.url|uricomponent }}" class="featured-img-card">
          <img src="{{ i.url }}" alt="{{ i.title }}" class="featured-img">
          <div class="featured-img-title">{{ i.title }}</div>
        </a>{% if not loop.last %}
{% endif %}{% endfor %}""")

PORTRAIT_TEMPLATE = Template("""\
{% if item %}        <img src="{{ item.url }}" alt="{{ item.title or 'Portrait of the photographer' }}" class="{{ css_class }}">{% endif %}""")

SHOWCASE_TEMPLATE = Template("""\
<div class="showcase-masonry-grid">
{% for i in items %}      <a class="showcase-card" href="#">
        <img src="{{ i.url }}" alt="{{ i.title }}">
      </a>
{% endfor %}    </div>
  </section>""")

PHOTO_TEMPLATE = Template("""\
<!DOCTYPE html>
<html lang="{{ lang }}">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{{ view.title }}</title>
<link rel="stylesheet" href="../../style.css">
</head>
<body class="lightbox-page">
<div class="lightbox active">
  <div class="lightbox-content" role="dialog" aria-modal="true">
    <a class="lightbox-close" href="../../portfolio.html" aria-label="Close">&times;</a>
    <div class="lightbox-img-container">
      <a class="lightbox-arrow lightbox-arrow-left" href="../{{ prev_slug }}/" aria-label="Previous image">&#8592;</a>
      <img src="{{ view.src }}" alt="{{ view.alt }}" class="lightbox-img details-open">
      <a class="lightbox-arrow lightbox-arrow-right" href="../{{ next_slug }}/" aria-label="Next image">&#8594;</a>
    </div>
    <div class="lightbox-title">{{ view.title }}</div>
    <div class="lightbox-details-panel open">
{% for label, value in view.details %}      <div class="lightbox-details-panel-row"><strong>{{ label }}:</strong> <span>{{ value }}</span></div>
{% endfor %}    </div>
    <div class="lightbox-counter">{{ view.index + 1 }} / {{ view.total }}</div>
  </div>
</div>
</body>
</html>
""")


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

def load_items(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as f:
        items = yaml.safe_load(f) or []
    return [i for i in items if isinstance(i, dict)]


def ordered_categories(items: list[dict], preferred: str = PREFERRED_CATEGORY) -> list[str]:
    categories = list(dict.fromkeys(str(i.get("category") or "uncategorized") for i in items))
    if preferred in categories:
        categories = [preferred] + [c for c in categories if c != preferred]
    return categories


def featured_items(items: list[dict], limit: int) -> list[dict]:
    featured = [i for i in items if i.get("featured")]
    return (featured or items)[:limit]


def slugify(ref: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "-", ref).strip("-") or "image"


# ---------------------------------------------------------------------------
# Portfolio gallery
# ---------------------------------------------------------------------------

@dataclass
class Portfolio:
    categories: list[str]
    containers: list[Element]
    nav: Element
    category_filter: CategoryFilter
    viewer: LightboxViewer
    renderer: GalleryRenderer

    @property
    def gallery_html(self) -> str:
        return self.renderer.markup(self.containers)

    @property
    def categories_html(self) -> str:
        return "    " + self.nav.to_html()


def category_button(category: str) -> Element:
    return Element("button", {"data-category": category, **category_i18n_attrs(category)},
                   classes=["category-btn"], text=nice_name(category))


def build_portfolio(items: list[dict], lang: str | None = None) -> Portfolio:
    """Render every category into its own container, default one active."""
    categories = ordered_categories(items)
    registry = MetadataRegistry()
    viewer = LightboxViewer(registry, default_images=[i.get("url", "") for i in items])
    renderer = GalleryRenderer(registry, viewer)

    containers = []
    for category in categories:
        container = category_container(category)
        renderer.render(container, [i for i in items if str(i.get("category") or "uncategorized") == category])
        containers.append(container)

    desktop = [category_button(c) for c in categories]
    mobile = [category_button(c) for c in categories]
    first = categories[0] if categories else "All"
    toggle = Element("button", {"id": "categoryDropdownToggle", **category_i18n_attrs(first, toggle=True)},
                     classes=["category-dropdown-toggle"], text=nice_name(first) + " ▼")
    nav = Element("div", classes=["portfolio-categories"], children=[
        Element("div", classes=["portfolio-categories-desktop"], children=desktop),
        Element("div", classes=["portfolio-categories-mobile"], children=[
            toggle,
            Element("div", {"id": "categoryDropdownMenu"}, classes=["category-dropdown-menu"], children=mobile),
        ]),
    ])

    category_filter = CategoryFilter(renderer, containers=containers, buttons=desktop, dropdown_toggle=toggle)
    category_filter.activate_default()

    storage = {STORAGE_KEY: lang} if lang else {}
    Localizer(storage).apply([nav])

    return Portfolio(categories, containers, nav, category_filter, viewer, renderer)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def copy_assets(root: Path, out_dir: Path):
    for src, dest in COPIED_ASSETS:
        s = root / src
        if s.exists():
            d = out_dir / dest
            d.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(s, d)
            print(f"  Copied {src}")


def _sub(pattern: str, replacement: str, content: str) -> str:
    # replacement is literal markup, never a regex template
    return re.sub(pattern, lambda m: replacement, content, count=1)


def render_page(content: str, fragments: dict[str, str]) -> str:
    """Replace the Liquid blocks (or stale static markup) of a page template."""
    doctype = content.find("<!DOCTYPE")
    if doctype != -1:
        content = content[doctype:]

    content = _sub(r"\{%\s*for\s+img\s+in\s+featured[\s\S]*?\{%\s*endfor\s*%\}", fragments["featured"], content)
    content = _sub(r"\{%\s*if\s+portrait_url[^%]*%\}[\s\S]*?\{%\s*endif\s*%\}", fragments["portrait"], content)
    if fragments["fallback_cover"]:
        content = _sub(r'const FALLBACK_POST_IMAGE = "[^"]*";',
                       f'const FALLBACK_POST_IMAGE = "{escape(fragments["fallback_cover"])}";', content)
    content = _sub(r"\{%\s*assign[\s\S]*?site\.data\.images[\s\S]*?%\}\s*\{%\s*for[\s\S]*?endfor\s*%\}",
                   fragments["gallery"], content)
    content = _sub(r'<div class="gallery-grid"[^>]*>[\s\S]*?</div>\s*</section>',
                   f'{fragments["categories"]}\n    <div class="gallery-grid" id="portfolioGallery">\n'
                   f'{fragments["gallery"]}    </div>\n  </section>', content)
    content = _sub(r'<div class="portfolio-categories">[\s\S]*?<div class="gallery-grid"',
                   fragments["categories"] + '\n    <div class="gallery-grid"', content)
    return content


def render_from_template(root: Path, out_dir: Path, name: str, fragments: dict[str, str]) -> bool:
    template = root / name
    if not template.exists():
        print(f"  Template not found: {name}", file=sys.stderr)
        return False
    content = render_page(template.read_text(encoding="utf-8"), fragments)
    (out_dir / name).write_text(content, encoding="utf-8")
    print(f"  Wrote {out_dir / name}")
    return True


def render_extra_templates(root: Path, out_dir: Path, items: list[dict]):
    """about.html portrait, showcase.html grid and blog.html as-is."""
    about = root / "about.html"
    if about.exists():
        content = about.read_text(encoding="utf-8")
        portrait = next((i for i in items if i.get("category") == PORTRAIT_CATEGORY), None)
        if portrait:
            img = PORTRAIT_TEMPLATE.render(item=portrait, css_class="about-portrait").strip()
            content = _sub(r'<img[^>]*class="about-portrait"[^>]*>', img, content)
        (out_dir / "about.html").write_text(content, encoding="utf-8")
        print(f"  Wrote {out_dir / 'about.html'}")

    showcase = root / "showcase.html"
    if showcase.exists():
        content = showcase.read_text(encoding="utf-8")
        grid = SHOWCASE_TEMPLATE.render(items=featured_items(items, 6))
        content = _sub(r'<div class="showcase-masonry-grid">[\s\S]*?</div>\s*</section>', grid, content)
        (out_dir / "showcase.html").write_text(content, encoding="utf-8")
        print(f"  Wrote {out_dir / 'showcase.html'}")

    blog = root / "blog.html"
    if blog.exists():
        shutil.copyfile(blog, out_dir / "blog.html")
        print("  Copied blog.html")


def photo_slug(img: Element) -> str:
    """Public id, else the full URL path without extension."""
    public_id = img.get("data-public-id")
    if public_id:
        return slugify(public_id)
    return slugify(posixpath.splitext(urlsplit(element_reference(img)).path)[0])


def assign_slugs(portfolio: Portfolio) -> dict[str, str]:
    """Reference -> page slug, unique across the whole portfolio."""
    slugs: dict[str, str] = {}
    taken = set()
    for container in portfolio.containers:
        for img in container.iter("img"):
            ref = element_reference(img)
            if ref in slugs:
                continue
            base = slug = photo_slug(img)
            n = 2
            while slug in taken:
                slug = f"{base}-{n}"
                n += 1
            taken.add(slug)
            slugs[ref] = slug
    return slugs


def write_photo_pages(portfolio: Portfolio, out_dir: Path, lang: str = "en") -> int:
    """One lightbox page per image, prev/next wrapping within its category."""
    viewer = portfolio.viewer
    slugs = assign_slugs(portfolio)
    count = 0
    for container in portfolio.containers:
        refs = [element_reference(img) for img in container.iter("img")]
        for ref in refs:
            if not viewer.open(ref, refs):
                continue
            view = viewer.view()
            page = PHOTO_TEMPLATE.render(
                view=view,
                lang=lang,
                prev_slug=slugs[viewer.peek(-1)],
                next_slug=slugs[viewer.peek(1)],
            )
            viewer.close()
            page_dir = out_dir / "photos" / slugs[ref]
            page_dir.mkdir(parents=True, exist_ok=True)
            (page_dir / "index.html").write_text(page, encoding="utf-8")
            count += 1
    print(f"  Wrote {count} photo pages")
    return count


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(root: Path = Path("."), environ=None) -> int:
    environ = os.environ if environ is None else environ
    data_path = root / DATA_FILE
    if not data_path.exists():
        print(f"No {DATA_FILE} found. Run darkroom-sync first.", file=sys.stderr)
        return 1

    out_dir = root / PREVIEW_DIR
    out_dir.mkdir(parents=True, exist_ok=True)

    print("Step 1: Loading data...")
    items = load_items(data_path)
    print(f"  Loaded {len(items)} images")

    print("Step 2: Copying assets...")
    copy_assets(root, out_dir)

    print("Step 3: Building portfolio gallery...")
    lang = environ.get("SITE_LANG") or None
    portfolio = build_portfolio(items, lang=lang)
    print(f"  {len(portfolio.categories)} categories, default: {portfolio.category_filter.active}")

    featured = featured_items(items, 3)
    portrait = next((i for i in items if i.get("category") == PORTRAIT_CATEGORY), items[0] if items else None)
    fragments = {
        "featured": FEATURED_TEMPLATE.render(items=featured),
        "portrait": PORTRAIT_TEMPLATE.render(item=portrait, css_class="about-portrait-large"),
        "fallback_cover": (featured[0].get("url", "") if featured else ""),
        "gallery": portfolio.gallery_html,
        "categories": portfolio.categories_html,
    }

    print("Step 4: Rendering pages...")
    render_from_template(root, out_dir, "index.html", fragments)
    render_from_template(root, out_dir, "portfolio.html", fragments)
    render_extra_templates(root, out_dir, items)

    print("Step 5: Writing lightbox pages...")
    write_photo_pages(portfolio, out_dir, lang=Localizer({STORAGE_KEY: lang} if lang else {}).language)

    print(f"\nDone! Preview written to {out_dir}/")
    print(f"Run: python3 -m http.server -d {out_dir} 8000")
    return 0


if __name__ == "__main__":
    sys.exit(main())
