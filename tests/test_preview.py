"""Tests for the preview page generator."""

from __future__ import annotations

import pytest
import yaml

from darkroom.gallery import element_reference
from darkroom.preview import (
    assign_slugs, build_portfolio, featured_items, main, ordered_categories, render_page, slugify, write_photo_pages,
)

PORTFOLIO_HTML = """\
---
layout: default
---
<!DOCTYPE html>
<html>
<body>
  <section class="portfolio">
    <div class="portfolio-categories">
      <button class="category-btn" data-category="old">Old</button>
    </div>
    <div class="gallery-grid" id="portfolioGallery">
      {% assign categories = site.data.images | map: "category" | uniq %}
      {% for category in categories %}<div>{{ category }}</div>{% endfor %}
    </div>
  </section>
</body>
</html>
"""

INDEX_HTML = """\
<!DOCTYPE html>
<html>
<body>
  <div class="featured-grid">
    {% for img in featured %}<img src="{{ img.url }}">{% endfor %}
  </div>
  <div class="about">
    {% if portrait_url %}<img src="{{ portrait_url }}">{% endif %}
  </div>
  <script>const FALLBACK_POST_IMAGE = "";</script>
</body>
</html>
"""


@pytest.fixture()
def site(tmp_path, items):
    data = tmp_path / "_data" / "images.yml"
    data.parent.mkdir()
    data.write_text(yaml.safe_dump(items, sort_keys=False), encoding="utf-8")
    (tmp_path / "portfolio.html").write_text(PORTFOLIO_HTML, encoding="utf-8")
    (tmp_path / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    (tmp_path / "style.css").write_text("body {}", encoding="utf-8")
    (tmp_path / "blog.html").write_text("<p>blog</p>", encoding="utf-8")
    return tmp_path


def test_astro_comes_first(items):
    assert ordered_categories(items) == ["astro", "landscapes"]
    assert ordered_categories([{"category": "b"}, {}, {"category": "a"}]) == ["b", "uncategorized", "a"]


def test_featured_falls_back_to_first_items(items):
    assert [i["title"] for i in featured_items(items, 3)] == ["Star Trails"]
    unfeatured = [dict(i, featured=False) for i in items]
    assert len(featured_items(unfeatured, 2)) == 2


def test_slugify():
    assert slugify("images/astro/_00001") == "images-astro-_00001"
    assert slugify("///") == "image"


def test_build_portfolio_defers_inactive_categories(items):
    portfolio = build_portfolio(items)
    astro, landscapes = portfolio.containers

    assert portfolio.category_filter.active == "astro"
    assert not astro.hidden and landscapes.hidden
    assert all(img.get("src") for img in astro.iter("img"))
    assert all(img.get("data-src") and "src" not in img.attrs for img in landscapes.iter("img"))
    assert [element_reference(img) for img in landscapes.iter("img")] == [items[0]["url"]]


def test_build_portfolio_in_norwegian(items):
    nav = build_portfolio(items, lang="nb").nav
    labels = [b.text for b in nav.iter("button")]
    assert "Landskap" in labels
    assert "Astro ▼" in labels


def test_render_page_replaces_liquid_blocks():
    fragments = {
        "featured": "<a>featured</a>",
        "portrait": "<img class=\"about-portrait-large\">",
        "fallback_cover": "https://example.com/a.jpg?x=1&y=2",
        "gallery": "<div>gallery</div>\n",
        "categories": "<div class=\"portfolio-categories\">new</div>",
    }
    page = render_page(INDEX_HTML, fragments)
    assert "{%" not in page
    assert "<a>featured</a>" in page
    assert 'const FALLBACK_POST_IMAGE = "https://example.com/a.jpg?x=1&amp;y=2";' in page

    page = render_page(PORTFOLIO_HTML, fragments)
    assert page.startswith("<!DOCTYPE html>")
    assert page.count('class="portfolio-categories"') == 1
    assert 'data-category="old"' not in page
    assert '<div class="gallery-grid" id="portfolioGallery">\n<div>gallery</div>' in page


def test_main_writes_preview(site, capsys):
    assert main(root=site, environ={}) == 0
    out = site / "preview"

    portfolio = (out / "portfolio.html").read_text(encoding="utf-8")
    assert 'class="category-btn active" data-category="astro"' in portfolio
    assert '<div class="gallery-category" data-category="landscapes" style="display: none">' in portfolio
    assert 'data-title="Andromeda"' in portfolio
    assert "{%" not in portfolio

    index = (out / "index.html").read_text(encoding="utf-8")
    assert "portfolio.html?image=https%3A%2F%2Fres.cloudinary.com%2Fdemo" in index
    assert "Star Trails" in index

    assert (out / "style.css").exists()
    assert (out / "blog.html").read_text(encoding="utf-8") == "<p>blog</p>"
    assert "Template not found" not in capsys.readouterr().err


def test_photo_pages_wrap_within_category(site):
    main(root=site, environ={})
    photos = site / "preview" / "photos"

    a1 = (photos / "images-astro-a1" / "index.html").read_text(encoding="utf-8")
    assert 'href="../images-astro-a2/"' in a1
    assert "<strong>Camera:</strong> <span>X-T30</span>" in a1
    assert "1 / 2" in a1

    l1 = (photos / "images-landscapes-l1" / "index.html").read_text(encoding="utf-8")
    assert l1.count('href="../images-landscapes-l1/"') == 2
    assert "<strong>Settings:</strong> <span>N/A</span>" in l1


def test_missing_data_file(tmp_path, capsys):
    assert main(root=tmp_path, environ={}) == 1
    assert "Run darkroom-sync first" in capsys.readouterr().err


class TestPhotoSlugs:
    def test_same_filename_in_two_categories(self, tmp_path):
        items = [
            {"url": "images/astro/_1.jpg", "title": "Milky Way", "category": "astro"},
            {"url": "images/wildlife/_1.jpg", "title": "Fox", "category": "wildlife"},
        ]
        portfolio = build_portfolio(items)
        assert write_photo_pages(portfolio, tmp_path) == 2

        pages = sorted(p.name for p in (tmp_path / "photos").iterdir())
        assert pages == ["images-astro-_1", "images-wildlife-_1"]
        fox = (tmp_path / "photos" / "images-wildlife-_1" / "index.html").read_text(encoding="utf-8")
        assert "Fox" in fox and "Milky Way" not in fox
        assert 'href="../images-wildlife-_1/"' in fox

    def test_colliding_slugs_get_a_suffix(self):
        items = [
            {"url": "https://example.com/a b.jpg", "category": "astro"},
            {"url": "https://example.com/a-b.jpg", "category": "astro"},
        ]
        slugs = assign_slugs(build_portfolio(items))
        assert sorted(slugs.values()) == ["a-b", "a-b-2"]

    def test_public_id_wins(self, items):
        slugs = assign_slugs(build_portfolio(items))
        assert slugs[items[1]["url"]] == "images-astro-a1"
