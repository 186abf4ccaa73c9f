from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from portfolio_builder.models import ColorScheme, Layout, PortfolioDocument, default_avatar_url
from portfolio_builder.store import PortfolioStore

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def template_for(layout: Layout) -> str:
    if layout is Layout.STANDARD:
        return "standard.html"
    if layout is Layout.MINIMAL:
        return "minimal.html"
    if layout is Layout.CREATIVE:
        return "creative.html"
    raise ValueError(f"no template for layout {layout!r}")


def render_portfolio(doc: PortfolioDocument, public: bool = False) -> str:
    layout = Layout.resolve(doc.theme.layout)
    scheme = ColorScheme.LIGHT if doc.theme.color_scheme == ColorScheme.LIGHT.value else ColorScheme.DARK
    template = _env.get_template(template_for(layout))
    return template.render(
        doc=doc,
        layout=layout.value,
        scheme=scheme.value,
        public=public,
        profile_avatar=default_avatar_url(doc.name),
        avatar_for=lambda t: t.avatar_url or default_avatar_url(t.name),
    )


class LivePreview:
    """Keeps a rendered preview in step with a store; re-renders on every mutation."""

    def __init__(self, store: PortfolioStore) -> None:
        self.version = 0
        self.html = ""
        self._refresh(store.get())
        self._unsubscribe = store.subscribe(self._refresh)

    def _refresh(self, doc: PortfolioDocument) -> None:
        self.html = render_portfolio(doc)
        self.version += 1

    def close(self) -> None:
        self._unsubscribe()
