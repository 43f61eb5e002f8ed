"""BEACON TUI Widgets - Panels for the link dump viewer."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.widgets import Label, ListItem, ListView, Static

from beacon.document import Link, MetaField


def link_label(link: Link, width: int = 20) -> str:
    """Short list entry for a link: the source, truncated to ``width``."""
    source = link.source or "(empty)"
    if len(source) > width:
        return source[:width - 3] + "..."
    return source


class MetadataPanel(Static):
    """Sidebar panel showing the dump header and link count."""

    DEFAULT_CSS = """
    MetadataPanel {
        width: 32;
        border: solid $accent;
        padding: 1;
        overflow-y: auto;
    }
    MetadataPanel .meta-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    MetadataPanel .meta-key {
        color: $text-muted;
    }
    MetadataPanel .meta-val {
        color: $text;
    }
    MetadataPanel .link-count {
        color: $success;
        text-style: bold;
    }
    MetadataPanel .link-count-truncated {
        color: $warning;
        text-style: bold;
    }
    """

    def __init__(
        self,
        meta: list[MetaField],
        dialect: str,
        link_count: int,
        truncated: bool,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._meta = meta
        self._dialect = dialect
        self._link_count = link_count
        self._truncated = truncated

    def compose(self) -> ComposeResult:
        yield Label(f"BEACON ({self._dialect})", classes="meta-title")

        if self._truncated:
            yield Label(f"Links: first {self._link_count}", classes="link-count-truncated")
        else:
            yield Label(f"Links: {self._link_count}", classes="link-count")

        yield Label("")  # spacer

        for field in self._meta:
            display = field.value if len(field.value) <= 24 else field.value[:21] + "..."
            yield Label(f"{field.name}:", classes="meta-key")
            yield Label(f"  {display}", classes="meta-val")


class LinkList(ListView):
    """List of link sources. Supports keyboard navigation."""

    DEFAULT_CSS = """
    LinkList {
        width: 24;
        border: solid $accent;
    }
    LinkList > ListItem {
        padding: 0 1;
    }
    LinkList > ListItem.--highlight {
        background: $accent;
    }
    """

    class LinkSelected(Message):
        """Fired when a link is highlighted or selected."""

        def __init__(self, link: Link, link_index: int) -> None:
            self.link = link
            self.link_index = link_index
            super().__init__()

    def __init__(self, links: list[Link], **kwargs) -> None:
        self._links = links
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for link in self._links:
            yield ListItem(Label(link_label(link)))

    def set_links(self, links: list[Link]) -> None:
        """Replace all entries."""
        self._links = links
        self.clear()
        for link in links:
            self.append(ListItem(Label(link_label(link))))

    def _post_current(self) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._links):
            self.post_message(self.LinkSelected(self._links[idx], idx))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        self._post_current()

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        self._post_current()


class LinkPanel(Static):
    """Detail view of one link. Embedded line breaks in targets are kept."""

    DEFAULT_CSS = """
    LinkPanel {
        border: solid $accent;
        padding: 1;
        overflow: auto;
    }
    LinkPanel .link-title {
        text-style: bold;
        color: $accent;
        margin-bottom: 1;
    }
    LinkPanel .link-body {
        color: $text;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._title_widget: Label | None = None
        self._body_widget: Static | None = None

    def compose(self) -> ComposeResult:
        self._title_widget = Label("Select a link", classes="link-title")
        self._body_widget = Static("", classes="link-body")
        yield self._title_widget
        yield self._body_widget

    def show_link(self, link: Link, index: int) -> None:
        if self._title_widget:
            self._title_widget.update(f"--- link {index + 1} ---")
        if self._body_widget:
            self._body_widget.update(self._render_link(link))
        self.scroll_home()

    @staticmethod
    def _render_link(link: Link) -> Text:
        body = Text()
        body.append("source\n", style="bold")
        body.append(f"  {link.source}\n\n")
        if link.annotation:
            body.append("annotation\n", style="bold")
            body.append(f"  {link.annotation}\n\n")
        body.append("target\n", style="bold")
        for line in link.target.split("\n"):
            body.append(f"  {line}\n")
        return body
