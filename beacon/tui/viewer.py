"""BEACON TUI Viewer - Main Textual app with 3-panel layout."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer, Header, Input

from beacon.document import BeaconDocument, Link
from beacon.errors import BeaconError
from beacon.reader import BeaconReader
from beacon.spec import DEFAULT_VIEW_LIMIT, Format
from beacon.tui.widgets import LinkList, LinkPanel, MetadataPanel


def filter_links(links: list[Link], query: str) -> list[Link]:
    """Links whose source, annotation, or target contains ``query`` (case-insensitive)."""
    query = query.lower().strip()
    if not query:
        return list(links)
    return [
        link for link in links
        if query in link.source.lower()
        or query in link.annotation.lower()
        or query in link.target.lower()
    ]


class BeaconViewerApp(App):
    """TUI viewer for BEACON dumps. Only the first links of a dump are loaded."""

    TITLE = "BEACON Viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Filter", show=True),
        Binding("escape", "close_search", "Close filter", show=False),
        Binding("j", "next_link", "Next", show=True),
        Binding("k", "prev_link", "Prev", show=True),
    ]

    def __init__(self, path: str | Path, document: BeaconDocument, dialect: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self._path = Path(path)
        self._doc = document
        self._dialect = dialect
        self._links: list[Link] = list(document.links)

    def compose(self) -> ComposeResult:
        self.title = f"BEACON Viewer - {self._path.name}"

        yield Header()

        with Horizontal(id="main-area"):
            yield MetadataPanel(
                meta=self._doc.meta,
                dialect=self._dialect,
                link_count=len(self._doc.links),
                truncated=self._doc.truncated,
                id="metadata",
            )
            yield LinkList(links=self._links, id="links")
            yield LinkPanel(id="link")

        yield Input(placeholder="Filter links... (Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Show the first link and focus the list."""
        if self._links:
            self.query_one("#link", LinkPanel).show_link(self._links[0], 0)
            self.query_one("#links", LinkList).focus()

    def on_link_list_link_selected(self, event: LinkList.LinkSelected) -> None:
        self.query_one("#link", LinkPanel).show_link(event.link, event.link_index)

    def action_next_link(self) -> None:
        self.query_one("#links", LinkList).action_cursor_down()

    def action_prev_link(self) -> None:
        self.query_one("#links", LinkList).action_cursor_up()

    def action_toggle_search(self) -> None:
        """Show/hide the filter bar."""
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            self.action_close_search()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self._update_link_list(self._doc.links)
        self.query_one("#links", LinkList).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter links as the user types."""
        if event.input.id != "search-bar":
            return
        self._update_link_list(filter_links(self._doc.links, event.value))

    def _update_link_list(self, links: list[Link]) -> None:
        """Replace the entries of the link list with ``links``."""
        self._links = list(links)
        self.query_one("#links", LinkList).set_links(self._links)
        if self._links:
            self.query_one("#link", LinkPanel).show_link(self._links[0], 0)


def run_viewer(
    path: str | Path,
    format: Format | str = Format.RFC,
    shortcode_len: int = 0,
    limit: int | None = None,
) -> None:
    """Load the head of a dump and launch the viewer."""
    path = Path(path)
    if not path.is_file():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)
    try:
        doc = BeaconReader.load(path, format, shortcode_len, limit=limit or DEFAULT_VIEW_LIMIT)
    except BeaconError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    app = BeaconViewerApp(path, doc, Format(format).value)
    app.run()
