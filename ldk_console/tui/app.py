"""
Terminal TUI Application using Textual

Provides a terminal interface to an LDK Server node. Every remote
operation is scheduled on the app's own event loop, so this frontend
never starts a thread.
"""
from dataclasses import fields
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Button,
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Select,
    Static,
    TabbedContent,
    TabPane,
    TextArea,
)
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ldk_console.application import NodeConsole, PollScheduler, POLL_INTERVAL
from ldk_console.domain.value_objects import ActiveTab
from ldk_console.infrastructure.config import CONFIG_FILE_NAME
from ldk_console.infrastructure.tasks import EventLoopDispatcher
from ldk_console.presentation.view_models import (
    ChannelRow,
    PaymentRow,
    balance_rows,
    chain_source_rows,
    channel_rows,
    connection_label,
    node_info_rows,
    onchain_history_rows,
    payment_rows,
    status_line,
)

ONCHAIN_HISTORY_COLUMNS = ("Payment ID", "TXID", "Amount", "Direction", "Status", "Time")

# (dialog flag, title, form name, [(button label, console method)], hidden fields)
CHANNEL_DIALOGS = [
    ("show_open_channel_dialog", "Open Channel", "open_channel", [("Open", "open_channel")], ()),
    ("show_close_channel_dialog", "Close Channel", "close_channel",
     [("Close", "close_channel"), ("Force Close", "force_close_channel")], ()),
    ("show_splice_in_dialog", "Splice In", "splice_in", [("Splice In", "splice_in")], ("address",)),
    ("show_splice_out_dialog", "Splice Out", "splice_out", [("Splice Out", "splice_out")], ()),
    ("show_update_config_dialog", "Update Channel Config", "update_channel_config",
     [("Update", "update_channel_config")], ()),
    ("show_connect_peer_dialog", "Connect Peer", "connect_peer", [("Connect", "connect_peer")], ()),
]

PASTE_CONFIG_FLAG = "show_load_config_dialog"


class KeyValueWidget(Static):
    """Label/value grid rendered as a Rich panel."""

    def __init__(self, title: str, empty_text: str = "", **kwargs):
        super().__init__(**kwargs)
        self._title = title
        self._empty_text = empty_text
        self._rows: List[Tuple[str, str]] = []

    @property
    def rows(self) -> List[Tuple[str, str]]:
        return self._rows

    def show_rows(self, rows: List[Tuple[str, str]]) -> None:
        if rows == self._rows:
            return
        self._rows = rows
        self.refresh()

    def render(self) -> Panel:
        content = Table.grid(padding=(0, 2))
        content.add_column(style="bold")
        content.add_column()
        for label, value in self._rows:
            content.add_row(f"{label}:", value)
        if not self._rows:
            content.add_row(Text(self._empty_text, style="dim"))
        return Panel(content, title=self._title, border_style="blue")


class StatusBar(Static):
    """Single last-status line."""

    def show(self, text: str, color: str) -> None:
        self.update(Text(text, style=color))


class FormWidget(Vertical):
    """
    Inputs generated from a form dataclass.

    Bool fields become checkboxes and enum fields become selects over the
    member labels; everything else is a text input. The inputs are
    reloaded only when the bound form object is replaced, which happens
    when the controller resets a form after success.
    """

    def __init__(self, form_name: str, form: Any, actions: List[Tuple[str, str]],
                 hidden=(), **kwargs):
        super().__init__(**kwargs)
        self.form_name = form_name
        self._form = form
        self._actions = actions
        self._hidden = hidden
        self._bound: Any = None

    def _field_names(self) -> List[str]:
        return [f.name for f in fields(self._form) if f.name not in self._hidden]

    def compose(self) -> ComposeResult:
        for form_field in fields(self._form):
            if form_field.name in self._hidden:
                continue
            label = form_field.name.replace("_", " ").capitalize()
            widget_id = f"{self.form_name}__{form_field.name}"
            if form_field.type in (bool, 'bool'):
                yield Checkbox(label, id=widget_id)
            elif isinstance(form_field.type, type) and issubclass(form_field.type, Enum):
                options = [(getattr(member, "label", member.value), member) for member in form_field.type]
                yield Select(options, allow_blank=False, value=getattr(self._form, form_field.name), id=widget_id)
            else:
                yield Input(placeholder=label, password="password" in form_field.name, id=widget_id)
        with Horizontal(classes="form-actions"):
            for text, method in self._actions:
                yield Button(text, id=f"submit__{self.form_name}__{method}")

    def refresh_from(self, form: Any) -> None:
        if form is self._bound:
            return
        self._bound = form
        self._form = form
        for name in self._field_names():
            widget = self.query_one(f"#{self.form_name}__{name}")
            widget.value = getattr(form, name)

    def store(self, form: Any) -> None:
        """Copy the widget values into the form."""
        for name in self._field_names():
            widget = self.query_one(f"#{self.form_name}__{name}")
            setattr(form, name, widget.value)


class ConsoleTUI(App):
    """
    Main Terminal TUI Application.

    Rendering reads ``console.state`` only; user input goes through the
    console's trigger methods followed by a poll.
    """

    TITLE = "LDK Server Console"

    CSS = """
    #connection {
        height: auto;
        padding: 0 1;
    }

    #connection Input {
        width: 1fr;
    }

    #status_bar {
        height: 1;
        padding: 0 1;
    }

    .form-actions {
        height: auto;
    }

    .dialog {
        border: round $accent;
        height: auto;
        padding: 0 1;
    }

    #config_paste {
        height: 10;
    }

    Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("ctrl+r", "refresh", "Refresh"),
        Binding("ctrl+n", "next_page", "More payments"),
    ]

    def __init__(self, console: Optional[NodeConsole] = None, poll_interval: float = POLL_INTERVAL, **kwargs):
        super().__init__(**kwargs)
        self._console = console or NodeConsole(EventLoopDispatcher())
        self._scheduler = PollScheduler(
            tick=self._console.tick,
            schedule_later=self._schedule_later,
            on_frame=self.render_state,
            interval=poll_interval,
        )
        self._forms: Dict[str, FormWidget] = {}
        self._table_rows: Dict[str, List[Tuple[str, ...]]] = {}

    @property
    def console(self) -> NodeConsole:
        return self._console

    @property
    def scheduler(self) -> PollScheduler:
        return self._scheduler

    @property
    def state(self):
        return self._console.state

    def compose(self) -> ComposeResult:
        yield Header()

        with Horizontal(id="connection"):
            yield Input(value=self.state.server_url, placeholder="Server URL", id="server_url")
            yield Input(value=self.state.api_key, placeholder="API key", password=True, id="api_key")
            yield Input(value=self.state.tls_cert_path, placeholder="TLS cert path", id="tls_cert_path")
            yield Button("Connect", id="btn_connect", variant="success")
            yield Button("Disconnect", id="btn_disconnect", variant="error")
        with Horizontal(id="config_row", classes="form-actions"):
            yield Input(placeholder="Path to ldk-server-config.toml", id="config_path")
            yield Button("Load Config", id="btn_load_config")
            yield Button("Paste Config", id=f"open__{PASTE_CONFIG_FLAG}")
            yield Label("", id="connection_label")
        with Vertical(id=f"dialog__{PASTE_CONFIG_FLAG}", classes="dialog"):
            yield Label("Paste your ldk-server-config.toml content below:")
            yield TextArea(id="config_paste")
            with Horizontal(classes="form-actions"):
                yield Button("Load", id="btn_paste_load", variant="primary")
                yield Button("Cancel", id="btn_paste_cancel")

        with TabbedContent(id="tabs"):
            with TabPane(ActiveTab.NODE_INFO.label, id=ActiveTab.NODE_INFO.value):
                with VerticalScroll():
                    yield Button("Refresh", id="refresh__fetch_node_info")
                    yield KeyValueWidget("Node Details", "No node info available.", id="node_info")
                    yield KeyValueWidget("Chain Source", "No chain source configured.", id="chain_source")
                    yield Label("Chain Source Settings")
                    yield self._form_widget("chain_source", [
                        ("Save", "save_chain_source"),
                        ("Save As", "save_chain_source_as"),
                    ])
                    yield Input(value=CONFIG_FILE_NAME, placeholder="Save As path", id="save_as_path")
                    yield Label("Note: Chain source changes require a server restart.")
            with TabPane(ActiveTab.BALANCES.label, id=ActiveTab.BALANCES.value):
                yield Button("Refresh", id="refresh__fetch_balances")
                yield KeyValueWidget("Balances", "No balance data available.", id="balances")
            with TabPane(ActiveTab.CHANNELS.label, id=ActiveTab.CHANNELS.value):
                with VerticalScroll():
                    with Horizontal(classes="form-actions"):
                        yield Button("Refresh", id="refresh__fetch_channels")
                        for flag, title, _, _, _ in CHANNEL_DIALOGS:
                            yield Button(title, id=f"open__{flag}")
                    yield DataTable(id="channels_table")
                    yield Label("", id="last_channel")
                    for flag, title, form_name, actions, hidden in CHANNEL_DIALOGS:
                        with Vertical(id=f"dialog__{flag}", classes="dialog"):
                            yield Label(title)
                            yield self._form_widget(form_name, actions + [("Cancel", f"cancel-{flag}")], hidden)
            with TabPane(ActiveTab.PAYMENTS.label, id=ActiveTab.PAYMENTS.value):
                with Horizontal(classes="form-actions"):
                    yield Button("Refresh", id="refresh__refresh_payments")
                    yield Button("Load More", id="refresh__fetch_payments")
                yield DataTable(id="payments_table")
            with TabPane(ActiveTab.LIGHTNING.label, id=ActiveTab.LIGHTNING.value):
                with VerticalScroll():
                    yield Label("Send BOLT11")
                    yield self._form_widget("bolt11_send", [("Send", "send_bolt11")])
                    yield Label("Receive BOLT11")
                    yield self._form_widget("bolt11_receive", [("Generate Invoice", "generate_bolt11_invoice")])
                    yield Label("", id="generated_invoice")
                    yield Label("Send BOLT12")
                    yield self._form_widget("bolt12_send", [("Send", "send_bolt12")])
                    yield Label("Receive BOLT12")
                    yield self._form_widget("bolt12_receive", [("Generate Offer", "generate_bolt12_offer")])
                    yield Label("", id="generated_offer")
                    yield Label("", id="last_payment_id")
            with TabPane(ActiveTab.ONCHAIN.label, id=ActiveTab.ONCHAIN.value):
                with VerticalScroll():
                    yield self._form_widget("onchain_send", [("Send", "send_onchain")])
                    yield Label("", id="last_txid")
                    yield Button("Generate Address", id="refresh__generate_onchain_address")
                    yield Label("", id="onchain_address")
                    yield DataTable(id="onchain_table")

        yield StatusBar("Ready", id="status_bar")
        yield Footer()

    def _form_widget(self, form_name: str, actions: List[Tuple[str, str]], hidden=()) -> FormWidget:
        widget = FormWidget(form_name, getattr(self.state.forms, form_name), actions, hidden)
        self._forms[form_name] = widget
        return widget

    def on_mount(self) -> None:
        self.query_one("#channels_table", DataTable).add_columns(*ChannelRow.COLUMNS)
        self.query_one("#payments_table", DataTable).add_columns(*PaymentRow.COLUMNS)
        self.query_one("#onchain_table", DataTable).add_columns(*ONCHAIN_HISTORY_COLUMNS)
        self._scheduler.poll()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _schedule_later(self, delay: float, callback: Callable[[], None]) -> None:
        self.set_timer(delay, callback)

    def _run(self, action: Callable[[], Any]) -> None:
        action()
        self._scheduler.poll()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""

        if button_id == "btn_connect":
            self.state.server_url = self.query_one("#server_url", Input).value
            self.state.api_key = self.query_one("#api_key", Input).value
            self.state.tls_cert_path = self.query_one("#tls_cert_path", Input).value
            self._run(self._console.connect)
        elif button_id == "btn_disconnect":
            self._run(self._console.disconnect)
        elif button_id == "btn_load_config":
            self._load_config(self.query_one("#config_path", Input).value.strip())
        elif button_id == "btn_paste_load":
            self._paste_config()
        elif button_id == "btn_paste_cancel":
            setattr(self.state, PASTE_CONFIG_FLAG, False)
            self._scheduler.poll()
        elif button_id.startswith("refresh__"):
            self._run(getattr(self._console, button_id.split("__", 1)[1]))
        elif button_id.startswith("open__"):
            setattr(self.state, button_id.split("__", 1)[1], True)
            self._scheduler.poll()
        elif button_id.startswith("submit__"):
            _, form_name, method = button_id.split("__", 2)
            if method.startswith("cancel-"):
                setattr(self.state, method.split("-", 1)[1], False)
                self._scheduler.poll()
                return
            self._forms[form_name].store(getattr(self.state.forms, form_name))
            if method == "save_chain_source_as":
                path = self.query_one("#save_as_path", Input).value.strip() or CONFIG_FILE_NAME
                self._run(lambda: self._console.save_chain_source(path))
            else:
                self._run(getattr(self._console, method))

    def _load_config(self, path: str) -> None:
        if path:
            loaded = self._console.load_config_file(path)
        else:
            loaded = self._console.load_default_config()
        if loaded:
            self._show_connection_settings()
        self._scheduler.poll()

    def _paste_config(self) -> None:
        text_area = self.query_one("#config_paste", TextArea)
        if self._console.load_config_text(text_area.text):
            text_area.load_text("")
            self._show_connection_settings()
        self._scheduler.poll()

    def _show_connection_settings(self) -> None:
        self.query_one("#server_url", Input).value = self.state.server_url
        self.query_one("#api_key", Input).value = self.state.api_key
        self.query_one("#tls_cert_path", Input).value = self.state.tls_cert_path

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        tab_id = event.pane.id if event.pane is not None else None
        if tab_id is None:
            return
        self.state.active_tab = ActiveTab(tab_id)
        if self.state.active_tab in (ActiveTab.PAYMENTS, ActiveTab.ONCHAIN) and self.state.payments is None:
            self._run(self._console.fetch_payments)

    def action_refresh(self) -> None:
        """Refresh whatever the active tab shows."""
        refreshers = {
            ActiveTab.NODE_INFO: self._console.fetch_node_info,
            ActiveTab.BALANCES: self._console.fetch_balances,
            ActiveTab.CHANNELS: self._console.fetch_channels,
            ActiveTab.PAYMENTS: self._console.refresh_payments,
            ActiveTab.ONCHAIN: self._console.refresh_payments,
        }
        refresh = refreshers.get(self.state.active_tab)
        if refresh is not None:
            self._run(refresh)

    def action_next_page(self) -> None:
        self._run(self._console.fetch_payments)

    async def action_quit(self) -> None:
        self._console.close()
        self.exit()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _show_table(self, table_id: str, rows: List[Tuple[str, ...]]) -> None:
        if self._table_rows.get(table_id) == rows:
            return
        self._table_rows[table_id] = rows
        table = self.query_one(f"#{table_id}", DataTable)
        table.clear()
        table.add_rows(rows)

    def _show_label(self, widget_id: str, caption: str, value: Optional[str]) -> None:
        self.query_one(f"#{widget_id}", Label).update(f"{caption}: {value}" if value else "")

    def render_state(self) -> None:
        """Redraw every widget from the current state."""
        state = self.state

        text, color = status_line(state.status_message)
        self.query_one("#status_bar", StatusBar).show(text, color)
        text, color = connection_label(state.connection_state, state.connection_error)
        self.query_one("#connection_label", Label).update(Text(text, style=color))

        self.query_one("#node_info", KeyValueWidget).show_rows(
            node_info_rows(state.node_info) if state.node_info else []
        )
        self.query_one("#chain_source", KeyValueWidget).show_rows(
            chain_source_rows(state.network, state.chain_source)
        )
        self.query_one("#balances", KeyValueWidget).show_rows(
            balance_rows(state.balances) if state.balances else []
        )

        channels = channel_rows(state.channels) if state.channels else []
        self._show_table("channels_table", [row.as_tuple() for row in channels])
        payments = state.payments.payments if state.payments else []
        self._show_table("payments_table", [row.as_tuple() for row in payment_rows(payments)])
        self._show_table("onchain_table", onchain_history_rows(payments))

        self._show_label("onchain_address", "Address", state.onchain_address)
        self._show_label("last_txid", "Last TXID", state.last_txid)
        self._show_label("generated_invoice", "Invoice", state.generated_invoice)
        self._show_label("generated_offer", "Offer", state.generated_offer)
        self._show_label("last_payment_id", "Last payment ID", state.last_payment_id)
        self._show_label("last_channel", "Last opened channel", state.last_channel_id)

        for form_name, widget in self._forms.items():
            widget.refresh_from(getattr(state.forms, form_name))
        for flag in [PASTE_CONFIG_FLAG] + [spec[0] for spec in CHANNEL_DIALOGS]:
            self.query_one(f"#dialog__{flag}").display = getattr(state, flag)


def run_tui(console: Optional[NodeConsole] = None):
    """Run the TUI application."""
    app = ConsoleTUI(console)
    app.run()


if __name__ == "__main__":
    run_tui()
