"""
Main Window

The Tk console window. Runs every remote operation on the worker pool
and polls for results with ``root.after`` while anything is pending.
"""
import tkinter as tk
from pathlib import Path
from tkinter import ttk, filedialog
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from ldk_console.application import NodeConsole, PollScheduler, POLL_INTERVAL
from ldk_console.domain.value_objects import ActiveTab, ConnectionState
from ldk_console.infrastructure.config import CONFIG_FILE_NAME
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
from .components import (
    COLORS,
    ConfigPasteDialog,
    ConnectionPanel,
    FormPanel,
    KeyValuePanel,
    ResultLine,
    TablePanel,
)

logger = logging.getLogger(__name__)

ONCHAIN_HISTORY_COLUMNS = ("Payment ID", "TXID", "Amount", "Direction", "Status", "Time")


class MainWindow:
    """
    Main application window.

    Rendering reads ``console.state`` only; user input goes through the
    console's trigger methods followed by a poll.
    """

    def __init__(self, console: NodeConsole, poll_interval: float = POLL_INTERVAL):
        self._console = console
        self._root = tk.Tk()
        self._scheduler = PollScheduler(
            tick=console.tick,
            schedule_later=self._schedule_later,
            on_frame=self.render,
            interval=poll_interval,
        )
        self._forms: Dict[str, FormPanel] = {}
        self._dialogs: Dict[str, Tuple[tk.Toplevel, FormPanel]] = {}
        self._paste_dialog: Optional[ConfigPasteDialog] = None
        self._setup_window()
        self._setup_components()

    @property
    def state(self):
        return self._console.state

    @property
    def scheduler(self) -> PollScheduler:
        return self._scheduler

    def _setup_window(self):
        self._root.title("LDK Server Console")
        self._root.geometry("1100x750")
        self._root.minsize(900, 600)
        self._root.protocol("WM_DELETE_WINDOW", self._handle_close)
        self._root.grid_columnconfigure(0, weight=1)
        self._root.grid_rowconfigure(1, weight=1)

        style = ttk.Style()
        style.theme_use('clam')

    def _setup_components(self):
        self._connection_panel = ConnectionPanel(
            self._root,
            on_connect=self._handle_connect,
            on_disconnect=lambda: self._run(self._console.disconnect),
            on_load_config=self._handle_load_config,
            on_paste_config=lambda: self._run(lambda: self._open_dialog("show_load_config_dialog")),
        )
        self._connection_panel.grid(row=0, column=0, sticky='ew', padx=10, pady=5)
        self._connection_panel.load(self.state.server_url, self.state.api_key, self.state.tls_cert_path)

        self._notebook = ttk.Notebook(self._root)
        self._notebook.grid(row=1, column=0, sticky='nsew', padx=10, pady=5)
        self._tabs: List[ActiveTab] = []
        builders = {
            ActiveTab.NODE_INFO: self._build_node_info_tab,
            ActiveTab.BALANCES: self._build_balances_tab,
            ActiveTab.CHANNELS: self._build_channels_tab,
            ActiveTab.PAYMENTS: self._build_payments_tab,
            ActiveTab.LIGHTNING: self._build_lightning_tab,
            ActiveTab.ONCHAIN: self._build_onchain_tab,
        }
        for tab, build in builders.items():
            frame = ttk.Frame(self._notebook, padding=10)
            build(frame)
            self._notebook.add(frame, text=tab.label)
            self._tabs.append(tab)
        self._notebook.bind("<<NotebookTabChanged>>", self._handle_tab_changed)

        self._statusbar = tk.Label(self._root, text="Ready", relief=tk.SUNKEN, anchor=tk.W)
        self._statusbar.grid(row=2, column=0, sticky='ew')

    # ------------------------------------------------------------------
    # Tabs
    # ------------------------------------------------------------------

    def _toolbar(self, parent: tk.Widget, buttons: List[Tuple[str, Callable[[], Any]]]) -> ttk.Frame:
        bar = ttk.Frame(parent)
        bar.pack(fill=tk.X, pady=(0, 8))
        for text, command in buttons:
            ttk.Button(bar, text=text, command=lambda c=command: self._run(c)).pack(side=tk.LEFT, padx=(0, 5))
        return bar

    def _form(self, parent: tk.Widget, title: str, form_name: str,
              actions: List[Tuple[str, Callable[[], Any]]], hidden=()) -> FormPanel:
        frame = ttk.LabelFrame(parent, text=title, padding=8)
        frame.pack(fill=tk.X, pady=5)
        panel = FormPanel(
            frame,
            getattr(self.state.forms, form_name),
            [(text, lambda c=command: self._submit(form_name, c)) for text, command in actions],
            hidden=hidden,
        )
        panel.pack(fill=tk.X)
        self._forms[form_name] = panel
        return panel

    def _build_node_info_tab(self, frame: ttk.Frame):
        self._toolbar(frame, [("Refresh", self._console.fetch_node_info)])
        self._node_info_panel = KeyValuePanel(frame, empty_text="No node info available. Click Refresh to fetch.")
        self._node_info_panel.pack(fill=tk.X, anchor='w')
        ttk.Separator(frame).pack(fill=tk.X, pady=10)
        self._chain_source_panel = KeyValuePanel(frame)
        self._chain_source_panel.pack(fill=tk.X, anchor='w')
        self._form(frame, "Chain Source Settings", "chain_source", [
            ("Save", self._console.save_chain_source),
            ("Save As...", self._handle_save_chain_source_as),
        ])
        ttk.Label(frame, text="Note: Chain source changes require a server restart.",
                  foreground=COLORS['gray']).pack(anchor='w')

    def _build_balances_tab(self, frame: ttk.Frame):
        self._toolbar(frame, [("Refresh", self._console.fetch_balances)])
        self._balances_panel = KeyValuePanel(frame, empty_text="No balance data available. Click Refresh to fetch.")
        self._balances_panel.pack(fill=tk.X, anchor='w')

    def _build_channels_tab(self, frame: ttk.Frame):
        self._toolbar(frame, [
            ("Refresh", self._console.fetch_channels),
            ("Open Channel", lambda: self._open_dialog("show_open_channel_dialog")),
            ("Close Channel", lambda: self._open_dialog("show_close_channel_dialog")),
            ("Splice In", lambda: self._open_dialog("show_splice_in_dialog")),
            ("Splice Out", lambda: self._open_dialog("show_splice_out_dialog")),
            ("Update Config", lambda: self._open_dialog("show_update_config_dialog")),
            ("Connect Peer", lambda: self._open_dialog("show_connect_peer_dialog")),
        ])
        self._channels_table = TablePanel(frame, ChannelRow.COLUMNS, height=15)
        self._channels_table.pack(fill=tk.BOTH, expand=True)
        self._last_channel = ResultLine(frame, "Last opened channel")
        self._last_channel.pack(fill=tk.X, pady=(8, 0))

    def _build_payments_tab(self, frame: ttk.Frame):
        self._toolbar(frame, [
            ("Refresh", self._console.refresh_payments),
            ("Load More", self._console.fetch_payments),
        ])
        self._payments_table = TablePanel(frame, PaymentRow.COLUMNS, height=18)
        self._payments_table.pack(fill=tk.BOTH, expand=True)

    def _build_lightning_tab(self, frame: ttk.Frame):
        self._form(frame, "Send BOLT11", "bolt11_send", [("Send", self._console.send_bolt11)])
        self._form(frame, "Receive BOLT11", "bolt11_receive",
                   [("Generate Invoice", self._console.generate_bolt11_invoice)])
        self._invoice_line = ResultLine(frame, "Invoice")
        self._invoice_line.pack(fill=tk.X, pady=2)
        self._form(frame, "Send BOLT12", "bolt12_send", [("Send", self._console.send_bolt12)])
        self._form(frame, "Receive BOLT12", "bolt12_receive",
                   [("Generate Offer", self._console.generate_bolt12_offer)])
        self._offer_line = ResultLine(frame, "Offer")
        self._offer_line.pack(fill=tk.X, pady=2)
        self._payment_id_line = ResultLine(frame, "Last payment ID")
        self._payment_id_line.pack(fill=tk.X, pady=2)

    def _build_onchain_tab(self, frame: ttk.Frame):
        self._form(frame, "Send", "onchain_send", [("Send", self._console.send_onchain)])
        self._txid_line = ResultLine(frame, "Last TXID")
        self._txid_line.pack(fill=tk.X, pady=2)
        self._toolbar(frame, [("Generate Address", self._console.generate_onchain_address)])
        self._address_line = ResultLine(frame, "Address")
        self._address_line.pack(fill=tk.X, pady=2)
        ttk.Label(frame, text="History", font=('Helvetica', 11, 'bold')).pack(anchor='w', pady=(10, 2))
        self._onchain_table = TablePanel(frame, ONCHAIN_HISTORY_COLUMNS, height=8)
        self._onchain_table.pack(fill=tk.BOTH, expand=True)

    # ------------------------------------------------------------------
    # Dialogs
    # ------------------------------------------------------------------

    def _dialog_specs(self) -> Dict[str, Tuple[str, str, List[Tuple[str, Callable[[], Any]]], Tuple[str, ...]]]:
        console = self._console
        return {
            "show_open_channel_dialog": (
                "Open Channel", "open_channel", [("Open", console.open_channel)], ()),
            "show_close_channel_dialog": (
                "Close Channel", "close_channel",
                [("Close", console.close_channel), ("Force Close", console.force_close_channel)], ()),
            "show_splice_in_dialog": (
                "Splice In", "splice_in", [("Splice In", console.splice_in)], ("address",)),
            "show_splice_out_dialog": (
                "Splice Out", "splice_out", [("Splice Out", console.splice_out)], ()),
            "show_update_config_dialog": (
                "Update Channel Config", "update_channel_config",
                [("Update", console.update_channel_config)], ()),
            "show_connect_peer_dialog": (
                "Connect Peer", "connect_peer", [("Connect", console.connect_peer)], ()),
        }

    def _open_dialog(self, flag: str) -> None:
        setattr(self.state, flag, True)

    def _sync_dialogs(self) -> None:
        for flag, (title, form_name, actions, hidden) in self._dialog_specs().items():
            wanted = getattr(self.state, flag)
            current = self._dialogs.get(flag)
            if wanted and current is None:
                self._dialogs[flag] = self._create_dialog(flag, title, form_name, actions, hidden)
            elif not wanted and current is not None:
                current[0].destroy()
                del self._dialogs[flag]
            elif current is not None:
                current[1].refresh(getattr(self.state.forms, form_name))

    def _create_dialog(self, flag, title, form_name, actions, hidden) -> Tuple[tk.Toplevel, FormPanel]:
        window = tk.Toplevel(self._root)
        window.title(title)
        window.transient(self._root)

        def dismiss():
            setattr(self.state, flag, False)
            self._scheduler.poll()

        window.protocol("WM_DELETE_WINDOW", dismiss)
        panel = FormPanel(
            window,
            getattr(self.state.forms, form_name),
            [(text, lambda c=command: self._submit(form_name, c, dialog_flag=flag)) for text, command in actions]
            + [("Cancel", dismiss)],
            hidden=hidden,
            padding=10,
        )
        panel.pack(fill=tk.BOTH, expand=True)
        return window, panel

    def _sync_paste_dialog(self) -> None:
        wanted = self.state.show_load_config_dialog
        if wanted and self._paste_dialog is None:
            self._paste_dialog = ConfigPasteDialog(
                self._root,
                on_load=self._handle_paste_config,
                on_cancel=self._close_paste_dialog,
            )
        elif not wanted and self._paste_dialog is not None:
            self._paste_dialog.destroy()
            self._paste_dialog = None

    def _close_paste_dialog(self) -> None:
        self.state.show_load_config_dialog = False
        self._scheduler.poll()

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _schedule_later(self, delay: float, callback: Callable[[], None]) -> None:
        self._root.after(int(delay * 1000), callback)

    def _run(self, action: Callable[[], Any]) -> None:
        action()
        self._scheduler.poll()

    def _submit(self, form_name: str, trigger: Callable[[], Any], dialog_flag: Optional[str] = None) -> None:
        form = getattr(self.state.forms, form_name)
        if dialog_flag is not None:
            self._dialogs[dialog_flag][1].store(form)
        else:
            self._forms[form_name].store(form)
        self._run(trigger)

    def _handle_connect(self):
        server_url, api_key, tls_cert_path = self._connection_panel.values()
        self.state.server_url = server_url
        self.state.api_key = api_key
        self.state.tls_cert_path = tls_cert_path
        self._run(self._console.connect)

    def _handle_load_config(self):
        path = filedialog.askopenfilename(
            parent=self._root,
            filetypes=[("TOML files", "*.toml"), ("All files", "*")],
        )
        if not path:
            return
        if self._console.load_config_file(path):
            self._connection_panel.load(self.state.server_url, self.state.api_key, self.state.tls_cert_path)
        self._scheduler.poll()

    def _handle_paste_config(self, text: str):
        if self._console.load_config_text(text):
            self._connection_panel.load(self.state.server_url, self.state.api_key, self.state.tls_cert_path)
        self._scheduler.poll()

    def _handle_save_chain_source_as(self):
        if self.state.config_file_path:
            current = Path(self.state.config_file_path)
            initialdir, initialfile = current.parent, current.name
        else:
            server_dir = Path.cwd() / "ldk-server"
            initialdir = server_dir if server_dir.is_dir() else Path.cwd()
            initialfile = CONFIG_FILE_NAME
        path = filedialog.asksaveasfilename(
            parent=self._root,
            initialdir=str(initialdir),
            initialfile=initialfile,
            defaultextension=".toml",
            filetypes=[("TOML files", "*.toml"), ("All files", "*")],
        )
        if path:
            self._console.save_chain_source(path)

    def _handle_tab_changed(self, event=None):
        index = self._notebook.index(self._notebook.select())
        self.state.active_tab = self._tabs[index]
        if self.state.active_tab in (ActiveTab.PAYMENTS, ActiveTab.ONCHAIN) and self.state.payments is None:
            self._run(self._console.fetch_payments)

    def _handle_close(self):
        self._console.close()
        self._root.destroy()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> None:
        """Redraw every widget from the current state."""
        state = self.state

        text, color = connection_label(state.connection_state, state.connection_error)
        self._connection_panel.set_status(text, color, state.connection_state == ConnectionState.CONNECTED)

        text, color = status_line(state.status_message)
        self._statusbar.config(text=text, fg=COLORS.get(color, COLORS['gray']))

        self._node_info_panel.show_rows(node_info_rows(state.node_info) if state.node_info else [])
        self._chain_source_panel.show_rows(chain_source_rows(state.network, state.chain_source))
        self._balances_panel.show_rows(balance_rows(state.balances) if state.balances else [])

        channels = channel_rows(state.channels) if state.channels else []
        self._channels_table.show_rows([row.as_tuple() for row in channels])

        payments = state.payments.payments if state.payments else []
        rows = payment_rows(payments)
        self._payments_table.show_rows([row.as_tuple() for row in rows], [row.status_color for row in rows])
        self._onchain_table.show_rows(onchain_history_rows(payments))

        self._address_line.show(state.onchain_address)
        self._txid_line.show(state.last_txid)
        self._invoice_line.show(state.generated_invoice)
        self._offer_line.show(state.generated_offer)
        self._payment_id_line.show(state.last_payment_id)
        self._last_channel.show(state.last_channel_id)

        for form_name, panel in self._forms.items():
            panel.refresh(getattr(state.forms, form_name))
        self._sync_dialogs()
        self._sync_paste_dialog()

    def run(self) -> None:
        """Run the Tk main loop."""
        self.render()
        self._scheduler.poll()
        self._root.mainloop()
