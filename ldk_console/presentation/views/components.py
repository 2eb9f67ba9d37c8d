"""
Console View Components

Reusable Tkinter components for the console window.
Each component renders one part of the application state.
"""
import tkinter as tk
from tkinter import ttk, filedialog
from dataclasses import fields
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple


# Color scheme
COLORS = {
    'gray': '#6B7280',
    'green': '#10B981',
    'blue': '#3B82F6',
    'orange': '#F59E0B',
    'red': '#EF4444',
    'yellow': '#CA8A04',
}


def _choice_label(member: Enum) -> str:
    return getattr(member, "label", member.value)


def _field_label(name: str) -> str:
    label = name.replace("_", " ")
    for token, shown in (("msat", "(msat)"), ("sats", "(sats)"), ("secs", "(secs)")):
        label = label.replace(token, shown)
    return label[:1].upper() + label[1:]


class ConnectionPanel(ttk.LabelFrame):
    """Server URL, API key and TLS cert path, plus connect controls."""

    def __init__(
        self,
        parent: tk.Widget,
        on_connect: Callable[[], None],
        on_disconnect: Callable[[], None],
        on_load_config: Callable[[], None],
        on_paste_config: Callable[[], None],
        **kwargs
    ):
        super().__init__(parent, text="Connection", **kwargs)
        self.server_url = tk.StringVar()
        self.api_key = tk.StringVar()
        self.tls_cert_path = tk.StringVar()

        entries = [
            ("Server URL", self.server_url, None),
            ("API Key", self.api_key, "*"),
            ("TLS Cert", self.tls_cert_path, None),
        ]
        for column, (label, var, show) in enumerate(entries):
            ttk.Label(self, text=label).grid(row=0, column=column * 2, padx=(5, 2), sticky='w')
            entry = ttk.Entry(self, textvariable=var, width=24)
            if show:
                entry.config(show=show)
            entry.grid(row=0, column=column * 2 + 1, padx=(0, 5), sticky='ew')

        ttk.Button(self, text="Browse...", command=self.browse_cert).grid(row=0, column=6, padx=(0, 5))

        button_frame = ttk.Frame(self)
        button_frame.grid(row=0, column=7, padx=5)
        self._connect_button = ttk.Button(button_frame, text="Connect", command=on_connect)
        self._connect_button.pack(side=tk.LEFT, padx=2)
        self._disconnect_button = ttk.Button(button_frame, text="Disconnect", command=on_disconnect)
        self._disconnect_button.pack(side=tk.LEFT, padx=2)
        ttk.Button(button_frame, text="Load Config", command=on_load_config).pack(side=tk.LEFT, padx=2)
        ttk.Button(button_frame, text="Paste Config", command=on_paste_config).pack(side=tk.LEFT, padx=2)

        self._status_label = tk.Label(self, text="Disconnected", fg=COLORS['gray'])
        self._status_label.grid(row=1, column=0, columnspan=8, sticky='w', padx=5)

    def load(self, server_url: str, api_key: str, tls_cert_path: str) -> None:
        self.server_url.set(server_url)
        self.api_key.set(api_key)
        self.tls_cert_path.set(tls_cert_path)

    def values(self) -> Tuple[str, str, str]:
        return self.server_url.get(), self.api_key.get(), self.tls_cert_path.get()

    def browse_cert(self) -> None:
        """Pick the node's TLS certificate with a file dialog."""
        path = filedialog.askopenfilename(
            parent=self,
            title="Select TLS Certificate",
            filetypes=[("PEM files", "*.pem *.crt"), ("All files", "*")],
        )
        if path:
            self.tls_cert_path.set(path)

    def set_status(self, text: str, color: str, connected: bool) -> None:
        self._status_label.config(text=text, fg=COLORS.get(color, color))
        self._connect_button.config(state=tk.DISABLED if connected else tk.NORMAL)
        self._disconnect_button.config(state=tk.NORMAL if connected else tk.DISABLED)


class KeyValuePanel(ttk.Frame):
    """Two-column label grid, rebuilt whenever the rows change."""

    def __init__(self, parent: tk.Widget, empty_text: str = "", **kwargs):
        super().__init__(parent, **kwargs)
        self._empty_text = empty_text
        self._rows: Optional[List[Tuple[str, str]]] = None

    def show_rows(self, rows: List[Tuple[str, str]]) -> None:
        if rows == self._rows:
            return
        self._rows = rows
        for child in self.winfo_children():
            child.destroy()

        if not rows:
            ttk.Label(self, text=self._empty_text).grid(row=0, column=0, sticky='w')
            return

        for index, (label, value) in enumerate(rows):
            ttk.Label(self, text=f"{label}:", font=('Helvetica', 10, 'bold')).grid(
                row=index, column=0, sticky='w', padx=(0, 10), pady=2
            )
            ttk.Label(self, text=value, font=('Courier', 10)).grid(
                row=index, column=1, sticky='w', pady=2
            )


class TablePanel(ttk.Frame):
    """Treeview table with a scrollbar."""

    def __init__(self, parent: tk.Widget, columns: Sequence[str], height: int = 10, **kwargs):
        super().__init__(parent, **kwargs)
        self._tree = ttk.Treeview(self, columns=list(columns), show='headings', height=height)
        for column in columns:
            self._tree.heading(column, text=column)
            self._tree.column(column, width=110, anchor=tk.W)
        for color in ('yellow', 'green', 'red'):
            self._tree.tag_configure(color, foreground=COLORS[color])

        scrollbar = ttk.Scrollbar(self, orient=tk.VERTICAL, command=self._tree.yview)
        self._tree.configure(yscrollcommand=scrollbar.set)
        self._tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        scrollbar.pack(side=tk.RIGHT, fill=tk.Y)
        self._rows: Optional[List[Tuple[str, ...]]] = None

    def show_rows(self, rows: List[Tuple[str, ...]], tags: Optional[List[str]] = None) -> None:
        if rows == self._rows:
            return
        self._rows = rows
        self._tree.delete(*self._tree.get_children())
        for index, row in enumerate(rows):
            row_tags = (tags[index],) if tags else ()
            self._tree.insert('', tk.END, values=row, tags=row_tags)


class FormPanel(ttk.Frame):
    """
    Entry widgets generated from a form dataclass.

    Text fields become entries, bool fields become checkbuttons and enum
    fields become read-only dropdowns of the member labels. The panel
    reloads only when the bound form object is replaced, which is
    how the controller resets a form after a successful submit.
    """

    def __init__(
        self,
        parent: tk.Widget,
        form: Any,
        actions: List[Tuple[str, Callable[[], None]]],
        hidden: Sequence[str] = (),
        **kwargs
    ):
        super().__init__(parent, **kwargs)
        self._vars: Dict[str, tk.Variable] = {}
        self._choices: Dict[str, Dict[str, Enum]] = {}
        self._bound: Any = None

        row = 0
        for form_field in fields(form):
            if form_field.name in hidden:
                continue
            if form_field.type in (bool, 'bool'):
                var: tk.Variable = tk.BooleanVar()
                ttk.Checkbutton(self, text=_field_label(form_field.name), variable=var).grid(
                    row=row, column=1, sticky='w', pady=2
                )
            else:
                var = tk.StringVar()
                ttk.Label(self, text=_field_label(form_field.name)).grid(
                    row=row, column=0, sticky='w', padx=(0, 8), pady=2
                )
                if isinstance(form_field.type, type) and issubclass(form_field.type, Enum):
                    choices = {_choice_label(member): member for member in form_field.type}
                    self._choices[form_field.name] = choices
                    widget = ttk.Combobox(self, textvariable=var, values=list(choices), state='readonly', width=30)
                    widget.grid(row=row, column=1, sticky='w', pady=2)
                else:
                    entry = ttk.Entry(self, textvariable=var, width=60)
                    if "password" in form_field.name:
                        entry.config(show="*")
                    entry.grid(row=row, column=1, sticky='ew', pady=2)
            self._vars[form_field.name] = var
            row += 1

        button_frame = ttk.Frame(self)
        button_frame.grid(row=row, column=1, sticky='w', pady=(6, 0))
        for text, command in actions:
            ttk.Button(button_frame, text=text, command=command).pack(side=tk.LEFT, padx=(0, 5))

        self.refresh(form)

    def refresh(self, form: Any) -> None:
        if form is self._bound:
            return
        self._bound = form
        for name, var in self._vars.items():
            value = getattr(form, name)
            if name in self._choices:
                value = _choice_label(value)
            var.set(value)

    def store(self, form: Any) -> None:
        """Copy the widget values into the form."""
        for name, var in self._vars.items():
            value = var.get()
            if name in self._choices:
                value = self._choices[name][value]
            setattr(form, name, value)


class ResultLine(ttk.Frame):
    """Read-only, selectable line for generated addresses, invoices and ids."""

    def __init__(self, parent: tk.Widget, label: str, **kwargs):
        super().__init__(parent, **kwargs)
        ttk.Label(self, text=label).pack(side=tk.LEFT, padx=(0, 8))
        self._var = tk.StringVar()
        entry = ttk.Entry(self, textvariable=self._var, state='readonly', width=80)
        entry.pack(side=tk.LEFT, fill=tk.X, expand=True)

    def show(self, value: Optional[str]) -> None:
        text = value or ""
        if self._var.get() != text:
            self._var.set(text)


class ConfigPasteDialog(tk.Toplevel):
    """Text box for pasting the contents of an ldk-server-config.toml."""

    def __init__(
        self,
        parent: tk.Widget,
        on_load: Callable[[str], None],
        on_cancel: Callable[[], None],
        **kwargs
    ):
        super().__init__(parent, **kwargs)
        self.title("Load Configuration")
        self.transient(parent)
        self.protocol("WM_DELETE_WINDOW", on_cancel)

        frame = ttk.Frame(self, padding=10)
        frame.pack(fill=tk.BOTH, expand=True)
        ttk.Label(frame, text="Paste your ldk-server-config.toml content below:").pack(anchor='w')
        self._text = tk.Text(frame, width=72, height=16, font=('Courier', 10))
        self._text.pack(fill=tk.BOTH, expand=True, pady=(4, 8))
        self._text.focus_set()

        button_frame = ttk.Frame(frame)
        button_frame.pack(anchor='w')
        ttk.Button(button_frame, text="Load", command=lambda: on_load(self.contents())).pack(side=tk.LEFT, padx=(0, 5))
        ttk.Button(button_frame, text="Cancel", command=on_cancel).pack(side=tk.LEFT)

    def contents(self) -> str:
        return self._text.get("1.0", "end-1c")
