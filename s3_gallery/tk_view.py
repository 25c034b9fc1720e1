from __future__ import annotations
"""Tkinter view for the S3 image gallery."""

import logging
import tkinter as tk
import webbrowser
from tkinter import messagebox, ttk

from .models import FileObject
from .presenter import GalleryPresenter
from .profiles import ConnectionProfile
from .settings import AppSettings
from .ui_utils import (
    display_name,
    file_extension_label,
    format_file_size,
    format_last_modified,
    gallery_title,
)

LOGGER = logging.getLogger(__name__)


class GalleryApp:
    """Tkinter view that delegates business logic to :class:`GalleryPresenter`."""

    def __init__(self, root: tk.Tk, presenter: GalleryPresenter | None = None):
        self.root = root
        self.root.title("S3 Image Gallery")
        self.root.geometry("820x640")
        self.root.minsize(600, 400)

        self.presenter = presenter or GalleryPresenter(dispatch=lambda func: self.root.after(0, func))
        self._connection_menu: tk.Menu | None = None
        self._settings_window: tk.Toplevel | None = None
        self._about_window: tk.Toplevel | None = None
        self._row_keys: dict[str, str] = {}
        self.connection_var = tk.StringVar()
        self.title_var = tk.StringVar(value=gallery_title(0, False))
        self.status_var = tk.StringVar(value="Ready")

        self._create_menu()
        self._create_widgets()
        self._refresh_controls()

        auto_connect = self.presenter.maybe_auto_connect_profile()
        if auto_connect:
            self.root.after(0, lambda: self.connect(auto_connect))

    def _create_menu(self) -> None:
        menubar = tk.Menu(self.root)

        file_menu = tk.Menu(menubar, tearoff=0)
        file_menu.add_command(label="Exit", command=self.root.destroy)
        menubar.add_cascade(label="File", menu=file_menu)

        connection_menu = tk.Menu(menubar, tearoff=0)
        self._connection_menu = connection_menu
        menubar.add_cascade(label="Connection", menu=connection_menu)

        options_menu = tk.Menu(menubar, tearoff=0)
        options_menu.add_command(label="Settings", command=self.open_settings_dialog)
        menubar.add_cascade(label="Options", menu=options_menu)

        help_menu = tk.Menu(menubar, tearoff=0)
        help_menu.add_command(label="About", command=self.show_about_dialog)
        menubar.add_cascade(label="Help", menu=help_menu)

        self.root.config(menu=menubar)
        self._refresh_connection_menu()

    def _create_widgets(self) -> None:
        main_frame = ttk.Frame(self.root, padding="10")
        main_frame.grid(row=0, column=0, sticky=(tk.W, tk.E, tk.N, tk.S))

        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)
        main_frame.columnconfigure(0, weight=1)
        main_frame.rowconfigure(1, weight=1)

        header = ttk.Frame(main_frame)
        header.grid(row=0, column=0, sticky=(tk.W, tk.E))
        header.columnconfigure(0, weight=1)
        ttk.Label(header, textvariable=self.title_var, font=("TkDefaultFont", 12, "bold")).grid(
            row=0, column=0, sticky=tk.W
        )
        self.refresh_button = ttk.Button(header, text="Refresh", command=self.refresh)
        self.refresh_button.grid(row=0, column=1, padx=(5, 0))

        tree_frame = ttk.Frame(main_frame)
        tree_frame.grid(row=1, column=0, sticky=(tk.W, tk.E, tk.N, tk.S), pady=(10, 0))
        tree_frame.columnconfigure(0, weight=1)
        tree_frame.rowconfigure(0, weight=1)

        columns = ("type", "size", "modified")
        self.results_tree = ttk.Treeview(tree_frame, columns=columns, selectmode="browse")
        self.results_tree.heading("#0", text="Name")
        self.results_tree.heading("type", text="Type")
        self.results_tree.heading("size", text="Size")
        self.results_tree.heading("modified", text="Last Modified")
        self.results_tree.column("type", width=70, anchor=tk.CENTER)
        self.results_tree.column("size", width=100, anchor=tk.E)
        self.results_tree.column("modified", width=180)
        self.results_tree.grid(row=0, column=0, sticky=(tk.W, tk.E, tk.N, tk.S))

        tree_scroll_y = ttk.Scrollbar(tree_frame, orient="vertical", command=self.results_tree.yview)
        tree_scroll_y.grid(row=0, column=1, sticky=(tk.N, tk.S))
        self.results_tree.configure(yscrollcommand=tree_scroll_y.set)
        self.results_tree.bind("<Double-1>", lambda _: self.preview_selected())
        self.results_tree.bind("<Delete>", lambda _: self.delete_selected())
        self.results_tree.bind("<<TreeviewSelect>>", lambda _: self._refresh_controls())

        actions = ttk.Frame(main_frame)
        actions.grid(row=2, column=0, sticky=(tk.W, tk.E), pady=(5, 0))
        self.preview_button = ttk.Button(actions, text="Preview", command=self.preview_selected)
        self.preview_button.grid(row=0, column=0, padx=(0, 5))
        self.delete_button = ttk.Button(actions, text="Delete", command=self.delete_selected)
        self.delete_button.grid(row=0, column=1, padx=(0, 5))
        self.load_more_button = ttk.Button(actions, text="Load More Images", command=self.load_more)
        self.load_more_button.grid(row=0, column=2)

        self.progress = ttk.Progressbar(main_frame, mode="indeterminate")
        self.progress.grid(row=3, column=0, sticky=(tk.W, tk.E), pady=5)

        self.status_label = ttk.Label(main_frame, textvariable=self.status_var, anchor=tk.W)
        self.status_label.grid(row=4, column=0, sticky=(tk.W, tk.E))

    def create_connection(self) -> None:
        dialog = ConnectionDialog(self.root, title="Create Connection", primary_label="Save and Connect")
        self._apply_connection_dialog_result(dialog.show())

    def edit_connection(self, profile_name: str) -> None:
        try:
            profile = self.presenter.get_profile(profile_name)
        except ValueError as exc:
            messagebox.showerror("Error", str(exc))
            return
        dialog = ConnectionDialog(
            self.root,
            title="Edit Connection",
            profile=profile,
            primary_label="Save and Connect",
        )
        self._apply_connection_dialog_result(dialog.show())

    def _apply_connection_dialog_result(self, result: dict | None) -> None:
        if not result:
            return
        if result["action"] == "save":
            profile: ConnectionProfile = result["profile"]
            try:
                self.presenter.save_profile(profile, original_name=result.get("original_name"))
            except ValueError as exc:
                messagebox.showerror("Error", str(exc))
                return
            self._refresh_connection_menu()
            self.connect(profile.name)
        elif result["action"] == "delete":
            try:
                self.presenter.delete_profile(result["name"])
            except ValueError as exc:
                messagebox.showerror("Error", str(exc))
                return
            if self.connection_var.get() == result["name"]:
                self.presenter.disconnect()
                self.connection_var.set("")
                self._render_items(self.presenter.items)
            self._refresh_connection_menu()

    def _refresh_connection_menu(self) -> None:
        if not self._connection_menu:
            return
        self._connection_menu.delete(0, tk.END)
        self._connection_menu.add_command(label="Create New Connection", command=self.create_connection)
        self._connection_menu.add_separator()
        names = [profile.name for profile in self.presenter.list_profiles()]
        if not names:
            self._connection_menu.add_command(label="No saved connections", state="disabled")
        for name in names:
            self._connection_menu.add_command(
                label=name if name != self.connection_var.get() else f"{name} (current)",
                command=lambda value=name: self.edit_connection(value),
            )

    def connect(self, profile_name: str) -> None:
        try:
            self.presenter.connect(profile_name)
        except ValueError as exc:
            messagebox.showerror("Connection Error", str(exc))
            return
        self.connection_var.set(profile_name)
        self._refresh_connection_menu()
        self._render_items(self.presenter.items)
        self._set_status(f"Connected to bucket '{self.presenter.bucket_name}'.")
        self.refresh()

    def refresh(self) -> None:
        if not self.presenter.is_connected:
            messagebox.showerror("Error", "Please choose a connection from the Connection menu")
            return
        started = self.presenter.refresh(
            on_success=self._handle_listing_success,
            on_error=lambda msg: self._show_error("List Error", f"Failed to fetch images: {msg}"),
            on_done=self._end_operation,
        )
        if started:
            self._set_status("Loading images...")
            self._start_operation()

    def load_more(self) -> None:
        started = self.presenter.load_more(
            on_success=self._handle_listing_success,
            on_error=lambda msg: self._show_error("List Error", f"Failed to fetch images: {msg}"),
            on_done=self._end_operation,
        )
        if started:
            self._set_status("Loading more images...")
            self._start_operation()

    def preview_selected(self) -> None:
        key = self._selected_key()
        if not key:
            return
        self.presenter.resolve_url(
            key,
            on_success=self._open_url,
            on_error=lambda msg: self._show_error("Preview Error", msg),
        )

    def delete_selected(self) -> None:
        key = self._selected_key()
        if not key:
            return
        if self.presenter.settings.confirm_delete and not messagebox.askyesno(
            "Delete Image",
            f"Are you sure you want to delete '{display_name(key)}'?",
        ):
            return
        self.presenter.delete(
            key,
            on_success=lambda: self._set_status(f"Deleted {key}"),
            on_error=lambda msg: self._show_error("Delete Error", f"Failed to delete image: {msg}"),
            on_restored=self._render_items,
        )
        self._render_items(self.presenter.items)
        self._set_status(f"Deleting {key}...")

    def _handle_listing_success(self, items: tuple[FileObject, ...]) -> None:
        self._render_items(items)
        self._set_status(f"Loaded {len(items)} image(s).")

    def _render_items(self, items: tuple[FileObject, ...]) -> None:
        self.results_tree.delete(*self.results_tree.get_children())
        self._row_keys = {}
        for obj in items:
            node_id = self.results_tree.insert(
                "",
                tk.END,
                text=display_name(obj.key),
                values=(
                    file_extension_label(obj.key),
                    format_file_size(obj.size),
                    format_last_modified(obj.last_modified),
                ),
            )
            self._row_keys[node_id] = obj.key
        self.title_var.set(gallery_title(len(items), self.presenter.has_more))
        self._refresh_controls()

    def _selected_key(self) -> str | None:
        selection = self.results_tree.selection()
        if not selection:
            return None
        return self._row_keys.get(selection[0])

    def _open_url(self, url: str) -> None:
        LOGGER.debug("Opening preview %s", url)
        webbrowser.open(url)

    def _start_operation(self) -> None:
        self.progress.start()
        self._refresh_controls()

    def _end_operation(self) -> None:
        if not (self.presenter.is_loading or self.presenter.is_loading_more):
            self.progress.stop()
        self._refresh_controls()

    def _refresh_controls(self) -> None:
        connected = self.presenter.is_connected
        has_selection = bool(self.results_tree.selection())
        self.refresh_button.config(
            state="normal" if connected and not self.presenter.is_loading else "disabled"
        )
        can_load_more = (
            connected
            and self.presenter.has_more
            and not self.presenter.is_loading
            and not self.presenter.is_loading_more
        )
        self.load_more_button.config(state="normal" if can_load_more else "disabled")
        self.load_more_button.config(
            text="Loading more images..." if self.presenter.is_loading_more else "Load More Images"
        )
        item_state = "normal" if connected and has_selection else "disabled"
        self.preview_button.config(state=item_state)
        self.delete_button.config(state=item_state)

    def open_settings_dialog(self) -> None:
        if self._settings_window and self._settings_window.winfo_exists():
            self._settings_window.lift()
            return

        window = tk.Toplevel(self.root)
        window.title("Settings")
        window.resizable(False, False)
        window.transient(self.root)
        window.grab_set()

        frame = ttk.Frame(window, padding=20)
        frame.pack(fill=tk.BOTH, expand=True)

        current = self.presenter.settings
        page_size_var = tk.StringVar(value=str(current.page_size))
        dedupe_var = tk.BooleanVar(value=current.deduplicate_keys)
        confirm_var = tk.BooleanVar(value=current.confirm_delete)
        remember_var = tk.BooleanVar(value=current.remember_last_connection)

        ttk.Label(frame, text="Page size:").grid(row=0, column=0, sticky=tk.W, pady=(0, 10))
        entry = ttk.Entry(frame, textvariable=page_size_var, width=10, justify="right")
        entry.grid(row=0, column=1, sticky=tk.W, pady=(0, 10), padx=(5, 0))
        ttk.Checkbutton(frame, text="Skip duplicate keys when loading more", variable=dedupe_var).grid(
            row=1, column=0, columnspan=2, sticky=tk.W
        )
        ttk.Checkbutton(frame, text="Confirm before deleting", variable=confirm_var).grid(
            row=2, column=0, columnspan=2, sticky=tk.W
        )
        ttk.Checkbutton(frame, text="Reconnect to last connection on start", variable=remember_var).grid(
            row=3, column=0, columnspan=2, sticky=tk.W
        )

        buttons = ttk.Frame(frame)
        buttons.grid(row=4, column=0, columnspan=2, pady=(10, 0), sticky=tk.E)

        def save_settings() -> None:
            try:
                page_size = int(page_size_var.get().strip())
            except ValueError:
                messagebox.showerror("Error", "Page size must be a whole number", parent=window)
                return
            if page_size <= 0:
                messagebox.showerror("Error", "Page size must be greater than zero", parent=window)
                return
            self.presenter.save_settings(
                AppSettings(
                    page_size=page_size,
                    deduplicate_keys=dedupe_var.get(),
                    confirm_delete=confirm_var.get(),
                    remember_last_connection=remember_var.get(),
                    last_connection=current.last_connection,
                )
            )
            self._close_settings_window()

        ttk.Button(buttons, text="Save", command=save_settings).grid(row=0, column=0, padx=(0, 5))
        ttk.Button(buttons, text="Cancel", command=self._close_settings_window).grid(row=0, column=1)

        entry.focus()
        self._settings_window = window
        window.protocol("WM_DELETE_WINDOW", self._close_settings_window)

    def _close_settings_window(self) -> None:
        if self._settings_window and self._settings_window.winfo_exists():
            self._settings_window.destroy()
        self._settings_window = None

    def show_about_dialog(self) -> None:
        if self._about_window and self._about_window.winfo_exists():
            self._about_window.lift()
            return

        window = tk.Toplevel(self.root)
        window.title("About")
        window.resizable(False, False)
        window.transient(self.root)

        frame = ttk.Frame(window, padding=20)
        frame.pack(fill=tk.BOTH, expand=True)

        info = self.presenter.package_info
        heading = f"{info.name} v{info.version}" if info.version else info.name
        ttk.Label(frame, text=heading, font=("TkDefaultFont", 14, "bold")).pack(pady=(0, 5))
        if info.summary:
            ttk.Label(frame, text=info.summary, justify="center", wraplength=360).pack(pady=(0, 10))
        for label, value in (("Homepage", info.homepage), ("Repository", info.repository)):
            if value:
                ttk.Label(frame, text=f"{label}: {value}", justify="center").pack(anchor=tk.CENTER)

        ttk.Button(frame, text="Close", command=self._close_about_window).pack(pady=(10, 0))

        self._about_window = window
        window.protocol("WM_DELETE_WINDOW", self._close_about_window)

    def _close_about_window(self) -> None:
        if self._about_window and self._about_window.winfo_exists():
            self._about_window.destroy()
        self._about_window = None

    def _set_status(self, message: str) -> None:
        self.status_var.set(message)

    def _show_error(self, title: str, message: str) -> None:
        messagebox.showerror(title, message)
        self.status_var.set(message)


class ConnectionDialog:
    """Simple modal dialog for creating or editing connection profiles."""

    def __init__(
        self,
        parent: tk.Tk,
        *,
        title: str,
        profile: ConnectionProfile | None = None,
        primary_label: str = "Save",
    ):
        self.parent = parent
        self.result: dict | None = None
        self.original_name = profile.name if profile else None

        self.top = tk.Toplevel(parent)
        self.top.title(title)
        self.top.transient(parent)
        self.top.resizable(False, False)
        self.top.grab_set()

        content = ttk.Frame(self.top, padding="10")
        content.grid(row=0, column=0, sticky=(tk.W, tk.E, tk.N, tk.S))

        self.name_var = tk.StringVar(value=profile.name if profile else "")
        self.endpoint_var = tk.StringVar(value=profile.endpoint_url if profile else "")
        self.access_key_var = tk.StringVar(value=profile.access_key if profile else "")
        self.secret_key_var = tk.StringVar(value=profile.secret_key if profile else "")
        self.bucket_var = tk.StringVar(value=profile.bucket_name if profile else "")
        self.public_url_var = tk.StringVar(value=profile.public_url if profile else "")

        fields = (
            ("Name:", self.name_var, None),
            ("Endpoint URL:", self.endpoint_var, None),
            ("Access Key ID:", self.access_key_var, None),
            ("Secret Access Key:", self.secret_key_var, "*"),
            ("Bucket:", self.bucket_var, None),
            ("Public URL (optional):", self.public_url_var, None),
        )
        for row, (label, variable, show) in enumerate(fields):
            ttk.Label(content, text=label).grid(row=row, column=0, sticky=tk.W, pady=2)
            entry = ttk.Entry(content, textvariable=variable, width=40)
            if show:
                entry.config(show=show)
            entry.grid(row=row, column=1, sticky=(tk.W, tk.E), pady=2)

        buttons = ttk.Frame(content)
        buttons.grid(row=len(fields), column=0, columnspan=2, pady=(10, 0), sticky=tk.E)

        ttk.Button(buttons, text=primary_label, command=self._on_save).grid(row=0, column=0, padx=5)
        ttk.Button(buttons, text="Cancel", command=self._on_cancel).grid(row=0, column=1, padx=5)
        if profile:
            ttk.Button(buttons, text="Delete", command=self._on_delete).grid(row=0, column=2, padx=5)

        self.top.protocol("WM_DELETE_WINDOW", self._on_cancel)

    def show(self) -> dict | None:
        self.parent.wait_window(self.top)
        return self.result

    def _validate_fields(self) -> bool:
        required = (self.name_var, self.access_key_var, self.secret_key_var, self.bucket_var)
        if not all(variable.get().strip() for variable in required):
            messagebox.showerror("Error", "Name, keys and bucket are required", parent=self.top)
            return False
        return True

    def _on_save(self) -> None:
        if not self._validate_fields():
            return
        profile = ConnectionProfile(
            name=self.name_var.get().strip(),
            endpoint_url=self.endpoint_var.get().strip(),
            access_key=self.access_key_var.get().strip(),
            secret_key=self.secret_key_var.get().strip(),
            bucket_name=self.bucket_var.get().strip(),
            public_url=self.public_url_var.get().strip(),
        )
        self.result = {"action": "save", "profile": profile, "original_name": self.original_name}
        self.top.destroy()

    def _on_delete(self) -> None:
        if not self.original_name:
            return
        confirmed = messagebox.askyesno(
            "Delete Connection",
            f"Delete connection '{self.original_name}'?",
            parent=self.top,
        )
        if not confirmed:
            return
        self.result = {"action": "delete", "name": self.original_name}
        self.top.destroy()

    def _on_cancel(self) -> None:
        self.result = None
        self.top.destroy()
