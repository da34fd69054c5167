from __future__ import annotations

import argparse
import queue
import sys
import threading
import tkinter as tk
from datetime import date, datetime
from pathlib import Path
from tkinter import messagebox, ttk
from tkinter.scrolledtext import ScrolledText

from PIL import ImageTk

from . import __version__
from .ai import AIServiceError, GeminiMomentNormalizer, MomentNormalizer
from .analytics import RANGE_LENGTH_DAYS, build_dashboard, insight_signals
from .capture import CaptureResult, MomentCaptureService
from .config import (
    AI_API_KEY_SETTING_KEY,
    AI_MODEL_SETTING_KEY,
    DASHBOARD_COMPARE_SETTING_KEY,
    DASHBOARD_RANGE_SETTING_KEY,
    DEFAULT_DASHBOARD_RANGE,
    DEFAULT_GRAPH_MODE,
    GRAPH_MODE_SETTING_KEY,
    load_ai_settings,
)
from .database import EDITABLE_FIELDS, LifeReplayDatabase
from .layout import DEFAULT_SETTINGS, LAYOUT_MODES, ROOM_TREE_SETTINGS, build_layout
from .models import Dashboard, LayoutResult, MindEntry, Point
from .paths import database_path, ensure_directories, renders_directory
from .render import render_layout, save_layout_png
from .replay import TIME_FILTERS, available_emotions, day_sections, filter_entries, section_title
from .viewport import Viewport, fit_to_layout

ALL_ROOMS_LABEL = "All rooms"
DRAG_THRESHOLD = 3
WHEEL_ZOOM_STEP = 1.1


class LifeReplayApp(tk.Tk):
    def __init__(self, db: LifeReplayDatabase, capture_service: MomentCaptureService):
        super().__init__()
        self.title("LifeReplay")
        self.geometry("1380x860")
        self.minsize(1080, 680)
        self.configure(bg="#111111")

        self.db = db
        self.capture_service = capture_service
        self.events: queue.Queue[tuple[str, object]] = queue.Queue()

        mode = self.db.get_setting(GRAPH_MODE_SETTING_KEY, DEFAULT_GRAPH_MODE)
        range_key = self.db.get_setting(DASHBOARD_RANGE_SETTING_KEY, DEFAULT_DASHBOARD_RANGE)
        self.mode_var = tk.StringVar(value=mode if mode in LAYOUT_MODES else DEFAULT_GRAPH_MODE)
        self.range_var = tk.StringVar(value=range_key if range_key in RANGE_LENGTH_DAYS else DEFAULT_DASHBOARD_RANGE)
        self.compare_var = tk.BooleanVar(value=self.db.get_setting_bool(DASHBOARD_COMPARE_SETTING_KEY, True))
        self.room_var = tk.StringVar(value=ALL_ROOMS_LABEL)
        self.status_var = tk.StringVar(value="Ready.")

        self.viewport = Viewport.for_graph()
        self.layout_result = LayoutResult(mode=self.mode_var.get())
        self.entries: list[MindEntry] = []
        self.selected: MindEntry | None = None
        self._rooms_by_label: dict[str, str] = {}
        self._canvas_photo: ImageTk.PhotoImage | None = None
        self._press: tuple[int, int] | None = None
        self._dragging = False
        self._busy = False
        self._fitted = False

        self._build_shell()
        self._refresh_rooms()
        self._refresh_all(reset_view=True)
        self._append_log("LifeReplay started.")
        self.after(200, self._drain_events)

    def _build_shell(self) -> None:
        toolbar = tk.Frame(self, bg="#111111")
        toolbar.pack(side="top", fill="x", padx=10, pady=8)

        for mode in LAYOUT_MODES:
            tk.Radiobutton(
                toolbar,
                text=mode.title(),
                value=mode,
                variable=self.mode_var,
                command=self._on_mode_changed,
                indicatoron=False,
                padx=12,
                pady=4,
                bg="#222222",
                fg="#f2f2f2",
                selectcolor="#444444",
                relief="flat",
            ).pack(side="left", padx=(0, 4))

        self.room_combo = ttk.Combobox(toolbar, textvariable=self.room_var, state="readonly", width=24)
        self.room_combo.pack(side="left", padx=12)
        self.room_combo.bind("<<ComboboxSelected>>", lambda _e: self._refresh_all(reset_view=True))

        tk.Button(toolbar, text="Reset view", command=self._reset_view).pack(side="left")
        tk.Button(toolbar, text="New room", command=self._create_room).pack(side="left", padx=6)
        tk.Label(toolbar, textvariable=self.status_var, bg="#111111", fg="#bbbbbb").pack(side="right")

        body = tk.PanedWindow(self, orient="horizontal", sashwidth=6, bg="#111111")
        body.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        self.canvas = tk.Canvas(body, bg="#000000", highlightthickness=0)
        body.add(self.canvas, stretch="always", minsize=520)
        self.canvas.bind("<Configure>", self._on_canvas_resized)
        self.canvas.bind("<ButtonPress-1>", self._on_press)
        self.canvas.bind("<B1-Motion>", self._on_drag)
        self.canvas.bind("<ButtonRelease-1>", self._on_release)
        self.canvas.bind("<MouseWheel>", self._on_wheel)
        self.canvas.bind("<Button-4>", lambda e: self._zoom_by(WHEEL_ZOOM_STEP))
        self.canvas.bind("<Button-5>", lambda e: self._zoom_by(1 / WHEEL_ZOOM_STEP))
        self.bind("<Escape>", self._on_cancel_gesture)

        side = tk.Frame(body, bg="#181818")
        body.add(side, minsize=360)

        tk.Label(side, text="Capture a moment", bg="#181818", fg="#f2f2f2", anchor="w").pack(fill="x", padx=8, pady=(8, 2))
        self.capture_text = ScrolledText(side, height=6, wrap="word")
        self.capture_text.pack(fill="x", padx=8)
        buttons = tk.Frame(side, bg="#181818")
        buttons.pack(fill="x", padx=8, pady=4)
        self.save_button = tk.Button(buttons, text="Analyze & Save", command=lambda: self._capture(as_child=False))
        self.save_button.pack(side="left")
        self.child_button = tk.Button(buttons, text="Save as child", command=lambda: self._capture(as_child=True))
        self.child_button.pack(side="left", padx=6)
        tk.Button(buttons, text="Delete selected", command=self._delete_selected).pack(side="right")

        tk.Label(side, text="Selected", bg="#181818", fg="#f2f2f2", anchor="w").pack(fill="x", padx=8, pady=(8, 2))
        self.detail_text = ScrolledText(side, height=9, wrap="word")
        self.detail_text.pack(fill="x", padx=8)

        dash_bar = tk.Frame(side, bg="#181818")
        dash_bar.pack(fill="x", padx=8, pady=(8, 2))
        tk.Label(dash_bar, text="Dashboard", bg="#181818", fg="#f2f2f2").pack(side="left")
        range_combo = ttk.Combobox(dash_bar, textvariable=self.range_var, values=list(RANGE_LENGTH_DAYS), state="readonly", width=6)
        range_combo.pack(side="left", padx=6)
        range_combo.bind("<<ComboboxSelected>>", lambda _e: self._on_dashboard_options_changed())
        tk.Checkbutton(
            dash_bar,
            text="Compare",
            variable=self.compare_var,
            command=self._on_dashboard_options_changed,
            bg="#181818",
            fg="#f2f2f2",
            selectcolor="#333333",
        ).pack(side="left")
        self.dashboard_text = ScrolledText(side, height=14, wrap="word")
        self.dashboard_text.pack(fill="both", expand=True, padx=8)

        tk.Label(side, text="Log", bg="#181818", fg="#f2f2f2", anchor="w").pack(fill="x", padx=8, pady=(8, 2))
        self.log_text = ScrolledText(side, height=5, wrap="word")
        self.log_text.pack(fill="x", padx=8, pady=(0, 8))

    def _canvas_size(self) -> tuple[int, int]:
        return (max(1, self.canvas.winfo_width()), max(1, self.canvas.winfo_height()))

    def _layout_settings(self):
        return ROOM_TREE_SETTINGS if self._selected_room_id() else DEFAULT_SETTINGS

    def _node_size(self) -> tuple[float, float]:
        settings = self._layout_settings()
        return (settings.node_width, settings.node_height)

    def _selected_room_id(self) -> str | None:
        return self._rooms_by_label.get(self.room_var.get())

    def _refresh_rooms(self) -> None:
        self._rooms_by_label = {}
        for room in self.db.list_rooms():
            label = f"{room.title} ({room.id[:8]})"
            self._rooms_by_label[label] = room.id
        labels = [ALL_ROOMS_LABEL, *self._rooms_by_label]
        self.room_combo.configure(values=labels)
        if self.room_var.get() not in labels:
            self.room_var.set(ALL_ROOMS_LABEL)

    def _refresh_all(self, reset_view: bool = False) -> None:
        room_id = self._selected_room_id()
        self.entries = self.db.list_entries(room_id=room_id)
        if reset_view:
            self.viewport = Viewport.for_detail_tree() if room_id else Viewport.for_graph()
        mode = self.mode_var.get()
        self.layout_result = build_layout(self.entries, mode, self._layout_settings())
        if self.selected is not None and self.selected.id not in self.layout_result.positions:
            self.selected = None
        if reset_view:
            self._reset_view()
        else:
            self._redraw()
        self._refresh_detail()
        self._refresh_dashboard()
        self.status_var.set(f"{len(self.entries)} entries · {mode}")

    def _on_canvas_resized(self, _event: tk.Event) -> None:
        if self._fitted:
            self._redraw()
        else:
            self._reset_view()

    def _reset_view(self) -> None:
        size = self._canvas_size()
        # Before the first map the canvas reports 1x1; fit once it has a real size.
        self._fitted = size[0] > 10 and size[1] > 10
        pan, zoom = fit_to_layout(
            self.layout_result,
            size,
            self._node_size(),
            zoom_range=(self.viewport.min_zoom, self.viewport.max_zoom),
        )
        self.viewport.reset(pan, zoom)
        self._redraw()

    def _redraw(self) -> None:
        size = self._canvas_size()
        if size[0] < 10 or size[1] < 10:
            return
        self.canvas.delete("all")
        if not self.layout_result.nodes:
            self.canvas.create_text(
                size[0] / 2,
                size[1] / 2,
                text="No moments yet. Capture one on the right.",
                fill="#8a8a8a",
                font=("Segoe UI", 12),
            )
            return
        image = render_layout(
            self.layout_result,
            size=size,
            pan=self.viewport.pan,
            zoom=self.viewport.zoom,
            settings=self._layout_settings(),
            selected_key=self.selected.id if self.selected else None,
        )
        self._canvas_photo = ImageTk.PhotoImage(image)
        self.canvas.create_image(0, 0, image=self._canvas_photo, anchor="nw")

    def _on_mode_changed(self) -> None:
        self.db.set_setting(GRAPH_MODE_SETTING_KEY, self.mode_var.get())
        self._refresh_all(reset_view=True)

    def _on_dashboard_options_changed(self) -> None:
        self.db.set_setting(DASHBOARD_RANGE_SETTING_KEY, self.range_var.get())
        self.db.set_setting(DASHBOARD_COMPARE_SETTING_KEY, "1" if self.compare_var.get() else "0")
        self._refresh_dashboard()

    def _on_press(self, event: tk.Event) -> None:
        self._press = (event.x, event.y)
        self._dragging = False

    def _on_drag(self, event: tk.Event) -> None:
        if self._press is None:
            return
        dx = event.x - self._press[0]
        dy = event.y - self._press[1]
        if not self._dragging and abs(dx) < DRAG_THRESHOLD and abs(dy) < DRAG_THRESHOLD:
            return
        self._dragging = True
        self.viewport.update_pan(dx, dy)
        self._redraw()

    def _on_release(self, event: tk.Event) -> None:
        if self._press is None:
            return
        if self._dragging:
            self.viewport.end_pan()
        else:
            node = self.viewport.hit_test(
                Point(event.x, event.y),
                self._canvas_size(),
                self.layout_result,
                self._node_size(),
            )
            self.selected = node.entry if node else None
            self._refresh_detail()
            self._redraw()
        self._press = None
        self._dragging = False

    def _on_cancel_gesture(self, _event: tk.Event) -> None:
        self.viewport.cancel_gestures()
        self._press = None
        self._dragging = False
        self._redraw()

    def _on_wheel(self, event: tk.Event) -> None:
        self._zoom_by(WHEEL_ZOOM_STEP if event.delta > 0 else 1 / WHEEL_ZOOM_STEP)

    def _zoom_by(self, factor: float) -> None:
        self.viewport.update_zoom(factor)
        self.viewport.end_zoom()
        self._redraw()

    def _refresh_detail(self) -> None:
        self._set_text(self.detail_text, describe_entry(self.selected) if self.selected else "Tap a node to see it here.")
        self.child_button.configure(state="normal" if self.selected else "disabled")

    def _refresh_dashboard(self) -> None:
        dashboard = build_dashboard(self.entries, self.range_var.get(), self.compare_var.get())
        lines = format_dashboard(dashboard)
        signals = insight_signals(self.entries)
        if signals:
            lines.append("")
            lines.append("Loop signals")
            lines.extend(f"• {line}" for line in signals)
        self._set_text(self.dashboard_text, "\n".join(lines))

    def _capture(self, as_child: bool) -> None:
        if self._busy:
            return
        text = self.capture_text.get("1.0", "end").strip()
        if not text:
            messagebox.showinfo("LifeReplay", "Write something first.")
            return
        parent_id = self.selected.id if as_child and self.selected else None
        room_id = self._selected_room_id()
        self._busy = True
        self.save_button.configure(state="disabled", text="Saving…")
        self._append_log("Analyzing moment…")

        threading.Thread(
            target=capture_into_queue,
            args=(self.capture_service, self.events, text, parent_id, room_id),
            daemon=True,
        ).start()

    def _delete_selected(self) -> None:
        if self.selected is None:
            return
        if not messagebox.askyesno("LifeReplay", f"Delete “{self.selected.title}”?"):
            return
        orphans = len(self.db.list_children(self.selected.id))
        self.db.delete_entry(self.selected.id)
        self._append_log(f"Deleted {self.selected.title}; {orphans} child entries are now roots.")
        self.selected = None
        self._refresh_all()

    def _create_room(self) -> None:
        dialog = tk.Toplevel(self)
        dialog.title("New room")
        title_var = tk.StringVar()
        tk.Entry(dialog, textvariable=title_var, width=32).pack(padx=10, pady=10)

        def _save() -> None:
            try:
                room = self.capture_service.create_room(title_var.get())
            except ValueError as exc:
                messagebox.showerror("LifeReplay", str(exc), parent=dialog)
                return
            self._append_log(f"Created room {room.title}.")
            dialog.destroy()
            self._refresh_rooms()

        tk.Button(dialog, text="Create", command=_save).pack(pady=(0, 10))

    def _drain_events(self) -> None:
        try:
            while True:
                kind, payload = self.events.get_nowait()
                if kind == "captured" and isinstance(payload, CaptureResult):
                    self._append_log(f"Saved “{payload.entry.title}”.")
                    for warning in payload.warnings:
                        self._append_log(f"Note: {warning}")
                    self._set_text(self.capture_text, "")
                    self.selected = payload.entry
                    self._refresh_all()
                elif kind == "capture_error":
                    self._append_log(f"Capture failed: {payload}")
                    messagebox.showerror("LifeReplay", str(payload))
                if kind in {"captured", "capture_error"}:
                    self._busy = False
                    self.save_button.configure(state="normal", text="Analyze & Save")
        except queue.Empty:
            pass
        self.after(200, self._drain_events)

    def _append_log(self, message: str) -> None:
        stamp = datetime.now().strftime("%H:%M:%S")
        self.log_text.insert("end", f"[{stamp}] {message}\n")
        self.log_text.see("end")

    @staticmethod
    def _set_text(widget: ScrolledText, value: str) -> None:
        widget.configure(state="normal")
        widget.delete("1.0", "end")
        widget.insert("1.0", value)


def capture_into_queue(
    service: MomentCaptureService,
    events: queue.Queue[tuple[str, object]],
    text: str,
    parent_id: str | None = None,
    room_id: str | None = None,
) -> None:
    """Worker body: every outcome is posted so the window can leave its busy state."""
    try:
        if parent_id is not None:
            result = service.add_child(parent_id, text)
        else:
            result = service.capture(text, room_id=room_id)
        events.put(("captured", result))
    except Exception as exc:  # noqa: BLE001
        events.put(("capture_error", exc))


def describe_entry(entry: MindEntry) -> str:
    lines = [
        entry.title,
        local_time_label(entry.timestamp),
        "",
        entry.summary,
        "",
        f"Emotion: {entry.primary_emotion} ({entry.emotion_intensity}/5)",
        f"Area: {entry.growth_area} · Type: {entry.entry_type}",
    ]
    if entry.topics:
        lines.append(f"Topics: {', '.join(entry.topics)}")
    if entry.people:
        lines.append(f"People: {', '.join(entry.people)}")
    if entry.loop_key:
        lines.append(f"Loop: {entry.loop_key}")
    if entry.insight:
        lines.extend(["", f"Insight: {entry.insight}"])
    if entry.suggested_action:
        lines.append(f"Try: {entry.suggested_action}")
    lines.extend(["", f"id: {entry.id}"])
    if entry.parent_id:
        lines.append(f"parent: {entry.parent_id}")
    return "\n".join(lines)


def format_dashboard(dashboard: Dashboard) -> list[str]:
    lines = []
    for row in dashboard.stats:
        suffix = f"  ({row.delta})" if row.delta else ""
        lines.append(f"{row.title}: {row.value}{suffix}")

    lines.append("")
    lines.append("Intensity trend")
    if dashboard.daily:
        lines.extend(f"  {point.day.isoformat()}  {point.avg_intensity:.1f}" for point in dashboard.daily)
    else:
        lines.append("  No data yet")

    for title, counts in (
        ("Top emotions", dashboard.emotions),
        ("Growth areas", dashboard.areas),
        ("Entry types", dashboard.types),
    ):
        lines.append("")
        lines.append(title)
        if counts:
            lines.extend(f"  {item.key or '—'}: {item.count}" for item in counts[:6])
        else:
            lines.append("  No data yet")

    lines.append("")
    lines.append("Loops")
    if dashboard.loops:
        for loop in dashboard.loops:
            lines.append(f"  {loop.loop_key} ×{loop.count} · {loop.top_emotion} · #{loop.top_topic}")
    else:
        lines.append("  No loops yet")
    return lines


def local_time_label(value: datetime) -> str:
    stamp = value.astimezone()
    return f"{stamp:%Y-%m-%d} {stamp.strftime('%I:%M %p').lstrip('0')}"


def _open_database() -> LifeReplayDatabase:
    ensure_directories()
    return LifeReplayDatabase(database_path())


def _build_normalizer(db: LifeReplayDatabase) -> MomentNormalizer:
    settings = load_ai_settings(db)
    return GeminiMomentNormalizer(api_key=settings.api_key, model=settings.model, timeout=settings.timeout)


def _cmd_add(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    service = MomentCaptureService(db, _build_normalizer(db))
    text = " ".join(args.text)
    try:
        if args.parent:
            result = service.add_child(args.parent, text)
        else:
            result = service.capture(text, room_id=args.room)
    except (AIServiceError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    entry = result.entry
    print(f"saved={entry.id} title={entry.title!r} emotion={entry.primary_emotion} "
          f"intensity={entry.emotion_intensity} area={entry.growth_area}")
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def _cmd_list(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    entries = filter_entries(
        db.list_entries(room_id=args.room),
        time_filter=args.time,
        growth_filter=args.area,
        emotion_filter=args.emotion,
    )
    if not entries:
        print("No entries match.")
        return 0
    today = date.today()
    for section in day_sections(entries):
        print(section_title(section.day, today))
        for entry in section.items:
            clock = entry.timestamp.astimezone().strftime("%H:%M")
            print(f"  {clock}  {entry.title}  [{entry.primary_emotion} · {entry.growth_area} · {entry.emotion_intensity}/5]  {entry.id}")
    emotions = available_emotions(entries)
    if emotions:
        print(f"\nemotions: {', '.join(emotions)}")
    return 0


def _cmd_dashboard(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    entries = db.list_entries(room_id=args.room)
    dashboard = build_dashboard(entries, args.range, compare=not args.no_compare)
    print("\n".join(format_dashboard(dashboard)))
    signals = insight_signals(entries)
    if signals:
        print("\nLoop signals")
        for line in signals:
            print(f"  • {line}")
    return 0


def _cmd_render(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    entries = db.list_entries(room_id=args.room)
    settings = ROOM_TREE_SETTINGS if args.room else DEFAULT_SETTINGS
    layout = build_layout(entries, args.mode, settings)
    output = Path(args.output) if args.output else renders_directory() / f"graph-{args.mode}.png"
    save_layout_png(layout, output, size=(args.width, args.height), settings=settings)
    print(f"rendered={output} nodes={len(layout.nodes)} edges={len(layout.edges)} clusters={len(layout.clusters)}")
    return 0


def _cmd_rooms(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    if args.create:
        service = MomentCaptureService(db, _build_normalizer(db))
        try:
            room = service.create_room(args.create)
        except ValueError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
        print(f"created={room.id} title={room.title!r}")
        return 0
    rooms = db.list_rooms()
    if not rooms:
        print("No rooms yet.")
    for room in rooms:
        count = len(db.list_entries(room_id=room.id))
        print(f"{room.id}  {room.title}  ({count} entries)")
    return 0


def _cmd_edit(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    changes = {name: getattr(args, name) for name in EDITABLE_FIELDS if getattr(args, name) is not None}
    try:
        entry = db.update_entry(args.entry_id, **changes)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"updated={entry.id} title={entry.title!r}")
    return 0


def _cmd_delete(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    orphans = len(db.list_children(args.entry_id))
    if not db.delete_entry(args.entry_id):
        print(f"error: No entry with id {args.entry_id}", file=sys.stderr)
        return 1
    print(f"deleted={args.entry_id} new_roots={orphans}")
    return 0


def _cmd_settings(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    if args.api_key is not None:
        db.set_setting(AI_API_KEY_SETTING_KEY, args.api_key.strip())
    if args.model is not None:
        db.set_setting(AI_MODEL_SETTING_KEY, args.model.strip())
    settings = load_ai_settings(db)
    print(f"model={settings.model} api_key={'set' if settings.api_key else 'missing'} timeout={settings.timeout:g}s")
    return 0


def _cmd_gui(db: LifeReplayDatabase, args: argparse.Namespace) -> int:
    app = LifeReplayApp(db, MomentCaptureService(db, _build_normalizer(db)))
    app.mainloop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lifereplay")
    parser.add_argument("--version", action="store_true", help="Print app version and exit")
    sub = parser.add_subparsers(dest="command")

    add = sub.add_parser("add", help="Normalize a moment with the AI service and save it")
    add.add_argument("text", nargs="+")
    target = add.add_mutually_exclusive_group()
    target.add_argument("--parent", help="Save as a child of this entry id (uses the parent's room)")
    target.add_argument("--room", help="Room id")

    lst = sub.add_parser("list", help="List entries grouped by day")
    lst.add_argument("--time", choices=TIME_FILTERS, default="all")
    lst.add_argument("--area", default="all")
    lst.add_argument("--emotion", default="all")
    lst.add_argument("--room")

    dash = sub.add_parser("dashboard", help="Print the analytics dashboard")
    dash.add_argument("--range", choices=list(RANGE_LENGTH_DAYS), default=DEFAULT_DASHBOARD_RANGE)
    dash.add_argument("--no-compare", action="store_true")
    dash.add_argument("--room")

    render = sub.add_parser("render", help="Render the relationship graph to a PNG")
    render.add_argument("output", nargs="?")
    render.add_argument("--mode", choices=LAYOUT_MODES, default=DEFAULT_GRAPH_MODE)
    render.add_argument("--room")
    render.add_argument("--width", type=int, default=1600)
    render.add_argument("--height", type=int, default=1000)

    rooms = sub.add_parser("rooms", help="List rooms or create one")
    rooms.add_argument("--create", metavar="TITLE")

    edit = sub.add_parser("edit", help="Edit fields of an entry")
    edit.add_argument("entry_id")
    for name in EDITABLE_FIELDS:
        edit.add_argument(f"--{name.replace('_', '-')}", dest=name, type=int if name == "emotion_intensity" else str)

    delete = sub.add_parser("delete", help="Delete an entry; its children become roots")
    delete.add_argument("entry_id")

    settings = sub.add_parser("settings", help="Show or change AI settings")
    settings.add_argument("--api-key")
    settings.add_argument("--model")

    sub.add_parser("gui", help="Open the desktop window (default)")
    return parser


_COMMANDS = {
    "add": _cmd_add,
    "list": _cmd_list,
    "dashboard": _cmd_dashboard,
    "render": _cmd_render,
    "rooms": _cmd_rooms,
    "edit": _cmd_edit,
    "delete": _cmd_delete,
    "settings": _cmd_settings,
    "gui": _cmd_gui,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(__version__)
        return 0
    db = _open_database()
    return _COMMANDS[args.command or "gui"](db, args)
