"""
Stereo Aligner GUI
==================

Graphical wizard for aligning a stereo pair.
Built with Tkinter; each image view has its own pan/zoom state.
"""

import logging
import time
import tkinter as tk
from tkinter import ttk, messagebox, filedialog, scrolledtext

import cv2
import numpy as np
from PIL import Image, ImageTk

from stereoalign.io import DEFAULT_QUALITY, load_image
from stereoalign.models import ProcessingOptions, Side, Stage
from stereoalign.pipeline import PipelineController
from stereoalign.viewport import ViewportMapper

MARKER_COLORS = {Side.LEFT: "#ff4040", Side.RIGHT: "#40a0ff"}


class ImagePanel:
    """One image view: a canvas, its viewport mapper and its point markers."""

    def __init__(self, parent, side: Side, title: str, on_click):
        self.side = side
        self.on_click = on_click
        self.image = None
        self.photo = None
        self.mapper = ViewportMapper()

        self.frame = ttk.LabelFrame(parent, text=title, padding=5)
        self.frame.grid_rowconfigure(1, weight=1)
        self.frame.grid_columnconfigure(0, weight=1)

        # Zoom controls
        controls = ttk.Frame(self.frame)
        controls.grid(row=0, column=0, sticky="e")
        ttk.Button(controls, text="+", width=3, command=self.zoom_in).pack(side="left", padx=1)
        ttk.Button(controls, text="−", width=3, command=self.zoom_out).pack(side="left", padx=1)
        ttk.Button(controls, text="Fit", width=4, command=self.fit).pack(side="left", padx=1)

        self.canvas = tk.Canvas(self.frame, bg="#2b2b2b", highlightthickness=0, cursor="crosshair")
        self.canvas.grid(row=1, column=0, sticky="nsew")

        self.info_label = ttk.Label(self.frame, text="No image", foreground="gray")
        self.info_label.grid(row=2, column=0, sticky="w")

        self.canvas.bind("<Configure>", self._on_configure)
        self.canvas.bind("<ButtonPress-1>", lambda e: self.mapper.pointer_down(e.x, e.y))
        self.canvas.bind("<B1-Motion>", self._on_drag)
        self.canvas.bind("<ButtonRelease-1>", self._on_release)
        self.canvas.bind("<Leave>", lambda e: self.mapper.pointer_leave())

    def set_image(self, image):
        self.image = image
        if image is not None:
            h, w = image.shape[:2]
            self.mapper.set_image_size(w, h)

    def zoom_in(self):
        self.mapper.zoom_in()
        self.on_click(None, None)

    def zoom_out(self):
        self.mapper.zoom_out()
        self.on_click(None, None)

    def fit(self):
        self.mapper.fit_to_view()
        self.on_click(None, None)

    def _on_configure(self, event):
        self.mapper.set_viewport_size(event.width, event.height)
        self.on_click(None, None)

    def _on_drag(self, event):
        self.mapper.pointer_move(event.x, event.y)
        self.on_click(None, None)

    def _on_release(self, event):
        point = self.mapper.pointer_up(event.x, event.y)
        self.on_click(self.side, point)

    def render(self, points):
        self.canvas.delete("all")
        width = max(self.canvas.winfo_width(), 1)
        height = max(self.canvas.winfo_height(), 1)

        if self.image is None:
            self.canvas.create_text(
                width // 2, height // 2, text="No image", fill="gray", font=("Arial", 14)
            )
            self.info_label.config(text="No image")
            return

        v = self.mapper.viewport
        matrix = [[v.scale, 0, v.offset_x], [0, v.scale, v.offset_y]]
        view = cv2.warpAffine(
            self.image, np.array(matrix, dtype=np.float32), (width, height),
            flags=cv2.INTER_LINEAR, borderValue=(43, 43, 43),
        )
        self.photo = ImageTk.PhotoImage(Image.fromarray(cv2.cvtColor(view, cv2.COLOR_BGR2RGB)))
        self.canvas.create_image(0, 0, image=self.photo, anchor=tk.NW)

        color = MARKER_COLORS[self.side]
        for idx, point in enumerate(points, start=1):
            sx, sy = self.mapper.image_to_screen(point)
            self.canvas.create_oval(sx - 8, sy - 8, sx + 8, sy + 8, fill=color, outline="black", width=2)
            self.canvas.create_line(sx - 12, sy, sx + 12, sy, fill="white", width=2)
            self.canvas.create_line(sx, sy - 12, sx, sy + 12, fill="white", width=2)
            self.canvas.create_text(sx + 20, sy - 10, text=f"#{idx}", fill="white", font=("Arial", 10, "bold"))
            self.canvas.create_text(
                sx + 10, sy + 15, anchor="w", fill="yellow", font=("Courier", 9),
                text=f"({round(point.x)}, {round(point.y)})",
            )

        h, w = self.image.shape[:2]
        self.info_label.config(text=f"{w} x {h}    Zoom: {self.mapper.zoom_percent}%")


class AlignerGUI:
    """Main GUI application for the stereo aligner."""

    def __init__(self, root):
        self.root = root
        self.root.title("Stereo Aligner")
        self.root.geometry("1280x800")
        self.root.resizable(True, True)

        self.controller = PipelineController()

        self._setup_ui()
        self.refresh()

    def _setup_ui(self):
        """Setup the user interface."""
        self.root.grid_rowconfigure(1, weight=1)
        self.root.grid_columnconfigure(0, weight=1)

        self._create_control_panel()

        main_frame = ttk.Frame(self.root)
        main_frame.grid(row=1, column=0, sticky="nsew", padx=10, pady=5)
        main_frame.grid_rowconfigure(0, weight=3)
        main_frame.grid_rowconfigure(1, weight=1)
        main_frame.grid_columnconfigure(0, weight=1)
        main_frame.grid_columnconfigure(1, weight=1)

        self.panels = {
            Side.LEFT: ImagePanel(main_frame, Side.LEFT, "Left Image", self.on_panel_event),
            Side.RIGHT: ImagePanel(main_frame, Side.RIGHT, "Right Image", self.on_panel_event),
        }
        self.panels[Side.LEFT].frame.grid(row=0, column=0, sticky="nsew", padx=(0, 5))
        self.panels[Side.RIGHT].frame.grid(row=0, column=1, sticky="nsew", padx=(5, 0))

        self._create_log_panel(main_frame)
        self._create_status_bar()

    def _create_control_panel(self):
        control_frame = ttk.LabelFrame(self.root, text="Alignment", padding=10)
        control_frame.grid(row=0, column=0, sticky="ew", padx=10, pady=10)

        ttk.Button(control_frame, text="Open Left…", command=lambda: self.open_image(Side.LEFT)).grid(
            row=0, column=0, padx=2
        )
        ttk.Button(control_frame, text="Open Right…", command=lambda: self.open_image(Side.RIGHT)).grid(
            row=0, column=1, padx=2
        )

        self.equal_tilt_var = tk.BooleanVar(value=False)
        self.equal_zoom_var = tk.BooleanVar(value=False)
        self.equal_framing_var = tk.BooleanVar(value=False)
        self.rotate_side_var = tk.StringVar(value=Side.RIGHT.value)

        self.option_checks = [
            ttk.Checkbutton(control_frame, text="Equal tilt", variable=self.equal_tilt_var),
            ttk.Checkbutton(control_frame, text="Equal zoom", variable=self.equal_zoom_var),
            ttk.Checkbutton(control_frame, text="Equal framing", variable=self.equal_framing_var),
        ]
        for col, check in enumerate(self.option_checks, start=2):
            check.grid(row=0, column=col, padx=4)

        ttk.Label(control_frame, text="Rotate:").grid(row=0, column=5, padx=(10, 2))
        self.rotate_combo = ttk.Combobox(
            control_frame, textvariable=self.rotate_side_var, state="readonly", width=6,
            values=[Side.LEFT.value, Side.RIGHT.value],
        )
        self.rotate_combo.grid(row=0, column=6, padx=2)
        self.rotate_combo.bind("<<ComboboxSelected>>", self.on_rotate_side_changed)

        self.start_btn = ttk.Button(control_frame, text="▶ Start", command=self.start)
        self.start_btn.grid(row=0, column=7, padx=(10, 2))
        self.apply_btn = ttk.Button(control_frame, text="✓ Apply", command=self.apply)
        self.apply_btn.grid(row=0, column=8, padx=2)
        self.undo_btn = ttk.Button(control_frame, text="↶ Undo point", command=self.undo)
        self.undo_btn.grid(row=0, column=9, padx=2)
        self.clear_btn = ttk.Button(control_frame, text="Clear points", command=self.clear_points)
        self.clear_btn.grid(row=0, column=10, padx=2)
        self.reset_btn = ttk.Button(control_frame, text="⟲ Reset", command=self.reset)
        self.reset_btn.grid(row=0, column=11, padx=2)

        self.quality_var = tk.IntVar(value=DEFAULT_QUALITY)
        ttk.Label(control_frame, text="Quality:").grid(row=1, column=0, pady=(8, 0), sticky="e")
        ttk.Scale(control_frame, from_=10, to=100, variable=self.quality_var, orient="horizontal").grid(
            row=1, column=1, columnspan=2, sticky="ew", pady=(8, 0)
        )
        self.save_btn = ttk.Button(control_frame, text="💾 Save Result…", command=self.save_result)
        self.save_btn.grid(row=1, column=3, padx=4, pady=(8, 0))

        self.instructions_label = ttk.Label(control_frame, text="", font=("", 10, "bold"))
        self.instructions_label.grid(row=1, column=4, columnspan=8, sticky="w", padx=10, pady=(8, 0))

    def _create_log_panel(self, parent):
        log_container = ttk.LabelFrame(parent, text="Log", padding=5)
        log_container.grid(row=1, column=0, columnspan=2, sticky="nsew", pady=(5, 0))
        log_container.grid_rowconfigure(0, weight=1)
        log_container.grid_columnconfigure(0, weight=1)

        self.status_text = scrolledtext.ScrolledText(
            log_container, height=6, wrap=tk.WORD, state="disabled", font=("Courier", 10)
        )
        self.status_text.grid(row=0, column=0, sticky="nsew")
        self.status_text.tag_config("info", foreground="blue")
        self.status_text.tag_config("success", foreground="green")
        self.status_text.tag_config("warning", foreground="orange")
        self.status_text.tag_config("error", foreground="red")

    def _create_status_bar(self):
        status_bar = ttk.Frame(self.root)
        status_bar.grid(row=2, column=0, sticky="ew", padx=10, pady=(5, 10))

        ttk.Label(status_bar, text="Stage:").grid(row=0, column=0, padx=5)
        self.stage_label = ttk.Label(status_bar, text="upload", foreground="gray")
        self.stage_label.grid(row=0, column=1, padx=5)

        ttk.Label(status_bar, text="Points:").grid(row=0, column=2, padx=(20, 5))
        self.points_label = ttk.Label(status_bar, text="0 / 0", foreground="gray")
        self.points_label.grid(row=0, column=3, padx=5)

    # ========== Actions ==========

    def open_image(self, side: Side):
        path = filedialog.askopenfilename(
            title=f"Open {side.value} image",
            filetypes=[("Images", "*.jpg *.jpeg *.png *.bmp *.tif *.tiff *.webp"), ("All files", "*.*")],
        )
        if not path:
            return
        try:
            image = load_image(path)
        except (OSError, ValueError) as e:
            self.log_status(f"✗ {e}", "error")
            messagebox.showerror("Open Error", str(e))
            return

        if self.controller.load_image(side, image):
            self.log_status(f"Loaded {side.value} image: {path}", "success")
        self.refresh(refit=True)

    def _read_options(self) -> ProcessingOptions:
        return ProcessingOptions(
            assume_equal_tilt=self.equal_tilt_var.get(),
            assume_equal_zoom=self.equal_zoom_var.get(),
            assume_equal_framing=self.equal_framing_var.get(),
            rotate_left_image=self.rotate_side_var.get() == Side.LEFT.value,
        )

    def start(self):
        self.controller.set_options(self._read_options())
        if not self.controller.start():
            messagebox.showwarning("Missing Images", "Please load both images first")
            return
        self.log_status(f"Started, stage: {self.controller.stage.value}", "info")
        self.refresh(refit=True)

    def on_rotate_side_changed(self, _event=None):
        self.controller.set_rotate_left_image(self.rotate_side_var.get() == Side.LEFT.value)

    def apply(self):
        stage = self.controller.stage
        if not self.controller.apply():
            if self.controller.last_error:
                self.log_status(f"✗ {self.controller.last_error}", "error")
                messagebox.showerror("Cannot Apply", self.controller.last_error)
            return
        self.log_status(f"✓ {stage.value} applied, stage: {self.controller.stage.value}", "success")
        self.refresh(refit=True)

    def undo(self):
        self.controller.undo_last_point()
        self.refresh()

    def clear_points(self):
        self.controller.clear_points()
        self.refresh()

    def reset(self):
        self.controller.reset()
        self.log_status("Reset", "info")
        self.refresh(refit=True)

    def save_result(self):
        if self.controller.result is None:
            return
        path = filedialog.asksaveasfilename(
            defaultextension=".jpg", initialfile="stereogram.jpg",
            filetypes=[("JPEG", "*.jpg"), ("PNG", "*.png")],
        )
        if not path:
            return
        try:
            out = self.controller.export(path, self.quality_var.get())
            self.log_status(f"✓ Saved {out}", "success")
        except (OSError, ValueError) as e:
            self.log_status(f"✗ Save failed: {e}", "error")
            messagebox.showerror("Save Error", str(e))

    def on_panel_event(self, side, point):
        """Called by a panel after a view change (side None) or a release."""
        if side is not None and point is not None:
            self.controller.add_point(side, point)
        self.refresh()

    # ========== Display ==========

    def refresh(self, refit=False):
        c = self.controller
        stage = c.stage

        if refit:
            if c.working is not None and stage != Stage.UPLOAD:
                images = {Side.LEFT: c.working.left, Side.RIGHT: c.working.right}
            else:
                images = dict(c.sources)
            for side, panel in self.panels.items():
                panel.set_image(images[side])

        for side, panel in self.panels.items():
            panel.render(c.points.points(side))

        in_upload = stage == Stage.UPLOAD
        for check in self.option_checks:
            check.config(state="normal" if in_upload else "disabled")
        self.rotate_combo.config(state="readonly" if stage in (Stage.UPLOAD, Stage.ROTATE) else "disabled")
        self.start_btn.config(state="normal" if c.can_start() else "disabled")
        self.apply_btn.config(state="normal" if c.can_apply() else "disabled")
        self.undo_btn.config(state="normal" if c.points.history else "disabled")
        self.save_btn.config(state="normal" if c.result is not None else "disabled")

        self.stage_label.config(text=stage.value)
        limit = c.max_points()
        self.points_label.config(
            text=f"L {c.points.count(Side.LEFT)}/{limit}   R {c.points.count(Side.RIGHT)}/{limit}"
        )
        self.instructions_label.config(text=c.stage_instructions())

    def log_status(self, message, level="info"):
        """Log a status message to the status text widget."""
        timestamp = time.strftime("%H:%M:%S")
        formatted_msg = f"[{timestamp}] {message}\n"

        self.status_text.config(state="normal")
        self.status_text.insert(tk.END, formatted_msg, level)
        self.status_text.see(tk.END)
        self.status_text.config(state="disabled")


def main():
    """Main entry point for the GUI application."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    root = tk.Tk()
    app = AlignerGUI(root)
    root.protocol("WM_DELETE_WINDOW", root.destroy)
    root.mainloop()


if __name__ == "__main__":
    main()
