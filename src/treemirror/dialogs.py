from __future__ import annotations

from pathlib import Path
import tkinter as tk
from tkinter import filedialog, messagebox


def _hidden_root() -> tk.Tk:
    root = tk.Tk()
    root.withdraw()
    root.attributes("-topmost", True)
    return root


def choose_directory(title: str) -> Path | None:
    root = _hidden_root()
    try:
        selected = filedialog.askdirectory(parent=root, title=title, mustexist=True)
    finally:
        root.destroy()
    if not selected:
        return None
    path = Path(selected).resolve()
    return path if path.is_dir() else None


def choose_backup_paths() -> tuple[Path, Path] | None:
    source = choose_directory("Choose folder to backup...")
    if source is None:
        show_error("Invalid source folder.\nBackup not started.")
        return None
    destination = choose_directory("Choose backup destination...")
    if destination is None:
        show_error("Invalid destination folder.\nBackup not started.")
        return None
    return source, destination


def show_error(text: str) -> None:
    root = _hidden_root()
    try:
        messagebox.showerror("treemirror", text, parent=root)
    finally:
        root.destroy()


def show_summary(title: str, lines: list[str]) -> None:
    root = _hidden_root()
    try:
        messagebox.showinfo(title, "\n".join(lines), parent=root)
    finally:
        root.destroy()
