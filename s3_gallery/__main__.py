"""Module entry point for the S3 image gallery application."""
import logging
import os
import tkinter as tk

from .settings import resolve_log_level
from .tk_view import GalleryApp


def main() -> None:
    logging.basicConfig(
        level=resolve_log_level(os.environ.get("S3_GALLERY_LOG_LEVEL")),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    root = tk.Tk()
    GalleryApp(root)
    root.mainloop()


if __name__ == "__main__":
    main()
