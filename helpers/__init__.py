"""Badge rendering helpers: arc-text layout, Pillow backend and badge composition."""
