"""Documents and folders: path helpers, tree builder, view selector and controller."""
