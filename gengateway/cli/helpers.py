"""CLI helper utilities."""

from rich_toolkit import RichToolkit, RichToolkitTheme
from rich_toolkit.styles import TaggedStyle


def get_rich_toolkit() -> RichToolkit:
    theme = RichToolkitTheme(
        style=TaggedStyle(tag_width=11),
        theme={
            "tag.title": "white on #3b5bdb",
            "tag": "white on #364fc7",
            "placeholder": "grey85",
            "text": "white",
            "result": "grey85",
            # Status tags
            "error": "bold red",
            "success": "bold green",
            "warning": "bold yellow",
            "info": "blue",
            # Command output
            "version": "cyan",
            "format": "cyan",
            "endpoint": "bright_blue",
            "tokens": "magenta",
            "tool": "yellow",
            "finish": "dim white",
            "usage": "dim white",
        },
    )

    return RichToolkit(theme=theme)
