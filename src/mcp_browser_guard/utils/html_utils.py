"""HTML document rendering for generated pages."""

import html

_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <style>
{css}
    </style>
</head>
<body>
{body}
    <script>
{javascript}
    </script>
</body>
</html>
"""


def render_page_document(title: str = "", body: str = "", css: str = "", javascript: str = "") -> str:
    """
    Wrap body HTML, CSS and JavaScript in a complete HTML5 document.

    The title is escaped; body, CSS and JavaScript are inserted as given.
    """
    return _DOCUMENT_TEMPLATE.format(
        title=html.escape(title or "Untitled Page"),
        css=css or "",
        body=body or "<p>Empty page</p>",
        javascript=javascript or "",
    )


def ensure_html_extension(filename: str) -> str:
    lowered = filename.lower()
    if lowered.endswith(".html") or lowered.endswith(".htm"):
        return filename
    return filename + ".html"


__all__ = ["render_page_document", "ensure_html_extension"]
