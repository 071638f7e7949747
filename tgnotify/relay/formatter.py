"""Message formatting: render-mode resolution and sender prefixes."""

from __future__ import annotations

from tgnotify.models import RenderMode

_ACCEPTED_MODES = {RenderMode.HTML.value, RenderMode.MARKDOWN.value}

_PREFIX_TEMPLATES = {
    RenderMode.HTML: "<b>{sender}:</b> {body}",
    RenderMode.MARKDOWN: "*{sender}:* {body}",
    RenderMode.PLAIN: "{sender}: {body}",
}


def resolve_mode(requested: str, default: str) -> RenderMode:
    """Pick the render mode for a message.

    ``requested`` wins when it is ``html`` or ``markdown``; otherwise the
    configured ``default`` is used if it is one of those, else plain text.
    Only the requested value is trimmed; the default is compared as given.
    """
    for candidate in (requested.strip(), default):
        if candidate in _ACCEPTED_MODES:
            return RenderMode(candidate)
    return RenderMode.PLAIN


def format_message(
    sender_id: str,
    body: bytes,
    requested_mode: str,
    default_mode: str,
) -> tuple[str, RenderMode]:
    """Return the outbound text and its render mode.

    Pure function of its inputs. The body is decoded as UTF-8; invalid
    sequences are replaced rather than rejected.
    """
    mode = resolve_mode(requested_mode, default_mode)
    text = body.decode("utf-8", errors="replace")
    if sender_id:
        text = _PREFIX_TEMPLATES[mode].format(sender=sender_id, body=text)
    return text, mode
