"""HTML rendering of the video player fragment."""

from __future__ import annotations

import json
from html import escape
from textwrap import dedent

from .video_sources import (
    DirectVideo,
    IframeEmbed,
    LargeFilePlaceholder,
    NoVideo,
    ProviderEmbed,
    RawEmbedMarkup,
    VideoSource,
)


RESPONSIVE_IFRAME_TEMPLATE = dedent(
    """
<div class="player-embed" style="position:relative;padding-top:56.25%;">
    <iframe src="__SRC__" style="position:absolute;inset:0;width:100%;height:100%;border:0;"
        allow="autoplay; fullscreen; picture-in-picture" allowfullscreen></iframe>
</div>
"""
).strip()


VIDEO_TEMPLATE = dedent(
    """
<video id="player" class="player-video" controls preload="metadata">
    <source src="__SRC__" type="__MIME__" />
    Your browser does not support the video tag.
</video>
<script>
    (function() {
        const video = document.getElementById('player');
        const context = __CONTEXT__;
        let lastSent = 0;
        video.addEventListener('timeupdate', function() {
            if (!video.duration) {
                return;
            }
            const now = Date.now();
            if (now - lastSent < context.throttleMs) {
                return;
            }
            lastSent = now;
            fetch('/api/history/progress', {
                method: 'POST',
                headers: {'Content-Type': 'application/json'},
                body: JSON.stringify({
                    titleId: context.titleId,
                    episode: context.episode,
                    currentTime: video.currentTime,
                    duration: video.duration
                })
            }).catch(function(err) {
                console.error('Unable to save watch progress', err);
            });
        });
    })();
</script>
"""
).strip()


LARGE_FILE_TEMPLATE = dedent(
    """
<div class="player-placeholder player-placeholder--large-file">
    <h3>Video file too large to stream</h3>
    <p>__NAME__ (__SIZE__) was uploaded but cannot be played from this server.</p>
    <p><a href="__ADMIN__">Open the admin panel</a> to replace it with an embed.</p>
</div>
"""
).strip()


EMPTY_TEMPLATE = dedent(
    """
<div class="player-placeholder player-placeholder--empty">
    <h3>No video available</h3>
    <p>This episode has not been added yet.</p>
</div>
"""
).strip()


def render_player(
    source: VideoSource,
    *,
    title_id: str = "",
    episode: int = 1,
    throttle_seconds: float = 0,
) -> str:
    """Return the player markup for ``source``."""

    if isinstance(source, (IframeEmbed, ProviderEmbed)):
        return RESPONSIVE_IFRAME_TEMPLATE.replace("__SRC__", escape(source.src))
    if isinstance(source, RawEmbedMarkup):
        return source.markup
    if isinstance(source, LargeFilePlaceholder):
        return (
            LARGE_FILE_TEMPLATE.replace("__NAME__", escape(source.name))
            .replace("__SIZE__", escape(source.size_label))
            .replace("__ADMIN__", escape(source.admin_path))
        )
    if isinstance(source, DirectVideo):
        context = json.dumps(
            {
                "titleId": title_id,
                "episode": episode,
                "throttleMs": int(throttle_seconds * 1000),
            }
        ).replace("</", "<\\/")
        return (
            VIDEO_TEMPLATE.replace("__SRC__", escape(source.url))
            .replace("__MIME__", source.mime_type)
            .replace("__CONTEXT__", context)
        )
    if isinstance(source, NoVideo):
        return EMPTY_TEMPLATE
    raise TypeError(f"Unsupported video source: {source!r}")
