"""HLS playlist detection and URI rewriting."""
from urllib.parse import urljoin, urlsplit

from hls_proxy.codec import build_proxy_url
from hls_proxy.config import MOUNT_PATH

PLAYLIST_EXTENSION = ".m3u8"
PLAYLIST_CONTENT_TYPES = ("application/vnd.apple.mpegurl", "application/x-mpegurl")


def is_manifest(target_url: str, content_type: str | None) -> bool:
    # Origins behind redirect chains often serve playlists with a generic type
    if PLAYLIST_EXTENSION in urlsplit(target_url).path.lower():
        return True
    if not content_type:
        return False
    normalized = content_type.lower()
    return any(ct in normalized for ct in PLAYLIST_CONTENT_TYPES)


def rewrite_manifest(manifest: str, manifest_url: str, mount_path: str = MOUNT_PATH) -> str:
    """Point every URI line of ``manifest`` back at the proxy.

    Tags, comments and blank lines are kept byte for byte, and so is the
    whitespace around a rewritten URI. Relative URIs are resolved against
    ``manifest_url`` before encoding.
    """
    lines = []
    for line in manifest.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            lines.append(line)
            continue

        absolute_url = urljoin(manifest_url, trimmed)
        lines.append(line.replace(trimmed, build_proxy_url(absolute_url, mount_path), 1))
    return "\n".join(lines)
