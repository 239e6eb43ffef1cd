"""Host to engine path translation.

Docker Desktop on Windows expects bind mount sources as POSIX-style paths
(``/c/Users/...``) while the host reports drive-letter paths
(``C:\\Users\\...``). Translation is a pure function of its input so it can be
tested on any platform.
"""

import re
import sys

IS_WINDOWS_HOST = sys.platform == "win32"

_DRIVE_PREFIX = re.compile(r"^([A-Za-z]):[\\/]*")


def to_engine_path(host_path: str, windows_host: bool | None = None) -> str:
    """Translate a host filesystem path into the engine's path syntax.

    Args:
        host_path: Absolute path as reported by the host.
        windows_host: Whether the host uses drive-letter paths. Defaults to
            the current platform.

    Returns:
        The path the engine should see. Unchanged on POSIX hosts. Applying the
        function to its own output returns the output unchanged.
    """
    if windows_host is None:
        windows_host = IS_WINDOWS_HOST
    if not windows_host:
        return host_path

    path = host_path
    match = _DRIVE_PREFIX.match(path)
    if match:
        path = f"/{match.group(1).lower()}/{path[match.end():]}"
    return path.replace("\\", "/")
