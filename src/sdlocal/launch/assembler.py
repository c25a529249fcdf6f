"""
Assembly of the build entry.

Turns the launch options into the immutable BuildEntry consumed by the
runner. Assembly never fails: a malformed service URL is logged and passed
through untouched so that a local build is never blocked by it.
"""

import logging
import posixpath
import re
from typing import Optional
from urllib.parse import quote, unquote, urlsplit, urlunsplit

from ..models.build import BuildEntry, EnvVar, LaunchOption
from .shared_state import ApiVersions, ContainerPaths

logger = logging.getLogger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# ASCII characters allowed in a host name, anything non-ASCII passes
_BAD_HOST_CHAR = re.compile(r"[^A-Za-z0-9\-_.~!$&'()*+,;=:\[\]<>\"%\x80-\U0010ffff]")
# Characters left unescaped in a path, besides letters, digits and "-_.~"
_PATH_SAFE = "/$&+,:;=@"


def versioned_url(raw_url: str, version: str) -> Optional[str]:
    """
    Append *version* to the path of *raw_url*.

    The path is cleaned (duplicate slashes, "." and ".." removed) and
    re-escaped.

    Returns:
        The versioned URL, or None if *raw_url* cannot be parsed.

    Examples:
        >>> versioned_url("http://api.example.com", "v4")
        'http://api.example.com/v4'
        >>> versioned_url("http://api.example.com/api/", "v4")
        'http://api.example.com/api/v4'
    """
    if _CONTROL_CHARS.search(raw_url) or _BAD_ESCAPE.search(raw_url):
        return None
    try:
        parts = urlsplit(raw_url)
        # Accessing .port validates it
        parts.port
    except ValueError:
        return None

    # Without a scheme, a colon in the first segment makes the URL ambiguous
    if not parts.scheme and not raw_url.startswith("/"):
        if ":" in raw_url.split("/", 1)[0]:
            return None
    host = parts.netloc.rpartition("@")[2]
    if _BAD_HOST_CHAR.search(host):
        return None

    path = posixpath.normpath(posixpath.join(unquote(parts.path), version))
    path = re.sub(r"^/+", "/", path)
    return urlunsplit(parts._replace(path=quote(path, safe=_PATH_SAFE)))


def merge_env(env: EnvVar, job_env: Optional[EnvVar], option_env: Optional[EnvVar]) -> EnvVar:
    """
    Merge environment layers, later layers winning on key collisions.

    Precedence: defaults < job environment < caller overrides. None of the
    inputs is modified.
    """
    merged = dict(env)
    merged.update(job_env or {})
    merged.update(option_env or {})
    return merged


def create_build_entry(option: LaunchOption) -> BuildEntry:
    """
    Build the BuildEntry for *option*.

    Args:
        option: Launch options for one job

    Returns:
        The assembled, immutable BuildEntry
    """
    api_url = versioned_url(option.entry.api_url, ApiVersions.API)
    if api_url is None:
        logger.warning("SD_API_URL is invalid. It may cause errors")
        api_url = option.entry.api_url

    store_url = versioned_url(option.entry.store_url, ApiVersions.STORE)
    if store_url is None:
        logger.warning("SD_STORE_URL is invalid. It may cause errors")
        store_url = option.entry.store_url

    default_env = {
        "SD_TOKEN": option.jwt,
        "SD_ARTIFACTS_DIR": ContainerPaths.DEFAULT_ARTIFACTS_DIR,
        "SD_API_URL": api_url,
        "SD_STORE_URL": store_url,
    }
    environment = merge_env(default_env, option.job.environment, option.option_env)

    return BuildEntry.create(
        id=0,
        environment=environment,
        event_id=0,
        job_id=0,
        parent_build_id=(0,),
        sha="dummy",
        meta=option.meta,
        steps=option.job.steps,
        image=option.job.image,
        job_name=option.job_name,
        artifacts_path=option.artifacts_path,
        memory_limit=option.memory or None,
        src_path=option.src_path,
        use_sudo=option.use_sudo,
        use_privileged=option.use_privileged,
    )
