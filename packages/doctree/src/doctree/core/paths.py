"""Path codec between external and internal tree paths.

External paths are what users see: "/"-separated names made of lowercase
letters, digits and hyphens. Internal paths are what the store indexes:
"."-separated labels where hyphens become underscores. Names must be
validated before encoding; the mapping is only lossless for valid names.
"""

import re

from doctree.core.errors import ERR_INVALID_PATH_NAME, ValidationError
from doctree.core.types import (
    LABEL_SEPARATOR,
    PATH_SEPARATOR,
    ExternalPath,
    InternalPath,
)

NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")
TITLE_PATTERN = re.compile(r'^[^<>"]+$')


def is_valid_name(name: str) -> bool:
    """Check a folder or file name against the name pattern."""
    return NAME_PATTERN.fullmatch(name) is not None


def is_valid_title(title: str) -> bool:
    """Check a display title for forbidden characters."""
    return TITLE_PATTERN.fullmatch(title) is not None


def encode_label(name: str) -> str:
    return name.replace("-", "_")


def decode_label(label: str) -> str:
    return label.replace("_", "-")


def encode_path(path: str) -> InternalPath:
    """Encode an external path to its internal label form.

    Args:
        path: External path (e.g., "guides/getting-started" or "/guides/")

    Returns:
        Internal path (e.g., "guides.getting_started"), "" for root
    """
    stripped = path.strip(PATH_SEPARATOR)
    if not stripped:
        return InternalPath("")
    return InternalPath(
        LABEL_SEPARATOR.join(encode_label(segment) for segment in stripped.split(PATH_SEPARATOR))
    )


def decode_path(path: str) -> ExternalPath:
    """Decode an internal label path back to its external form.

    Args:
        path: Internal path (e.g., "guides.getting_started")

    Returns:
        External path (e.g., "guides/getting-started"), "" for root
    """
    if not path:
        return ExternalPath("")
    return ExternalPath(PATH_SEPARATOR.join(decode_label(label) for label in split_path(path)))


def split_path(path: str) -> list[str]:
    """Split an internal path into labels, [] for root."""
    if not path:
        return []
    return path.split(LABEL_SEPARATOR)


def join_path(parent: str, name: str) -> InternalPath:
    """Build the internal path of a child named `name` under `parent`."""
    label = encode_label(name)
    if not parent:
        return InternalPath(label)
    return InternalPath(f"{parent}{LABEL_SEPARATOR}{label}")


def label_count(path: str) -> int:
    return len(split_path(path))


def parse_external_path(path: str) -> InternalPath:
    """Validate and encode a user-supplied external path.

    The path is lowercased and surrounding slashes are ignored.

    Raises:
        ValidationError: If any segment does not match the name pattern
    """
    stripped = path.strip().lower().strip(PATH_SEPARATOR)
    if not stripped:
        return InternalPath("")
    segments = stripped.split(PATH_SEPARATOR)
    for segment in segments:
        if not is_valid_name(segment):
            raise ValidationError(ERR_INVALID_PATH_NAME, f"Invalid path segment: {segment!r}")
    return encode_path(PATH_SEPARATOR.join(segments))
