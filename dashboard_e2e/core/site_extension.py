"""Locates the unzipped dashboard site extension on disk."""

import fnmatch
import logging
from pathlib import Path
from typing import Union

from dashboard_e2e.core.exceptions import SiteExtensionNotFoundError

logger = logging.getLogger(__name__)

# Site extensions are unpacked into a version folder, e.g. "1.0.0"
VERSION_FOLDER_PATTERN = "?.*.*"


def find_site_extension(root: Union[str, Path]) -> Path:
    """Find the single version folder under a site extension root.

    The root is the directory where the site extension's "extension.xml" lives.

    Args:
        root: Site extension root directory

    Returns:
        Path of the version folder

    Raises:
        SiteExtensionNotFoundError: If the root is missing or does not contain
            exactly one version folder
    """
    root = Path(root)
    if not root.is_dir():
        raise SiteExtensionNotFoundError(
            f"Unable to find Dashboard site extension: '{root}' is not a directory. "
            "Make sure you've configured 'DashboardSiteExtensionLocation' correctly."
        )

    matches = sorted(
        child for child in root.iterdir()
        if child.is_dir() and fnmatch.fnmatchcase(child.name, VERSION_FOLDER_PATTERN)
    )

    if len(matches) != 1:
        found = ", ".join(m.name for m in matches) or "none"
        raise SiteExtensionNotFoundError(
            f"Unable to find Dashboard site extension in '{root}' "
            f"(expected exactly one version folder, found: {found}). "
            "Make sure you've configured 'DashboardSiteExtensionLocation' correctly."
        )

    logger.info(f"Using Dashboard site extension at {matches[0]}")
    return matches[0]
