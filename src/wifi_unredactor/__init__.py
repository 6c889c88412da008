"""Read the associated Wi-Fi interface state and print it as JSON or CSV."""

import pathlib
import sys
from importlib import metadata

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def get_version() -> str:
    """Read version from pyproject.toml, falling back to installed metadata."""
    current_dir = pathlib.Path(__file__).parent
    # Source checkouts and editable installs keep pyproject.toml above the package
    for parent in [current_dir, *current_dir.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            with pyproject_path.open("rb") as f:
                pyproject_data = tomllib.load(f)
            project = pyproject_data.get("project", {})
            if project.get("name") == "wifi-unredactor":
                return project["version"]

    try:
        return metadata.version("wifi-unredactor")
    except metadata.PackageNotFoundError:
        return "0.0.0"


__version__ = get_version()
