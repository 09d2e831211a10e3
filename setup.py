from __future__ import annotations

import re
from pathlib import Path

from setuptools import find_packages, setup


ROOT = Path(__file__).resolve().parent


def package_version() -> str:
    match = re.search(r'^__version__ = "([^"]+)"', (ROOT / "mensafeed" / "__init__.py").read_text(encoding="utf-8"), re.M)
    return match.group(1) if match else "0.0.0"


def requirements(filename: str) -> list[str]:
    """Requirement lines of `filename`, following `-r other.txt` includes."""
    path = ROOT / filename
    if not path.exists():
        return []
    found: list[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if line.startswith("-r"):
            found.extend(requirements(line[2:].strip()))
        elif line:
            found.append(line)
    return found


test_requirements = requirements("requirements-dev.txt")

setup(
    name="mensafeed",
    version=package_version(),
    description="mensafeed – canteen meal plans and opening hours (OpenMensa API + scraped pages) with a persistent cache",
    long_description=(ROOT / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests",)),
    python_requires=">=3.9",
    install_requires=requirements("requirements.txt"),
    extras_require={"dev": test_requirements, "test": test_requirements},
    entry_points={"console_scripts": ["mensafeed=mensafeed.cli:main"]},
)
