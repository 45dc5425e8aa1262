"""Top-level package for the quiz-selection funnel.

Provides subpackages:
- quiz_funnel.core – models and payload validation
- quiz_funnel.funnel – state machine, options and session controller
- quiz_funnel.api – dashboard API client
- quiz_funnel.progress – locally stored unfinished attempts
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text()
        except OSError:
            content = ""
        for line in content.splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("quiz-funnel")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__copyright__ = "Copyright 2026 The quiz-funnel authors"
__all__: list[str] = ["__version__"]
