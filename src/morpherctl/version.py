"""
Build metadata for morpherctl

The constants are stamped at release time; source checkouts report the defaults.
"""

VERSION = "dev"
GIT_COMMIT = "none"
BUILD_DATE = "unknown"


def get_version_info() -> str:
    """Formatted version, commit and build date"""
    return f"Version: {VERSION}\nGit Commit: {GIT_COMMIT}\nBuild Date: {BUILD_DATE}\n"
