"""Usage texts bundled as package data under ``cryptopipe/usage``."""

from importlib import resources

from .errors import MissingResourceError

GENERAL = "crypto"
USAGE_FILENAME_FORMAT = "usage-{}.txt"


def usage_filename(name: str) -> str:
    return USAGE_FILENAME_FORMAT.format(name.strip().lower())


def usage_message(name: str = GENERAL) -> str:
    resource = resources.files(__package__).joinpath("usage", usage_filename(name))
    try:
        return resource.read_text(encoding="utf-8")
    except (FileNotFoundError, IsADirectoryError):
        raise MissingResourceError(
            f"Usage text not found for '{name}' ({usage_filename(name)})"
        ) from None


__all__ = ["GENERAL", "usage_filename", "usage_message"]
