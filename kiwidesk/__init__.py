"""Single-instance coordination, translations, zim:// URL handling and tab/view models."""

__version__ = "2.3.1"
__all__ = [
    "lockedfile",
    "localpeer",
    "coreapp",
    "singleapp",
    "translation",
    "urls",
    "views",
    "tabs",
]