from .error_sanitizer import sanitize_error_for_display, create_user_friendly_error
from .prompt_builder import PromptBuilder
from .selection import filter_files, matches_glob

__all__ = [
    "sanitize_error_for_display",
    "create_user_friendly_error",
    "PromptBuilder",
    "filter_files",
    "matches_glob",
]
