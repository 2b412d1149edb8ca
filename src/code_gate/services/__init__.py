from .git_client import GitClient
from .hook_installer import HookMethod, install_hook
from .report_writer import ReportWriter
from .review_service import ReviewService, ReviewRunOptions

__all__ = ["GitClient", "HookMethod", "install_hook", "ReportWriter", "ReviewService", "ReviewRunOptions"]
