from typing import Optional, List
from enum import Enum
from pydantic import BaseModel, Field

SUMMARY_UNIT = "Summary"


class ReviewMode(str, Enum):
    """Which passes a review run performs."""
    SUMMARY = "summary"  # one whole-diff pass
    FILES = "files"  # one pass per changed file
    BOTH = "both"  # per-file passes followed by the whole-diff pass


class ReviewItem(BaseModel):
    """A completed review unit."""
    file: str
    review: str = ""
    diff: str = ""
    done: bool = True


class StatusSnapshot(BaseModel):
    """Pull-based live status served to the viewer."""
    files: List[ReviewItem] = Field(default_factory=list)
    done: bool = False


class ReviewRunInfo(BaseModel):
    """Metadata shown alongside a review report."""
    provider: str
    model: str = "unknown"
    datetime: str = ""
    subtitle: str = ""
    status: str = ""
    ai_invoked: bool = False
    ai_succeeded: bool = False
    agent_enabled: bool = False


class ReviewRunResult(BaseModel):
    review_id: Optional[str] = None
    url: Optional[str] = None
    items: List[ReviewItem] = Field(default_factory=list)
    info: Optional[ReviewRunInfo] = None
    report_paths: List[str] = Field(default_factory=list)
    message: Optional[str] = None
