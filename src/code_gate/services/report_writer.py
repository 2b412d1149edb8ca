"""
Writes the final review report next to the repository.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from ..models.review import ReviewItem, ReviewRunInfo

logger = logging.getLogger(__name__)


class ReportWriter:

    def __init__(self, output_dir: Union[str, Path], base_dir: Optional[Union[str, Path]] = None):
        output_dir = Path(output_dir)
        if not output_dir.is_absolute():
            output_dir = Path(base_dir or Path.cwd()) / output_dir
        self.output_dir = output_dir

    def save(self, review_id: str, items: List[ReviewItem], info: ReviewRunInfo) -> List[str]:
        """
        Write review-<id>.md and review-<id>.json.

        Returns the written paths. A failed write is logged and skipped.
        """
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create report directory {self.output_dir}: {e}")
            return []

        written = []
        outputs = [
            (f"review-{review_id}.md", render_markdown(items, info)),
            (f"review-{review_id}.json", render_json(review_id, items, info)),
        ]
        for name, content in outputs:
            path = self.output_dir / name
            try:
                path.write_text(content, encoding="utf-8")
                written.append(str(path))
            except OSError as e:
                logger.warning(f"Failed to write report {path}: {e}")

        if written:
            logger.info(f"Review report saved to {self.output_dir}")
        return written


def render_markdown(items: List[ReviewItem], info: ReviewRunInfo) -> str:
    lines = [
        "# Code Review",
        "",
        f"- Provider: {info.provider}",
        f"- Model: {info.model}",
        f"- Date: {info.datetime}",
    ]
    if info.subtitle:
        lines.append(f"- {info.subtitle}")
    if info.status:
        lines.append(f"- Status: {info.status}")
    lines.append("")

    for item in items:
        lines.extend([
            f"## {item.file}",
            "",
            item.review.strip() or "_No review text._",
            "",
            "```diff",
            item.diff.rstrip("\n"),
            "```",
            "",
        ])
    return "\n".join(lines)


def render_json(review_id: str, items: List[ReviewItem], info: ReviewRunInfo) -> str:
    payload = {
        "id": review_id,
        "info": info.model_dump(),
        "items": [item.model_dump() for item in items],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)
