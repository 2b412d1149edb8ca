"""
End-to-end review flow: collect units, dispatch reviews, serve live status
and write the report.
"""
import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from ..api.live_page import render_live_page
from ..api.live_server import LiveServer
from ..core.budget import cap_files
from ..core.dispatcher import ReviewDispatcher, ReviewEntryPoint
from ..core.orchestrator import AgentOrchestrator, AgentReviewInput, AgentReviewOptions
from ..llm.base import BaseReviewer
from ..llm.llm_factory import LLMFactory, check_provider_reachable
from ..llm.reviewer import LangChainReviewer
from ..models.config import ReviewConfig, load_config
from ..models.review import ReviewMode, ReviewRunInfo, ReviewRunResult
from ..tools import default_registry
from ..utils.selection import filter_files
from .git_client import GitClient
from .report_writer import ReportWriter

logger = logging.getLogger(__name__)

NO_FILES_MESSAGE = "No changed files to review"
NO_FILES_AFTER_FILTER_MESSAGE = "No files left to review after applying fileTypes/exclude"
OLLAMA_UNREACHABLE_MESSAGE = "Ollama is not reachable; AI review may fail"


@dataclass
class ReviewRunOptions:
    commit_hash: Optional[str] = None
    config_path: Optional[str] = None
    cwd: Optional[str] = None
    open_browser: Optional[bool] = None
    on_start: Optional[Callable[[int], None]] = None
    on_progress: Optional[Callable[[str, int, int], None]] = None
    on_server_ready: Optional[Callable[[str], None]] = None


def make_review_id(now: datetime) -> str:
    return now.strftime("%Y%m%d-%H%M%S")


def build_subtitle(branch: str, commit_message: str, diff_stats: str) -> str:
    info = commit_message or diff_stats
    return f"Branch: {branch}" + (f" | {info}" if info else "")


class ReviewService:
    """
    Runs one review per `run` call.

    Collaborators can be injected; anything left out is built from the
    configuration.
    """

    def __init__(
        self,
        config: Optional[ReviewConfig] = None,
        reviewer: Optional[BaseReviewer] = None,
        git: Optional[GitClient] = None,
        live_server: Optional[LiveServer] = None,
    ):
        self.config = config
        self.reviewer = reviewer
        self.git = git
        self.live_server = live_server

    async def run(self, options: Optional[ReviewRunOptions] = None) -> ReviewRunResult:
        options = options or ReviewRunOptions()
        config = self.config or load_config(options.config_path)
        cwd = options.cwd or os.getcwd()
        git = self.git or GitClient(cwd=cwd, commit_hash=options.commit_hash)

        all_files = await asyncio.to_thread(git.changed_files)
        if not all_files:
            logger.info(NO_FILES_MESSAGE)
            return ReviewRunResult(message=NO_FILES_MESSAGE)

        files = filter_files(all_files, config.file_types, config.exclude)
        if not files:
            logger.info(NO_FILES_AFTER_FILTER_MESSAGE)
            return ReviewRunResult(message=NO_FILES_AFTER_FILTER_MESSAGE)
        files = cap_files(files, config.limits.max_files)

        mode = config.review_mode
        summary_diff = ""
        if mode in (ReviewMode.SUMMARY, ReviewMode.BOTH):
            summary_diff = await asyncio.to_thread(git.full_diff)
            if not summary_diff:
                logger.warning("Could not get the full diff (it may be too large); the summary will have no diff")

        reviewer = self.reviewer or LangChainReviewer(LLMFactory.create_llm(config))
        root = await asyncio.to_thread(git.root)
        entry_point = self._build_entry_point(config, reviewer, root)

        status = ""
        if config.provider == "ollama":
            base_url = config.active_provider().base_url or "http://localhost:11434"
            if not await asyncio.to_thread(check_provider_reachable, base_url):
                logger.warning(OLLAMA_UNREACHABLE_MESSAGE)
                status = OLLAMA_UNREACHABLE_MESSAGE

        if options.on_start:
            options.on_start(len(files))

        subtitle = await asyncio.to_thread(self._subtitle, git)

        now = datetime.now()
        review_id = make_review_id(now)
        info = ReviewRunInfo(
            provider=config.provider,
            model=config.model_name(),
            datetime=now.strftime("%Y-%m-%d %H:%M:%S"),
            subtitle=subtitle,
            status=status,
            agent_enabled=config.agent.enabled,
        )

        server = self.live_server or LiveServer(
            host=config.ui.host,
            port=config.ui.port,
            open_browser=config.ui.open_browser if options.open_browser is None else options.open_browser,
        )
        self.live_server = server

        dispatcher = ReviewDispatcher(
            review=entry_point,
            diff_loader=git.file_diff,
            concurrency=config.active_provider().concurrency_files,
            max_diff_lines=config.limits.max_diff_lines,
            mode=mode,
            on_progress=options.on_progress,
        )
        results = dispatcher.new_result_set(files)

        # Summary runs open the page right away; file runs wait for the first result.
        open_now = None if mode is ReviewMode.SUMMARY else False
        url = server.serve(review_id, render_live_page(review_id, info), results.snapshot, open_now=open_now)
        if options.on_server_ready:
            options.on_server_ready(url)
        dispatcher.on_first_unit = lambda item: server.open(url)

        outcome = await dispatcher.run(files, summary_diff=summary_diff, results=results)

        info.ai_invoked = outcome.ai_invoked
        info.ai_succeeded = outcome.ai_succeeded
        if outcome.status:
            info.status = outcome.status

        writer = ReportWriter(config.output.dir, base_dir=cwd)
        report_paths = await asyncio.to_thread(writer.save, review_id, outcome.items, info)

        logger.info(f"Review {review_id} finished: {len(outcome.items)} item(s)")
        return ReviewRunResult(
            review_id=review_id,
            url=url,
            items=outcome.items,
            info=info,
            report_paths=report_paths,
        )

    @staticmethod
    def _subtitle(git: GitClient) -> str:
        return build_subtitle(git.branch_name(), git.commit_message(), git.diff_stats())

    def close(self) -> None:
        if self.live_server is not None:
            self.live_server.stop()

    @staticmethod
    def _build_entry_point(config: ReviewConfig, reviewer: BaseReviewer, root: str) -> ReviewEntryPoint:
        if not config.agent.enabled:
            async def review_direct(diff: str, files: List[str]) -> str:
                return await reviewer.review(config.prompt, diff)
            return review_direct

        orchestrator = AgentOrchestrator(reviewer, default_registry(root))
        agent_options = AgentReviewOptions(
            max_iterations=config.agent.max_iterations,
            max_tool_calls=config.agent.max_tool_calls,
            on_iteration=lambda iteration, calls: logger.info(f"Agent iteration {iteration}, tool calls: {calls}"),
            on_tool_call=lambda call: logger.info(f"Agent calling tool: {call.name}"),
        )
        logger.info(f"Agent mode enabled (max_iterations={agent_options.max_iterations}, "
                    f"max_tool_calls={agent_options.max_tool_calls})")

        async def review_with_agent(diff: str, files: List[str]) -> str:
            return await orchestrator.run(
                AgentReviewInput(prompt=config.prompt, diff=diff, files=files),
                agent_options,
            )
        return review_with_agent
