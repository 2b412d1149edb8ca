"""
Command line entry point for code-gate.

Usage:
    code-gate review                  # Review staged changes
    code-gate review <commit>         # Review a single commit
    code-gate hook [--force]          # Pre-commit hook: review, then confirm the commit
    code-gate init [--force] [--method git|husky|none]
                                      # Write a default config and install the pre-commit hook
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .llm.llm_factory import MissingApiKeyError, UnsupportedModelError, UnsupportedProviderError
from .models.config import DEFAULT_CONFIG_FILE, ConfigError, default_config_json
from .models.review import ReviewRunResult
from .services.hook_installer import HookInstallError, HookMethod, install_hook
from .services.review_service import ReviewRunOptions, ReviewService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_COMMIT_REJECTED = 1
EXIT_CONFIG_ERROR = 2

CONTROLLING_TTY = "/dev/tty"


def setup_logging(verbose: bool = False) -> None:
    # Only configure when nothing else has, to avoid duplicate handlers
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )
    elif verbose:
        root_logger.setLevel(logging.DEBUG)

    # Keep third-party HTTP chatter out of the review output
    for noisy in ("httpx", "httpcore", "openai", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _add_review_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help=f"Path to a config file (default: ./{DEFAULT_CONFIG_FILE})")
    parser.add_argument("--no-browser", action="store_true", help="Do not open the live review page")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="code-gate", description="AI code review for git changes")
    subparsers = parser.add_subparsers(dest="command", required=True)

    review = subparsers.add_parser("review", help="Review staged changes or a commit")
    review.add_argument("commit", nargs="?", help="Commit to review instead of the staged changes")
    _add_review_arguments(review)

    hook = subparsers.add_parser("hook", help="Run from the pre-commit hook; exits 1 when the commit is rejected")
    hook.add_argument("--force", action="store_true",
                      help="Review without asking first, even without a terminal")
    _add_review_arguments(hook)

    init = subparsers.add_parser("init", help=f"Write a default {DEFAULT_CONFIG_FILE} and install the pre-commit hook")
    init.add_argument("--force", action="store_true", help="Overwrite an existing config file")
    init.add_argument("--method", choices=[m.value for m in HookMethod], default=HookMethod.GIT.value,
                      help="Hook installation: native git hooks (.githooks), husky (.husky) or none")

    return parser


def ask_yes_no(question: str, default: bool = True) -> Optional[bool]:
    """
    Ask a yes/no question on the terminal.

    Git runs hooks without a terminal on stdin, so the controlling terminal is
    tried next. Returns None when there is no terminal to ask on; Ctrl-C
    answers no.
    """
    try:
        stream = sys.stdin if sys.stdin.isatty() else open(CONTROLLING_TTY, encoding="utf-8")
    except OSError:
        return None

    suffix = " [Y/n] " if default else " [y/N] "
    try:
        print(question + suffix, end="", flush=True)
        answer = stream.readline()
    except KeyboardInterrupt:
        print()
        return False
    finally:
        if stream is not sys.stdin:
            stream.close()

    if not answer:
        return None
    answer = answer.strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def run_init(force: bool, method: HookMethod) -> int:
    path = Path.cwd() / DEFAULT_CONFIG_FILE
    if path.exists() and not force:
        print(f"{path} already exists, use --force to overwrite")
    else:
        path.write_text(default_config_json() + "\n", encoding="utf-8")
        print(f"Wrote {path}")

    if method is HookMethod.NONE:
        return EXIT_OK
    try:
        pre_commit = install_hook(Path.cwd(), method)
    except HookInstallError as e:
        logger.error(str(e))
        print(f"code-gate: could not install the pre-commit hook: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    print(f"Pre-commit hook installed: {pre_commit}")
    return EXIT_OK


def _start_review(service: ReviewService, args: argparse.Namespace) -> Optional[ReviewRunResult]:
    options = ReviewRunOptions(
        commit_hash=getattr(args, "commit", None),
        config_path=args.config,
        open_browser=False if args.no_browser else None,
        on_start=lambda total: print(f"Preparing review of {total} file(s)..."),
        on_progress=lambda path, done, total: print(f"[{done}/{total}] {path}"),
        on_server_ready=lambda url: print(f"Live review: {url}"),
    )
    try:
        return asyncio.run(service.run(options))
    except (ConfigError, UnsupportedProviderError, UnsupportedModelError, MissingApiKeyError) as e:
        logger.error(str(e))
        print(f"code-gate: {e}", file=sys.stderr)
        return None


def _print_result(result: ReviewRunResult) -> None:
    for path in result.report_paths:
        print(f"Report saved: {path}")
    if result.url:
        print(f"Review: {result.url}")


def run_review(args: argparse.Namespace) -> int:
    service = ReviewService()
    result = _start_review(service, args)
    if result is None:
        return EXIT_CONFIG_ERROR

    try:
        if result.message:
            print(result.message)
            return EXIT_OK

        _print_result(result)
        if result.url and result.url.startswith("http") and sys.stdin.isatty():
            input("Press Enter to exit...")
    except (KeyboardInterrupt, EOFError):
        pass
    finally:
        service.close()
    return EXIT_OK


def run_hook(args: argparse.Namespace) -> int:
    """Review the staged changes, then let the user accept or reject the commit."""
    if not args.force:
        answer = ask_yes_no("Run AI code review before committing?")
        if answer is None:
            print("code-gate: no terminal available, skipping review (use --force to review anyway)")
            return EXIT_OK
        if not answer:
            print("Review skipped.")
            return EXIT_OK

    service = ReviewService()
    result = _start_review(service, args)
    if result is None:
        return EXIT_CONFIG_ERROR

    try:
        if result.message:
            print(result.message)
            return EXIT_OK

        _print_result(result)
        # The live page stays up until the question is answered.
        if ask_yes_no("Proceed with the commit?") is False:
            print("Commit cancelled.")
            return EXIT_COMMIT_REJECTED
        print("Commit confirmed.")
        return EXIT_OK
    finally:
        service.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(getattr(args, "verbose", False))

    if args.command == "init":
        return run_init(args.force, HookMethod(args.method))
    if args.command == "hook":
        return run_hook(args)
    return run_review(args)


if __name__ == "__main__":
    sys.exit(main())
