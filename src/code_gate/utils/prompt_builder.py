from typing import List

# Appended to the configured prompt when the reviewer can call tools
AGENT_TOOL_INSTRUCTIONS = """
You can request extra repository context through the available tools:
- read_file: read a file (paged) to see code the diff depends on
- search_content: regex search across the project to find definitions and call sites
- list_directory: list a directory to understand the project layout

RULES:
1. Only call a tool when the diff alone is not enough to judge a change.
2. Prefer a few targeted calls over broad exploration; your tool budget is limited.
3. Paths are relative to the project root.
4. When you have enough information, stop calling tools and write the final review.
"""

USER_PROMPT_TEMPLATE = """Please review the following code changes:

```diff
{diff}
```"""

AGENT_USER_PROMPT_TEMPLATE = """Changed files:
{files}

Please review the following code changes. Use the tools if you need more context.

```diff
{diff}
```"""

FINALIZE_PROMPT = (
    "The tool call limit or iteration limit has been reached. "
    "Based on the information gathered so far, write the final code review report now. "
    "Do not request any more tools."
)


class PromptBuilder:

    @staticmethod
    def build_user_prompt(diff: str) -> str:
        """User message for a direct, single-shot review."""
        return USER_PROMPT_TEMPLATE.format(diff=diff)

    @staticmethod
    def build_agent_system_prompt(prompt: str) -> str:
        return f"{prompt.strip()}\n{AGENT_TOOL_INSTRUCTIONS}"

    @staticmethod
    def build_agent_user_prompt(diff: str, files: List[str]) -> str:
        file_list = "\n".join(f"- {f}" for f in files) if files else "- (none)"
        return AGENT_USER_PROMPT_TEMPLATE.format(files=file_list, diff=diff)

    @staticmethod
    def build_finalize_prompt() -> str:
        return FINALIZE_PROMPT
