"""Pipeline orchestration for repository analysis."""

from __future__ import annotations

import logging
from typing import Optional

from repo_analyzer import config
from repo_analyzer.code_walker import CodeTreeWalker
from repo_analyzer.git_service import GitService
from repo_analyzer.llm_service import LLMService
from repo_analyzer.operations import CancellationToken, ProgressCallback, Work
from repo_analyzer.structure import analyze_structure, render_overview
from repo_analyzer.utils import summarize_for_prompt, take_within_budget


logger = logging.getLogger(__name__)


INSIGHTS_PROMPT = """You are analyzing a software codebase that includes a README file and source code files. Your task is to extract a **factual, structured summary** of the codebase's architecture, components, and relationships.

Use only the information provided below. **Do not assume or invent any technologies, libraries, or architecture styles** unless they are explicitly stated in the content.

----------------------
README Content:

~~~markdown
{README}
~~~

----------------------
Code Snippets:

{SNIPPETS}
----------------------

For each file, identify:
- File name and programming language
- Main classes, functions, or data structures
- Purpose of the file (based on code and comments)
- Key public interfaces (e.g., functions, methods, classes)
- If applicable, how the file connects to other files (e.g., imports, calls, shared data structures)

Use this format:

### File: path/to/file.ext (Language: X)
- **Purpose**: ...
- **Key Components**:
  - ...
- **Relationships**:
  - ...

Repeat for all files. Be concise. Avoid speculation or generalization. Stay grounded in the actual code and README."""

SUMMARY_PROMPT = """You are writing a high-level yet technically accurate summary of a software codebase. Your audience is a developer unfamiliar with the project.

Use the structural analysis below. **Base your summary strictly on what is stated**; do not speculate or introduce external technologies or patterns unless clearly mentioned.

----------------------
Repository Overview:

{OVERVIEW}

Structural Analysis:

{INSIGHTS}
----------------------

Include the following sections:

1. **Main Purpose**: what the software does and its target users.
2. **Architecture Overview**: actual components and how they interact.
3. **Technologies and Languages**: only list what's confirmed in the code or README.
4. **Key Workflows**: specific processing or control flows (e.g., "HTTP request -> controller -> database").
5. **Strengths and Weaknesses**: design trade-offs (e.g., modularity, coupling, extensibility) based on the structure.

Avoid making assumptions. Use quotes or references to method/class names where helpful. Format the output using Markdown. Be concise and accurate."""

REPORT_TEMPLATE = """# Repository Analysis: {REPO}

## Summary

{SUMMARY}

## File Insights

{INSIGHTS}"""


def parse_insights(insights: str) -> str:
    """Drop any preamble the model wrote before the first file section."""
    lines = insights.splitlines()
    for index, line in enumerate(lines):
        if line.lstrip().startswith("### File:"):
            return "\n".join(lines[index:])
    return insights


def build_insights_prompt(snippets: list[str], readme: str) -> str:
    return INSIGHTS_PROMPT.format(
        # Keep the README from closing the surrounding fence early.
        README=readme.replace("```", "~~~"),
        SNIPPETS="\n\n".join(snippets) or "No source files found.",
    )


def build_summary_prompt(insights: str, overview: str) -> str:
    return SUMMARY_PROMPT.format(OVERVIEW=overview, INSIGHTS=parse_insights(insights))


class RepositoryAnalysisService:
    def __init__(
        self,
        git_service: GitService | None = None,
        walker: CodeTreeWalker | None = None,
        llm_service: LLMService | None = None,
        max_lines_per_file: int = config.MAX_LINES_PER_FILE,
        snippet_token_budget: int = config.SNIPPET_TOKEN_BUDGET,
    ) -> None:
        self.git_service = git_service or GitService()
        self.walker = walker or CodeTreeWalker()
        self.llm_service = llm_service or LLMService()
        self.max_lines_per_file = max_lines_per_file
        self.snippet_token_budget = snippet_token_budget

    def analyze_repository(
        self,
        repo_url: str,
        branch: str,
        token: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> str:
        token = token or CancellationToken()
        progress = progress or (lambda _message: None)

        # 1) Fetch: the only failure here that aborts the whole analysis.
        progress("Cloning repository...")
        checkout = self.git_service.clone_repository(repo_url, branch)
        try:
            token.raise_if_cancelled()

            # 2) Heuristic digest of README, sources, and layout.
            progress("Processing files and dependencies...")
            readme = summarize_for_prompt(self.walker.find_readme(checkout), max_chars=config.MAX_README_CHARS)
            snippets = self.walker.collect_summarized_snippets(checkout, self.max_lines_per_file)
            kept = take_within_budget(snippets, self.snippet_token_budget)
            if len(kept) < len(snippets):
                logger.info("Snippet budget kept %d of %d files for %s", len(kept), len(snippets), repo_url)
            overview = render_overview(analyze_structure(checkout, self.walker))
            token.raise_if_cancelled()

            # 3) Two model passes; failures come back as text and flow into the report.
            progress("Generating file insights...")
            insights = self.llm_service.complete(build_insights_prompt(kept, readme))
            token.raise_if_cancelled()

            progress("Generating summary...")
            summary = self.llm_service.complete(build_summary_prompt(insights, overview))
            token.raise_if_cancelled()
        finally:
            self.git_service.cleanup(checkout)

        return REPORT_TEMPLATE.format(REPO=f"{repo_url} (branch: {branch})", SUMMARY=summary, INSIGHTS=insights)

    def work_for(self, repo_url: str, branch: str) -> Work:
        def work(token: CancellationToken, progress: ProgressCallback) -> str:
            return self.analyze_repository(repo_url, branch, token=token, progress=progress)

        return work
