#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MCP tools
Tool catalog advertised by tools/list and the handlers behind tools/call
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.types import CallToolResult, TextContent, Tool

from .dispatcher import MethodError
from ..intelligence import ContextBuilder, ProjectAnalysisError, ProjectScanner, render_markdown
from ..storage import (
    CodePattern, PatternStore, PatternStoreError, PatternValidationError, SearchCriteria,
)
from ..utils.config import Config


TOOLS: List[Tool] = [
    Tool(
        name="analyze-project",
        description=(
            "Analyze any project (Rust, Node, Python, .NET, Go, Java, PHP/Laravel/Vue) and get "
            "intelligent context about its structure, dependencies, and suggestions"
        ),
        inputSchema={
            "type": "object",
            "properties": {
                "project_path": {
                    "type": "string",
                    "description": (
                        "Path to the project directory (containing Cargo.toml, package.json, "
                        ".csproj, pyproject.toml, go.mod, pom.xml, or composer.json)"
                    )
                }
            },
            "required": ["project_path"]
        }
    ),
    Tool(
        name="get-patterns",
        description="Get code patterns for a specific framework and category",
        inputSchema={
            "type": "object",
            "properties": {
                "framework": {
                    "type": "string",
                    "description": "Framework name (e.g., 'blazor-server', 'aspnet-core')"
                },
                "category": {
                    "type": "string",
                    "description": "Pattern category (e.g., 'lifecycle', 'dependency-injection')"
                }
            },
            "required": ["framework"]
        }
    ),
    Tool(
        name="search-patterns",
        description="Search for patterns with advanced criteria including query text, tags, and minimum score",
        inputSchema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query text (searches in title, description, and code)"
                },
                "framework": {
                    "type": "string",
                    "description": "Filter by framework"
                },
                "category": {
                    "type": "string",
                    "description": "Filter by category"
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Filter by tags"
                },
                "min_score": {
                    "type": "number",
                    "description": "Minimum relevance score (0.0 - 1.0)"
                }
            }
        }
    ),
    Tool(
        name="train-pattern",
        description="Add a new code pattern to the training system",
        inputSchema={
            "type": "object",
            "properties": {
                "id": {
                    "type": "string",
                    "description": "Unique identifier for the pattern"
                },
                "category": {
                    "type": "string",
                    "description": "Pattern category"
                },
                "framework": {
                    "type": "string",
                    "description": "Target framework"
                },
                "version": {
                    "type": "string",
                    "description": "Framework version"
                },
                "title": {
                    "type": "string",
                    "description": "Pattern title"
                },
                "description": {
                    "type": "string",
                    "description": "Pattern description"
                },
                "code": {
                    "type": "string",
                    "description": "Code example"
                },
                "tags": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Pattern tags"
                }
            },
            "required": ["id", "category", "framework", "title", "description", "code"]
        }
    ),
    Tool(
        name="get-statistics",
        description="Get statistics about the pattern database",
        inputSchema={
            "type": "object",
            "properties": {}
        }
    ),
    Tool(
        name="get-help",
        description=(
            "Get usage instructions for this MCP server. Call this first to understand how to "
            "use the available tools effectively."
        ),
        inputSchema={
            "type": "object",
            "properties": {}
        }
    ),
]


HELP_TEXT = """# codecontext - Usage Guide

## What is this
An MCP server that analyzes code projects and serves curated best-practice patterns.

## Available tools

### 1. analyze-project
**When to use:** the user mentions a project or a code path.
```
analyze-project { "project_path": "/path/to/project" }
```
- Detects automatically: Rust, Node, Python, PHP, Go, Java, .NET
- Returns: structure, dependencies, detected framework, suggestions

### 2. search-patterns
**When to use:** the user asks "how do I do X" or looks for best practices.
```
search-patterns { "query": "jwt authentication" }
search-patterns { "query": "error handling", "framework": "laravel" }
```

### 3. get-patterns
**When to use:** the user wants the patterns of one framework.
```
get-patterns { "framework": "laravel" }
get-patterns { "framework": "react", "category": "hooks" }
```

### 4. train-pattern
**When to use:** the user wants to keep a piece of code as a reusable pattern.
```
train-pattern {
  "id": "my-pattern-001",
  "framework": "vue",
  "category": "composables",
  "title": "useAuth composable",
  "description": "Authentication handling with Vue 3",
  "code": "export function useAuth() { ... }",
  "tags": ["auth", "vue3", "composable"]
}
```

### 5. get-statistics
**When to use:** to find out how many patterns are available.
```
get-statistics {}
```

## Recommended flow

1. **User mentions a project** -> `analyze-project`
2. **User asks how to do something** -> `search-patterns`
3. **User wants framework examples** -> `get-patterns`
4. **User shares useful code** -> `train-pattern`

## Supported frameworks
- **PHP:** laravel, symfony, wordpress
- **JavaScript:** react, vue, nextjs, express
- **Python:** django, flask, fastapi
- **Rust:** actix-web, axum, rocket
- **.NET:** blazor-server, aspnet-core
- **Go:** gin, fiber
- **Java:** spring

## Notes
- Use absolute paths with analyze-project
- Patterns are stored as `{framework}-patterns.json` files in the storage directory
- Framework tags may only contain letters, digits, `_`, `.` and `-`
"""


def text_result(text: str) -> Dict[str, Any]:
    """Wrap Markdown text in a tools/call result"""
    result = CallToolResult(content=[TextContent(type="text", text=text)], isError=False)
    return result.model_dump(by_alias=True, exclude_none=True, mode='json')


class ToolHandlers:
    """
    Handlers for the six tools

    Each handler takes the ``arguments`` object of a tools/call request and
    returns a tools/call result. Failures raise MethodError.
    """

    def __init__(self, store: PatternStore, config: Config, scanner: Optional[ProjectScanner] = None):
        self.store = store
        self.config = config
        self.scanner = scanner or ProjectScanner(
            ignore_dirs=set(config.analyzer.ignore_dirs),
            max_file_size_mb=config.analyzer.max_file_size_mb,
            extract_symbols=config.analyzer.extract_symbols,
        )
        self.context_builder = ContextBuilder(store)
        self.logger = logging.getLogger('codecontext.tools')

        self.handlers = {
            "analyze-project": self._tool_analyze_project,
            "get-patterns": self._tool_get_patterns,
            "search-patterns": self._tool_search_patterns,
            "train-pattern": self._tool_train_pattern,
            "get-statistics": self._tool_get_statistics,
            "get-help": self._tool_get_help,
        }

    async def call(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Run a tool by name"""
        handler = self.handlers.get(name)
        if handler is None:
            raise MethodError(f"Unknown tool: {name}")

        self.logger.info(f"Calling tool: {name}")
        return await handler(arguments)

    # ==================== Tools ====================

    async def _tool_analyze_project(self, args: Dict[str, Any]) -> Dict[str, Any]:
        project_path = _require_str(args, "project_path")
        path = Path(project_path)

        if not path.exists():
            raise MethodError(
                f"Project path does not exist: '{project_path}'. "
                "Please provide an absolute path to a project directory."
            )
        if not path.is_dir():
            raise MethodError(
                f"Path is not a directory: '{project_path}'. "
                "Please provide a directory path, not a file path."
            )

        try:
            summary = await asyncio.to_thread(self.scanner.scan_project, path)
        except ProjectAnalysisError as e:
            self.logger.warning(f"Analysis of {project_path} failed: {e}")
            raise MethodError(f"Failed to analyze project: {e}. {e.hint}") from e

        analysis = self.context_builder.build_analysis(summary)
        return text_result(render_markdown(analysis))

    async def _tool_get_patterns(self, args: Dict[str, Any]) -> Dict[str, Any]:
        framework = _require_str(args, "framework")
        category = _optional_str(args, "category")

        if category is not None:
            patterns = self.store.search_by_framework_and_category(framework, category)
        else:
            patterns = [p for p, _score in self.store.search(SearchCriteria(framework=framework))]

        lines = [f"# Patterns for {framework}", ""]
        if not patterns:
            lines.append("No patterns found.")
        for pattern in patterns:
            lines.extend([
                f"## {pattern.title}",
                "",
                f"**Category:** {pattern.category}",
                f"**ID:** {pattern.id}",
                pattern.description,
                "",
                "```",
                pattern.code,
                "```",
                "",
                f"**Tags:** {', '.join(pattern.tags)}",
                f"**Usage Count:** {pattern.usage_count}",
                f"**Relevance:** {pattern.relevance_score:.2f}",
                "",
                "---",
                "",
            ])

        return text_result("\n".join(lines))

    async def _tool_search_patterns(self, args: Dict[str, Any]) -> Dict[str, Any]:
        min_score = args.get("min_score")
        criteria = SearchCriteria(
            query=_optional_str(args, "query"),
            category=_optional_str(args, "category"),
            framework=_optional_str(args, "framework"),
            tags=_str_list(args, "tags"),
            min_score=float(min_score) if _is_number(min_score) else 0.0,
        )

        results = self.store.search(criteria)

        lines = ["# Pattern Search Results", "", f"Found {len(results)} patterns", ""]
        for pattern, score in results:
            lines.extend([
                f"## {pattern.title} (Score: {score:.2f})",
                "",
                f"**Framework:** {pattern.framework} | **Category:** {pattern.category}",
                pattern.description,
                "",
                "```",
                pattern.code,
                "```",
                "",
                "---",
                "",
            ])

        return text_result("\n".join(lines))

    async def _tool_train_pattern(self, args: Dict[str, Any]) -> Dict[str, Any]:
        training = self.config.training
        pattern = CodePattern(
            id=_require_str(args, "id"),
            category=_require_str(args, "category"),
            framework=_require_str(args, "framework"),
            title=_require_str(args, "title"),
            description=_require_str(args, "description"),
            code=_require_str(args, "code"),
            version=_optional_str(args, "version") or training.default_version,
            tags=_str_list(args, "tags"),
            usage_count=0,
            relevance_score=training.default_relevance,
        )

        try:
            await asyncio.to_thread(self.store.add_and_save, pattern)
        except PatternValidationError as e:
            raise MethodError(f"Invalid pattern: {e}") from e
        except PatternStoreError as e:
            raise MethodError(f"Failed to save patterns: {e}") from e

        return text_result(
            f"✅ Pattern '{pattern.title}' added successfully!\n\n"
            f"**ID:** {pattern.id}\n"
            f"**Category:** {pattern.category}\n"
            f"**Framework:** {pattern.framework}"
        )

    async def _tool_get_statistics(self, args: Dict[str, Any]) -> Dict[str, Any]:
        stats = self.store.get_statistics()

        lines = [
            "# Pattern Database Statistics",
            "",
            f"**Total Patterns:** {stats['total_patterns']}",
            f"**Total Usage:** {stats['total_usage']}",
            f"**Average Relevance:** {stats['avg_relevance']:.2f}",
            "",
            "## Categories",
        ]
        lines.extend(f"- {category}" for category in stats['categories'])
        lines.extend(["", "## Frameworks"])
        lines.extend(f"- {framework}" for framework in stats['frameworks'])

        return text_result("\n".join(lines))

    async def _tool_get_help(self, args: Dict[str, Any]) -> Dict[str, Any]:
        return text_result(HELP_TEXT)


# ==================== Argument Helpers ====================

def _require_str(args: Dict[str, Any], key: str) -> str:
    value = args.get(key)
    if not isinstance(value, str):
        raise MethodError(f"Missing {key}")
    return value


def _optional_str(args: Dict[str, Any], key: str) -> Optional[str]:
    value = args.get(key)
    return value if isinstance(value, str) else None


def _str_list(args: Dict[str, Any], key: str) -> List[str]:
    value = args.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
