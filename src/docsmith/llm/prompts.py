# src/docsmith/llm/prompts.py
"""Prompt templates for doc comment generation."""

from dataclasses import dataclass
from typing import Any

from docsmith.constants import SKIP_REPLY
from docsmith.extraction.models import ContextBundle


@dataclass
class PromptTemplate:
    """A template for generating prompts with variable substitution."""

    template: str

    def render(self, **kwargs: Any) -> str:
        """Render the template with the given variables.

        Args:
            **kwargs: Variables to substitute into the template.

        Returns:
            The rendered template string.

        Raises:
            KeyError: If a required variable is missing.
        """
        return self.template.format(**kwargs)


# =============================================================================
# System Prompt
# =============================================================================

SYSTEM_PROMPT = f"""You are an expert TypeScript developer writing JSDoc comments.

Rules:
1. Return a single complete JSDoc block starting with /** and ending with */
2. Describe every parameter with @param and the result with @returns
3. Use standard JSDoc tags (@param, @returns, @throws, @example)
4. Be concise but informative, and only describe what the code does
5. Do not wrap the block in Markdown fences or add any other text

If the declaration is trivial and needs no documentation, reply with exactly {SKIP_REPLY}."""


# =============================================================================
# JSDoc Template
# =============================================================================

JSDOC_TEMPLATE = PromptTemplate(
    """Generate a JSDoc comment for this {kind}:

Name: {name}
Signature: {signature}
File: {file_path}{package_line}
Exported: {exported}  Async: {is_async}  Access: {access}
{sections}
Code Snippet:
```typescript
{snippet}
```{examples_hint}"""
)


def _section(title: str, body: str) -> str:
    return f"\n## {title}\n{body}\n"


def get_jsdoc_prompt(bundle: ContextBundle, generate_examples: bool = True) -> str:
    """Render the user prompt for one context bundle.

    Args:
        bundle: Context assembled for the declaration.
        generate_examples: Ask for an @example block.

    Returns:
        The rendered prompt.
    """
    sections = []
    if bundle.imports:
        sections.append(_section("Relevant Imports", "\n".join(bundle.imports)))
    if bundle.surrounding:
        sections.append(
            _section("Enclosing Declaration", f"```typescript\n{bundle.surrounding}\n```")
        )
    if bundle.existing_doc:
        sections.append(_section("Existing Documentation", bundle.existing_doc))
    if bundle.usages:
        lines = [
            f"- {u.file_path}:{u.line}" + (f": {u.snippet.strip()}" if u.snippet else "")
            for u in bundle.usages
        ]
        sections.append(_section("Usages", "\n".join(lines)))
    if bundle.related:
        lines = [
            f"- {r.kind} {r.name} ({r.file_path}, similarity {r.score:.2f})"
            for r in bundle.related
        ]
        sections.append(_section("Related Symbols", "\n".join(lines)))

    return JSDOC_TEMPLATE.render(
        kind=bundle.kind,
        name=bundle.name,
        signature=bundle.signature,
        file_path=bundle.relative_path,
        package_line=f"\nPackage: {bundle.package.name}" if bundle.package else "",
        exported=str(bundle.is_exported).lower(),
        is_async=str(bundle.is_async).lower(),
        access=bundle.access,
        sections="".join(sections),
        snippet=bundle.snippet,
        examples_hint="\n\nInclude an @example block." if generate_examples else "",
    )


def build_messages(bundle: ContextBundle, generate_examples: bool = True) -> list[dict[str, str]]:
    """System and user messages for a generation request."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": get_jsdoc_prompt(bundle, generate_examples)},
    ]
