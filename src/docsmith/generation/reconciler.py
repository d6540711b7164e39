# src/docsmith/generation/reconciler.py
"""Reconciliation of generated doc comments with existing ones."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from docsmith.config import JSDocConfig, RunOptions
from docsmith.constants import DESCRIPTION_PREFIX_LENGTH, DESCRIPTION_TAGS, STICKY_TAGS, SUMMARY_TAG
from docsmith.generation.docblock import (
    DocBlock,
    DocBlockError,
    as_block,
    extract_description,
    normalize,
    parse_docblock,
)

logger = logging.getLogger(__name__)


class Documentable(Protocol):
    """Anything that carries a single doc comment."""

    name: str

    def get_doc(self) -> str | None: ...

    def set_doc(self, text: str) -> None: ...

    def remove_doc(self) -> None: ...


class ReconcileOutcome(str, Enum):
    """What reconciliation did to one unit."""

    APPLIED_NEW = "applied-new"
    APPLIED_MERGED = "applied-merged"
    SKIPPED_EXISTING_ADEQUATE = "skipped-existing-adequate"
    SKIPPED_TOO_SHORT = "skipped-too-short"
    SKIPPED_IDENTICAL = "skipped-identical"
    ERROR = "error"

    @property
    def changed(self) -> bool:
        return self in (ReconcileOutcome.APPLIED_NEW, ReconcileOutcome.APPLIED_MERGED)


@dataclass(frozen=True)
class ReconcilePolicy:
    """The four signals that decide how existing comments are treated."""

    overwrite_existing: bool = False
    merge_existing: bool = True
    force_overwrite: bool = False
    no_merge_existing: bool = False

    @classmethod
    def from_config(cls, config: JSDocConfig, options: RunOptions) -> "ReconcilePolicy":
        return cls(
            overwrite_existing=config.overwrite_existing,
            merge_existing=config.merge_existing,
            force_overwrite=options.force_overwrite,
            no_merge_existing=options.no_merge_existing,
        )

    @property
    def should_overwrite(self) -> bool:
        return self.force_overwrite or self.no_merge_existing or self.overwrite_existing

    @property
    def should_merge(self) -> bool:
        return self.merge_existing and not self.no_merge_existing

    @property
    def allows_existing(self) -> bool:
        """Whether a unit that already has a comment is worth an oracle call."""
        return self.force_overwrite or self.overwrite_existing or self.should_merge


def merge_blocks(existing: DocBlock, generated: DocBlock) -> DocBlock:
    """Merge a generated comment into an existing one.

    The generated description is appended unless the existing description
    already contains its leading text. Generated tags replace existing ones
    wholesale, except that sticky tags from the existing comment survive when
    the generated comment does not define a tag of the same name.
    """
    existing_description = existing.description.strip()
    generated_description = extract_description(generated)
    prefix = generated_description[:DESCRIPTION_PREFIX_LENGTH]

    if generated_description and prefix not in existing_description:
        description = (
            f"{existing_description}\n\n{generated_description}"
            if existing_description
            else generated_description
        )
    else:
        description = existing_description

    generated_names = generated.tag_names
    sticky = [
        tag
        for tag in existing.tags
        if tag.name in STICKY_TAGS and tag.name not in generated_names
    ]
    carried = [
        tag
        for tag in generated.tags
        if tag.name not in DESCRIPTION_TAGS and tag.name != SUMMARY_TAG
    ]
    return DocBlock(description=description, tags=sticky + carried)


class Reconciler:
    """Decides, per unit, whether to insert, overwrite, merge or skip."""

    def __init__(self, min_length: int, policy: ReconcilePolicy):
        """Initialize the reconciler.

        Args:
            min_length: Generated text shorter than this (after trimming) is
                rejected.
            policy: Overwrite and merge signals.
        """
        self.min_length = min_length
        self.policy = policy

    def reconcile(self, unit: Documentable, generated: str) -> ReconcileOutcome:
        """Reconcile generated text against the unit's current comment.

        Args:
            unit: Declaration to update.
            generated: Generated doc comment text.

        Returns:
            The outcome. The unit is modified only for applied outcomes.
        """
        if len(generated.strip()) < self.min_length:
            logger.debug(f"Generated doc for {unit.name} is too short, skipping")
            return ReconcileOutcome.SKIPPED_TOO_SHORT

        existing = unit.get_doc()
        if existing is None:
            unit.set_doc(as_block(generated))
            return ReconcileOutcome.APPLIED_NEW

        if normalize(existing) == normalize(generated):
            return ReconcileOutcome.SKIPPED_IDENTICAL

        if self.policy.should_overwrite:
            unit.remove_doc()
            unit.set_doc(as_block(generated))
            return ReconcileOutcome.APPLIED_NEW

        if not self.policy.should_merge:
            return ReconcileOutcome.SKIPPED_EXISTING_ADEQUATE

        try:
            merged = merge_blocks(
                parse_docblock(existing), parse_docblock(generated, strict=False)
            )
        except DocBlockError as e:
            logger.warning(f"Existing doc for {unit.name} is unreadable, leaving it: {e}")
            return ReconcileOutcome.ERROR

        rendered = merged.render()
        if normalize(rendered) == normalize(existing):
            return ReconcileOutcome.SKIPPED_IDENTICAL
        unit.remove_doc()
        unit.set_doc(rendered)
        return ReconcileOutcome.APPLIED_MERGED

    def apply(self, unit: Documentable, generated: str) -> bool:
        """Reconcile and report whether the unit's comment changed."""
        return self.reconcile(unit, generated).changed
