"""Configuration constants.

Re-exports all config for convenient importing:
    from docsmith.constants import STICKY_TAGS, CHARS_PER_TOKEN
"""

from docsmith.constants.generation import *  # noqa: F403
from docsmith.constants.llm import *  # noqa: F403
