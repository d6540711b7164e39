"""docsmith: LLM-assisted JSDoc synthesis for TypeScript and JavaScript."""

__version__ = "0.4.0"
