"""Issue linkage: suggestion validation and selection resolution."""

from symlog.linking.linker import EntityLinker, LinkResolution, validate_suggestion

__all__ = ["EntityLinker", "LinkResolution", "validate_suggestion"]
