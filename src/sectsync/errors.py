from __future__ import annotations


class SectionError(ValueError):
    """Base class for every failure raised while syncing a document."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name


class UnmatchedSectionError(SectionError):
    def __init__(self, name: str, end_prefix: str = "END SECTION") -> None:
        super().__init__(name, f"no {end_prefix} for {name}")
        self.end_prefix = end_prefix


class MissingSourceError(SectionError):
    def __init__(self, name: str) -> None:
        super().__init__(name, f"section {name} has no file= source")


class SourceReadError(SectionError):
    def __init__(self, name: str, path: str, reason: str) -> None:
        super().__init__(name, f"section {name}: cannot read {path}: {reason}")
        self.path = path


class MalformedMarkerError(SectionError):
    def __init__(self, name: str, detail: str = "missing line break") -> None:
        super().__init__(name, f"malformed BEGIN line for section {name} ({detail})")


class DuplicateSectionError(SectionError):
    def __init__(self, name: str, count: int) -> None:
        super().__init__(name, f"section {name} is declared {count} times")
        self.count = count
