"""Secret scan finding models."""

from pydantic import BaseModel, Field


class SecretFinding(BaseModel):
    """A suspected secret in a scanned file.

    Attributes:
        path: Root-relative POSIX path of the file.
        line: 1-indexed line number.
        pattern: Name of the matching rule, or ``high-entropy``.
        entropy: Normalized Shannon entropy (0..1) of the matched value.
    """

    path: str
    line: int = Field(ge=1)
    pattern: str
    entropy: float | None = None


class SecretScanResult(BaseModel):
    """Aggregated secret scan outcome."""

    found: list[SecretFinding] = Field(default_factory=list)
    scanned: int = 0
    ignored: int = 0
