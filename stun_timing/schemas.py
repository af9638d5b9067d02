from dataclasses import dataclass
from typing import NamedTuple, Optional


class MappedAddress(NamedTuple):
    ip: str
    port: int

    def __str__(self) -> str:
        if ":" in self.ip:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


@dataclass(frozen=True)
class ProbeOutcome:
    elapsed_us: int
    error: Optional[str] = None
    # informational only; statistics never look at it
    mapped_address: Optional[MappedAddress] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Bucket:
    lower_us: int
    upper_us: int
    count: int
