from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple


@dataclass(slots=True)
class PipelineReport:
    attempted: int = 0
    succeeded: List[str] = field(default_factory=list)
    failed: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.attempted == 0 or bool(self.succeeded)

    def summary(self) -> str:
        return f"{len(self.succeeded)}/{self.attempted}"

    def to_markdown(self) -> str:
        lines = [
            "### Pipeline Summary\n",
            f"- Articles attempted: {self.attempted}",
            f"- Articles published: {len(self.succeeded)}",
            f"- Failures: {len(self.failed)}",
        ]
        for slug in self.succeeded:
            lines.append(f"  - published `{slug}`")
        for index, error in self.failed:
            lines.append(f"  - run {index} failed: {error}")
        return "\n".join(lines) + "\n"
