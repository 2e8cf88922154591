from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class RenderedDocument:
    """A finished PDF plus the output forms callers ask for."""
    data: bytes
    filename: str = "contract.pdf"
    page_count: int = 0

    media_type = "application/pdf"

    def __len__(self) -> int:
        return len(self.data)

    def to_bytes(self) -> bytes:
        return self.data

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.to_base64()}"

    def save(self, path: Union[str, Path, None] = None) -> Path:
        """
        Write the PDF to disk.

        Args:
            path: File or directory. Directories receive ``filename``;
                  None writes ``filename`` into the working directory.

        Returns:
            The written path
        """
        target = Path(path) if path is not None else Path(self.filename)
        if target.is_dir():
            target = target / self.filename
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.data)
        return target
