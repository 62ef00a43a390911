from typing import Any

import attrs


@attrs.define(frozen=True)
class TableData:
    """One full read of a backing-store table"""

    headers: list[str]
    rows: list[list[Any]]

    def header_map(self) -> dict[str, int]:
        return {header: index for index, header in enumerate(self.headers) if header}
