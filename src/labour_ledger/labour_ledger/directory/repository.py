from __future__ import annotations

from typing import Protocol


class DirectoryRepository(Protocol):
    """Read-only access to labourer/project/user metadata owned by the CRUD layer."""

    def count_active_labourers(self) -> int:
        raise NotImplementedError
