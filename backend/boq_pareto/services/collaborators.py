"""
Collaborator contracts consumed by the analysis services.

The processor and aggregator only see these protocols; the SQLAlchemy
repositories, the local file store and the pandas decoder are the production
implementations, and the test suite swaps in in-memory fakes.
"""
from typing import Any, Mapping, Optional, Protocol, Sequence

from boq_pareto.models.boq_models import Insight, LineItem, Project


class ProjectStore(Protocol):
    async def get_project(self, project_id: str) -> Optional[Project]: ...

    async def set_status(self, project_id: str, status: str) -> None: ...

    async def delete(self, project_id: str) -> None: ...


class FileStore(Protocol):
    def download(self, path: str) -> bytes: ...


class SpreadsheetDecoder(Protocol):
    def decode(self, data: bytes, file_name: Optional[str] = None) -> Sequence[Mapping[str, Any]]: ...


class LineItemStore(Protocol):
    async def delete_all_for_project(self, project_id: str) -> None: ...

    async def insert(self, project_id: str, item: LineItem) -> LineItem: ...

    async def list_for_project(
        self, project_id: str, wbs_level: Optional[int] = None
    ) -> list[LineItem]: ...

    async def sum_level_one_cost(self, project_id: str) -> float: ...


class InsightStore(Protocol):
    async def delete_all_for_project(self, project_id: str) -> None: ...

    async def insert(self, project_id: str, insight: Insight) -> Insight: ...

    async def list_for_project(self, project_id: str) -> list[Insight]: ...
