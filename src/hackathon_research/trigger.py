"""Task-submission boundary: acknowledge immediately, research in the background."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from hackathon_research.agent import ResearchAgent
from hackathon_research.errors import NotFoundError
from hackathon_research.store import ProjectStore

logger = logging.getLogger(__name__)

ACK_MESSAGE = "Research started"


class ResearchTrigger:
    """Runs ``ResearchAgent.run`` on a small thread pool.

    Only a missing project is reported to the caller. Anything that goes wrong
    inside the run is logged and the future resolves to None.
    """

    def __init__(self, agent: ResearchAgent, store: ProjectStore, max_workers: int = 2) -> None:
        self._agent = agent
        self._store = store
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="research")
        self.pending: dict[str, Future] = {}

    def submit(self, project_id: str) -> dict[str, str]:
        if self._store.find_by_id(project_id) is None:
            raise NotFoundError(project_id)
        future = self._executor.submit(self._run, project_id)
        self.pending[project_id] = future
        future.add_done_callback(lambda _: self.pending.pop(project_id, None))
        logger.info("Queued research for %s", project_id)
        return {"message": ACK_MESSAGE, "project_id": project_id}

    def _run(self, project_id: str):
        try:
            return self._agent.run(project_id)
        except Exception:
            logger.exception("Background research failed for %s", project_id)
            return None

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
