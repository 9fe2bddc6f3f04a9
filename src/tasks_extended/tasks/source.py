from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, List, Optional
import logging

from aiogoogle import Aiogoogle
from aiogoogle.auth.creds import UserCreds
from aiogoogle.excs import HTTPError

from ..exceptions import RemoteError, RemoteAuthError, RemotePermissionError, RemoteNotFoundError
from ..utils.log_sanitizer import sanitize_for_logging
from . import utils
from .constants import DEFAULT_TASK_LIST_ID, DEFAULT_MAX_RESULTS, MAX_RESULTS_LIMIT
from .types import TaskRecord

logger = logging.getLogger(__name__)


class RemoteTaskSource(ABC):
    """Something that can list the user's tasks given an access token."""

    @abstractmethod
    async def list(self, access_token: str) -> List[TaskRecord]:
        """
        Fetch a full snapshot of task records.

        Raises:
            RemoteError: If listing fails for any reason
        """


@asynccontextmanager
async def async_tasks_service(access_token: str, discovery: Optional[Any] = None):
    """
    Async context manager yielding an aiogoogle session and the Tasks v1 service.

    Args:
        access_token: OAuth2 access token used as the bearer credential
        discovery: Previously discovered Tasks API document to reuse
    """
    user_creds = UserCreds(access_token=access_token)
    async with Aiogoogle(user_creds=user_creds) as aiogoogle:
        tasks_v1 = discovery or await aiogoogle.discover('tasks', 'v1')
        yield aiogoogle, tasks_v1


class GoogleTasksSource(RemoteTaskSource):
    """
    Lists tasks of one Google Tasks list through aiogoogle.

    Completed and hidden tasks are included and every page is followed, so the
    result is a complete snapshot of the list.
    """

    def __init__(
            self,
            task_list_id: str = DEFAULT_TASK_LIST_ID,
            max_results: int = DEFAULT_MAX_RESULTS,
    ):
        if max_results < 1 or max_results > MAX_RESULTS_LIMIT:
            raise ValueError(f"max_results must be between 1 and {MAX_RESULTS_LIMIT}")
        self.task_list_id = task_list_id
        self.max_results = max_results
        self._discovery = None

    async def list(self, access_token: str) -> List[TaskRecord]:
        sanitized = sanitize_for_logging(
            access_token=access_token, task_list_id=self.task_list_id, max_results=self.max_results
        )
        logger.info(
            "Fetching tasks from task_list_id=%s, max_results=%s with %s",
            sanitized['task_list_id'], sanitized['max_results'], sanitized['access_token']
        )

        try:
            async with async_tasks_service(access_token, self._discovery) as (aiogoogle, service):
                self._discovery = service
                items = await self._fetch_all_pages(aiogoogle, service)
        except HTTPError as e:
            status = getattr(e.res, 'status_code', None)
            if status == 401:
                raise RemoteAuthError(f"Access token was rejected: {e}")
            elif status == 403:
                raise RemotePermissionError(f"Permission denied: {e}")
            elif status == 404:
                raise RemoteNotFoundError(f"Task list not found: {self.task_list_id}")
            else:
                raise RemoteError(f"Tasks API error listing tasks: {e}")
        except RemoteError:
            raise
        except Exception as e:
            logger.error("An error occurred while fetching tasks: %s", e)
            raise RemoteError(f"Unexpected error listing tasks: {e}")

        logger.info("Found %d task items", len(items))

        records = []
        for item in items:
            try:
                records.append(utils.from_google_task(item))
            except Exception as e:
                logger.warning("Skipping invalid task: %s", e)

        logger.info("Successfully parsed %d tasks", len(records))
        return records

    async def _fetch_all_pages(self, aiogoogle, service) -> List[dict]:
        items: List[dict] = []
        page_token = None

        while True:
            request_params = {
                'tasklist': self.task_list_id,
                'maxResults': self.max_results,
                'showCompleted': True,
                'showHidden': True,
            }
            if page_token:
                request_params['pageToken'] = page_token

            result = await aiogoogle.as_user(service.tasks.list(**request_params))
            items.extend(result.get('items', []))

            page_token = result.get('nextPageToken')
            if not page_token:
                return items
            logger.debug("Following nextPageToken, %d items so far", len(items))
