"""
Background tasks for the spaces app.

Persists search analytics off the request path so a slow or failing
database write never delays a search response.
"""
import logging
from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(
    name='spaces.tasks.log_search',
    bind=True,
    max_retries=1,
    soft_time_limit=30,
    ignore_result=True,
)
def log_search(self, event: dict):
    """
    Write one SearchLog row.

    Args:
        event: ``SearchEvent.to_dict()`` payload
    """
    from .repositories import SearchLogRepository

    if not event:
        return

    try:
        row = SearchLogRepository.record(event)
        logger.debug(f"Logged search {event.get('query')!r} as #{row.pk}")
    except (KeyError, ValueError) as e:
        logger.warning(f"Discarding malformed search event: {e}")
    except Exception as e:
        logger.warning(f"Search log write failed, retrying: {e}")
        raise self.retry(exc=e, countdown=10)
