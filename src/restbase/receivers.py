"""Signal receivers scheduling RESTBase updates for wiki changes."""

import logging

from django.dispatch import receiver

from . import signals
from .services.translator import ChangeEvent, EventKind, schedule
from .titles import Title

logger = logging.getLogger(__name__)


def _title(value) -> Title:
    return value if isinstance(value, Title) else Title.parse(value)


def _schedule(kind: EventKind, title, **kwargs):
    event = ChangeEvent(kind=kind, title=_title(title), **kwargs)
    logger.debug("RESTBase update scheduled: %s - %s", event.title, kind.value)
    return schedule(event)


@receiver(signals.page_edited)
def on_page_edited(sender, title, revision_id=None, latest_revision_id=None, changed=True, **kwargs):
    """Regular page edits; null edits (``changed=False``) are ignored."""
    if not changed:
        return None
    return _schedule(EventKind.EDIT, title, revision_id=revision_id, latest_revision_id=latest_revision_id)


@receiver(signals.page_deleted)
def on_page_deleted(sender, title, revision_id=None, **kwargs):
    return _schedule(EventKind.DELETE, title, revision_id=revision_id)


@receiver(signals.page_undeleted)
def on_page_undeleted(sender, title, revision_id=None, **kwargs):
    return _schedule(EventKind.UNDELETE, title, revision_id=revision_id)


@receiver(signals.page_moved)
def on_page_moved(sender, title, new_title, revision_id=None, new_revision_id=None, **kwargs):
    # Simply update both old and new title
    return _schedule(
        EventKind.MOVE,
        title,
        new_title=_title(new_title),
        revision_id=revision_id,
        new_revision_id=new_revision_id,
    )


@receiver(signals.revision_visibility_changed)
def on_revision_visibility_changed(sender, title, revisions=(), **kwargs):
    return _schedule(EventKind.REV_VISIBILITY, title, revisions=tuple(int(r) for r in revisions))


@receiver(signals.file_uploaded)
def on_file_uploaded(sender, title, revision_id=None, **kwargs):
    return _schedule(EventKind.UPLOAD, title, revision_id=revision_id)
