"""Signals sent by the wiki when page content changes.

Every signal is sent with ``title`` (a ``Title`` or prefixed title string)
plus the keyword arguments listed below.
"""

from django.dispatch import Signal

# revision_id: the new revision; latest_revision_id optional
page_edited = Signal()

# revision_id: the last revision of the deleted page
page_deleted = Signal()

# revision_id: the restored latest revision, optional
page_undeleted = Signal()

# new_title, revision_id (old title), new_revision_id (new title)
page_moved = Signal()

# revisions: ids of the revisions whose visibility changed
revision_visibility_changed = Signal()

# revision_id: the file description page revision, optional
file_uploaded = Signal()
