"""Modal dialogs for the video review TUI.

Import modals from this package: ``from video_review.modals import TagModal``
"""

# common.py: general-purpose dialogs
from video_review.modals.common import ConfirmModal, HelpScreen

# editing.py: tag editing
from video_review.modals.editing import TagModal

# search.py: jump to video, go to page
from video_review.modals.search import GoToPageModal, JumpToVideoModal

__all__ = [
    "ConfirmModal",
    "GoToPageModal",
    "HelpScreen",
    "JumpToVideoModal",
    "TagModal",
]
